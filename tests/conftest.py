"""
Shared fixtures and test doubles.
"""
import asyncio
from typing import Dict, List, Optional

import pytest

from src.generation.application import (
    CompletionRequest,
    ICompletionProvider,
    IKnowledgeStore,
    ITicketHistory,
    TicketComment,
)
from src.generation.domain import Article, PreviousMessage, RequestContext


class FakeKnowledgeStore(IKnowledgeStore):
    """Knowledge store returning canned results and recording every call."""

    def __init__(
        self,
        content: Optional[List[Article]] = None,
        phrase: Optional[List[Article]] = None,
        title: Optional[List[Article]] = None,
        by_id: Optional[Dict[str, Article]] = None,
        ping_error: Optional[Exception] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ):
        self.content = content or []
        self.phrase = phrase or []
        self.title = title or []
        self.by_id = by_id or {}
        self.ping_error = ping_error
        self.errors = errors or {}
        self.calls: List[tuple] = []

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    @property
    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]

    async def ping(self) -> None:
        self.calls.append(("ping",))
        if self.ping_error:
            raise self.ping_error

    async def search_content(self, query: str, limit: int = 10) -> List[Article]:
        self._record("search_content", query, limit)
        return list(self.content)

    async def search_phrase(self, phrase: str, limit: int = 10) -> List[Article]:
        self._record("search_phrase", phrase, limit)
        return list(self.phrase)

    async def search_title(self, fragment: str, limit: int = 10) -> List[Article]:
        self._record("search_title", fragment, limit)
        return list(self.title)

    async def get_article(self, article_id: str) -> Optional[Article]:
        self._record("get_article", article_id)
        return self.by_id.get(article_id)


class FakeTicketHistory(ITicketHistory):
    """Ticket history with canned comments."""

    def __init__(self, comments: Optional[List[TicketComment]] = None, error: Optional[Exception] = None):
        self.comments = comments or []
        self.error = error
        self.calls: List[str] = []

    async def list_comments(self, ticket_id: str) -> List[TicketComment]:
        self.calls.append(ticket_id)
        if self.error:
            raise self.error
        return list(self.comments)


class FakeCompletionProvider(ICompletionProvider):
    """Completion provider returning stubbed text."""

    def __init__(self, response: str = "", error: Optional[Exception] = None, delay: float = 0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.requests: List[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response

    @property
    def last_request(self) -> CompletionRequest:
        return self.requests[-1]


def make_article(article_id: str = "A1", title: str = "Password Reset Guide",
                 content: str = "To reset your password, open Settings and choose Reset.") -> Article:
    return Article(id=article_id, title=title, content=content)


def make_context(message: Optional[str] = "How do I reset my password?", **kwargs) -> RequestContext:
    messages = [PreviousMessage(role="customer", content=message)] if message is not None else []
    kwargs.setdefault("previous_messages", messages)
    return RequestContext(**kwargs)


@pytest.fixture
def article():
    return make_article()


@pytest.fixture
def store(article):
    return FakeKnowledgeStore(content=[article])


@pytest.fixture
def history():
    return FakeTicketHistory()


@pytest.fixture
def provider():
    return FakeCompletionProvider(
        "I understand your concern. You can reset your password from Settings (Article ID: A1)."
    )
