"""
Context Gathering
=================

Retrieves knowledge base articles and ticket history for a request.

Article retrieval is an ordered fallback chain, not scored ranking: the
first strategy that returns anything wins.

1. OR-joined key terms, full-text over content
2. the raw search term as a phrase
3. substring match on titles

Store failures never escape; a failing strategy counts as "no results".
"""

import re
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from src.generation.application.interfaces import IKnowledgeStore, ITicketHistory, TicketComment
from src.generation.domain import (
    Article,
    GenerationConfig,
    MessageRole,
    PreviousMessage,
    RequestContext,
)
from src.shared.infrastructure.logging import TraceLogger, log_latency, resolve_logger

STOP_WORDS = frozenset(
    {"the", "and", "for", "that", "with", "you", "can", "about", "tell", "much"}
)
MAX_ARTICLES = 5
STRATEGY_LIMIT = 10

_NON_WORD = re.compile(r"[^\w\s]")


def tokenize_search_term(term: str) -> List[str]:
    """Lowercase, strip punctuation, drop short words and stop words."""
    words = _NON_WORD.sub(" ", term.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


def build_terms_query(tokens: List[str]) -> str:
    return " | ".join(tokens)


def derive_search_term(context: RequestContext) -> str:
    latest = context.latest_message
    return latest.content if latest else ""


def _timestamp(value) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class ContextGatherer:
    """
    Enriches a request context with articles and conversation history.

    The logger is injectable so callers can scope retrieval events to a
    request.
    """

    def __init__(
        self,
        knowledge_store: IKnowledgeStore,
        ticket_history: ITicketHistory,
        logger: Optional[TraceLogger] = None,
    ):
        self._store = knowledge_store
        self._history = ticket_history
        self._logger = resolve_logger(logger, __name__)

    async def check_access(self) -> bool:
        """Probe the knowledge store; False when it cannot be reached."""
        try:
            with log_latency(self._logger, "knowledge_store_probe"):
                await self._store.ping()
            return True
        except Exception as e:
            self._logger.warning(
                "Knowledge store probe failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return False

    async def gather(
        self,
        context: RequestContext,
        config: GenerationConfig,
        verify_access: bool = True,
    ) -> RequestContext:
        """
        Return an enriched copy of the context.

        Args:
            context: Incoming request context (not modified)
            config: Generation settings (knowledge base / history toggles)
            verify_access: Probe the store before searching. The orchestrator
                passes False when it has already probed.
        """
        enriched = context.clone()

        if enriched.relevant_articles:
            self._logger.debug("Caller supplied articles, skipping retrieval")
        elif config.include_knowledge_base:
            enriched.relevant_articles = await self.fetch_relevant_articles(
                enriched, verify_access
            )

        if config.include_ticket_history and enriched.ticket_id:
            history = await self.fetch_ticket_history(enriched.ticket_id)
            if history is not None:
                enriched.previous_messages = history

        return enriched

    async def fetch_relevant_articles(
        self,
        context: RequestContext,
        verify_access: bool = True,
    ) -> List[Article]:
        """
        Run the retrieval chain for the latest customer message.

        Sets has_valid_db_access to False on the given context when the
        probe fails.
        """
        term = derive_search_term(context)
        if not term.strip():
            self._logger.info("Empty search term, skipping article search")
            return []

        if verify_access and not await self.check_access():
            context.revoke_db_access()
            return []

        if context.pinned_article_id and not context.skip_test_articles:
            pinned = await self._fetch_pinned(context.pinned_article_id)
            if pinned is not None:
                return [pinned]

        tokens = tokenize_search_term(term)
        strategies: List[tuple[str, str, Callable[[], Awaitable[List[Article]]]]] = []
        if tokens:
            terms_query = build_terms_query(tokens)
            strategies.append(
                ("terms", terms_query,
                 lambda: self._store.search_content(terms_query, STRATEGY_LIMIT))
            )
        strategies.append(
            ("phrase", term, lambda: self._store.search_phrase(term, STRATEGY_LIMIT))
        )
        strategies.append(
            ("title", term, lambda: self._store.search_title(term, STRATEGY_LIMIT))
        )

        for name, query, run in strategies:
            articles = await self._run_strategy(name, query, run)
            if articles:
                return articles[:MAX_ARTICLES]

        self._logger.info("No articles found with any search strategy", extra={"query": term})
        return []

    async def _fetch_pinned(self, article_id: str) -> Optional[Article]:
        try:
            article = await self._store.get_article(article_id)
        except Exception as e:
            self._logger.warning(
                "Pinned article lookup failed",
                extra={"article_id": article_id, "error": str(e)},
            )
            return None

        if article is not None:
            self._logger.info("Using pinned article", extra={"article_id": article_id})
        return article

    async def _run_strategy(
        self,
        name: str,
        query: str,
        run: Callable[[], Awaitable[List[Article]]],
    ) -> List[Article]:
        try:
            with log_latency(self._logger, "article_search", strategy=name):
                articles = list(await run() or [])
        except Exception as e:
            self._logger.warning(
                "Article search strategy failed",
                extra={"strategy": name, "query": query, "error": str(e)},
            )
            return []

        self._logger.info(
            "Article search strategy finished",
            extra={"strategy": name, "query": query, "result_count": len(articles)},
        )
        return articles

    async def fetch_ticket_history(self, ticket_id: str) -> Optional[List[PreviousMessage]]:
        """
        Load the ticket conversation, oldest first.

        Returns None when the history store fails; the caller then keeps the
        messages it already has.
        """
        try:
            comments: List[TicketComment] = await self._history.list_comments(ticket_id)
        except Exception as e:
            self._logger.warning(
                "Ticket history fetch failed",
                extra={"ticket_id": ticket_id, "error": str(e)},
            )
            return None

        return [
            PreviousMessage(
                role=comment.role or MessageRole.AGENT,
                content=comment.content,
                timestamp=_timestamp(comment.created_at),
            )
            for comment in comments
        ]
