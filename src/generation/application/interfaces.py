"""
Capability Interfaces
=====================

Narrow interfaces for the external collaborators of the generation
pipeline. Infrastructure adapters implement them; tests substitute doubles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

from src.generation.domain import Article


@dataclass
class TicketComment:
    """Comment on a ticket, as returned by the ticket history store."""
    author_id: Optional[str]
    content: str
    created_at: Union[datetime, str, None]
    role: Optional[str] = None


@dataclass
class CompletionRequest:
    """Everything a completion provider needs for one call."""
    model_name: str
    temperature: float
    max_tokens: int
    template: str
    variables: Dict[str, str] = field(default_factory=dict)
    api_key: Optional[str] = None


class IKnowledgeStore(ABC):
    """Read-only access to knowledge base articles."""

    @abstractmethod
    async def ping(self) -> None:
        """Cheap availability probe; raises when the store is unreachable."""

    @abstractmethod
    async def search_content(self, query: str, limit: int = 10) -> List[Article]:
        """Full-text search over article content (OR-joined term query)."""

    @abstractmethod
    async def search_phrase(self, phrase: str, limit: int = 10) -> List[Article]:
        """Full-text search for the raw phrase."""

    @abstractmethod
    async def search_title(self, fragment: str, limit: int = 10) -> List[Article]:
        """Case-insensitive substring match on article titles."""

    @abstractmethod
    async def get_article(self, article_id: str) -> Optional[Article]:
        """Point lookup by id."""


class ITicketHistory(ABC):
    """Read-only access to ticket conversations."""

    @abstractmethod
    async def list_comments(self, ticket_id: str) -> List[TicketComment]:
        """Comments for a ticket, oldest first."""


class ICompletionProvider(ABC):
    """Single request/response text completion."""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> str:
        """Return the completion text; raise on provider failure."""
