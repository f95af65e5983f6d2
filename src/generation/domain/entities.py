"""
Generation Domain Entities
==========================

Per-call data carried through the response generation pipeline.

Nothing here is persisted; every object lives for a single generate() call.
"""

import copy
from dataclasses import dataclass, field, replace
from typing import List, Optional, Set

from src.config import MessageTone, VALID_TONES


class MessageRole(str):
    """Author side of a conversation message."""
    CUSTOMER = "customer"
    AGENT = "agent"


@dataclass
class Article:
    """Knowledge base article as seen by the pipeline."""
    id: str
    title: str
    content: str
    category_id: Optional[str] = None


@dataclass
class PreviousMessage:
    """One turn of the ticket conversation."""
    role: str
    content: str
    timestamp: Optional[str] = None


@dataclass
class RequestContext:
    """
    Context for a single generation request.

    previous_messages is chronological (oldest first). relevant_articles,
    when supplied by the caller, overrides retrieval entirely.
    force_empty_results, skip_test_articles and pinned_article_id are
    determinism hooks that short-circuit normal retrieval.
    """
    ticket_id: Optional[str] = None
    customer_id: Optional[str] = None
    previous_messages: List[PreviousMessage] = field(default_factory=list)
    relevant_articles: List[Article] = field(default_factory=list)
    has_valid_db_access: bool = True
    force_empty_results: bool = False
    skip_test_articles: bool = False
    pinned_article_id: Optional[str] = None

    def clone(self) -> "RequestContext":
        """Deep copy, so callers never observe pipeline mutations."""
        return copy.deepcopy(self)

    def revoke_db_access(self) -> None:
        """Mark the knowledge store unreachable; drops any articles."""
        self.has_valid_db_access = False
        self.relevant_articles = []

    @property
    def latest_message(self) -> Optional[PreviousMessage]:
        return self.previous_messages[-1] if self.previous_messages else None


@dataclass(frozen=True)
class GenerationConfig:
    """Model and pipeline settings for message generation."""
    temperature: float = 0.7
    max_tokens: int = 500
    model_name: str = "gpt-4-turbo-preview"
    max_context_length: int = 4000
    include_knowledge_base: bool = True
    include_ticket_history: bool = True
    tone: str = MessageTone.PROFESSIONAL
    api_key: Optional[str] = None

    def __post_init__(self):
        if self.tone not in VALID_TONES:
            raise ValueError(f"tone must be one of {VALID_TONES}")

    @classmethod
    def from_settings(cls, settings) -> "GenerationConfig":
        return cls(
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            model_name=settings.llm_model,
            max_context_length=settings.max_context_length,
            include_knowledge_base=settings.include_knowledge_base,
            include_ticket_history=settings.include_ticket_history,
            tone=settings.tone_preference,
        )

    def with_overrides(self, **overrides) -> "GenerationConfig":
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


@dataclass
class GeneratedMessage:
    """
    Draft reply produced by the pipeline.

    used_articles only holds ids actually cited in content.
    confidence is a heuristic in [0, 1], not a calibrated probability.
    """
    content: str
    used_articles: Set[str]
    confidence: float
    tone: str

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0 and 1")
