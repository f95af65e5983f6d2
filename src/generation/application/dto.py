"""
Generation Application DTOs
===========================

Data Transfer Objects for the generation API layer.

Pydantic models for request/response validation. JSON keys are camelCase;
snake_case is accepted on input as well.
"""

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.generation.domain import (
    Article,
    GeneratedMessage,
    GenerationConfig,
    PreviousMessage,
    RequestContext,
)


# ========== Type Aliases for Literals ==========
ToneStr = Literal["formal", "casual", "friendly", "professional"]
RoleStr = Literal["customer", "agent"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


# ========== Request DTOs ==========

class ArticlePayload(CamelModel):
    """Knowledge base article supplied by the caller."""
    id: str = Field(..., min_length=1)
    title: str
    content: str
    category_id: Optional[str] = None

    def to_domain(self) -> Article:
        return Article(
            id=self.id,
            title=self.title,
            content=self.content,
            category_id=self.category_id,
        )


class PreviousMessagePayload(CamelModel):
    """One prior turn of the conversation."""
    role: RoleStr = "customer"
    content: str
    timestamp: Optional[str] = None


class MessageContextPayload(CamelModel):
    """Request context as sent by clients."""
    ticket_id: Optional[str] = None
    customer_id: Optional[str] = None
    previous_messages: List[PreviousMessagePayload] = Field(default_factory=list)
    relevant_articles: List[ArticlePayload] = Field(default_factory=list)
    has_valid_db_access: bool = True
    force_empty_results: bool = False
    skip_test_articles: bool = False
    pinned_article_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pinnedArticleId", "pinned_article_id", "testArticleId"),
    )

    def to_domain(self) -> RequestContext:
        return RequestContext(
            ticket_id=self.ticket_id,
            customer_id=self.customer_id,
            previous_messages=[
                PreviousMessage(role=m.role, content=m.content, timestamp=m.timestamp)
                for m in self.previous_messages
            ],
            relevant_articles=[a.to_domain() for a in self.relevant_articles],
            has_valid_db_access=self.has_valid_db_access,
            force_empty_results=self.force_empty_results,
            skip_test_articles=self.skip_test_articles,
            pinned_article_id=self.pinned_article_id,
        )


class GenerationConfigOverrides(CamelModel):
    """Per-request overrides of the service generation config."""
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, ge=1, le=8000)
    model_name: Optional[str] = None
    max_context_length: Optional[int] = Field(None, ge=200)
    include_knowledge_base: Optional[bool] = None
    include_ticket_history: Optional[bool] = None
    tone: Optional[ToneStr] = None

    def apply(self, base: GenerationConfig) -> GenerationConfig:
        return base.with_overrides(**self.model_dump())


class GenerateMessageRequest(CamelModel):
    """Body of the message generation endpoints."""
    prompt: Optional[str] = None
    context: MessageContextPayload = Field(default_factory=MessageContextPayload)
    config: Optional[GenerationConfigOverrides] = None


# ========== Response DTOs ==========

class GenerateMessageResponse(CamelModel):
    """Generated draft reply."""
    content: str
    used_articles: List[str]
    confidence: float = Field(..., ge=0.0, le=1.0)
    tone: ToneStr

    @classmethod
    def from_domain(cls, message: GeneratedMessage) -> "GenerateMessageResponse":
        return cls(
            content=message.content,
            used_articles=sorted(message.used_articles),
            confidence=message.confidence,
            tone=message.tone,
        )


class ErrorResponse(BaseModel):
    """Error body returned by the generation endpoints."""
    error: str
