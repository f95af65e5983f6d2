"""
Generation Domain Layer
=======================

Domain layer for contextual response generation.

Contains:
- Entities: per-call objects (RequestContext, GenerationConfig, GeneratedMessage)
- Prompt plans: NoAccess / NoResults / Grounded selection and rendering
- Analysis: citation extraction and confidence scoring

This layer is framework-agnostic and contains pure business logic.
"""

from src.generation.domain.entities import (
    Article,
    PreviousMessage,
    MessageRole,
    RequestContext,
    GenerationConfig,
    GeneratedMessage,
)
from src.generation.domain.prompts import (
    PromptPlan,
    NoAccessPlan,
    NoResultsPlan,
    GroundedPlan,
    AssembledPrompt,
    PromptAssembler,
    select_prompt_plan,
    serialize_context,
    render_prompt,
)
from src.generation.domain.analysis import (
    ResponseAnalyzer,
    extract_used_articles,
    calculate_confidence,
)

__all__ = [
    "Article",
    "PreviousMessage",
    "MessageRole",
    "RequestContext",
    "GenerationConfig",
    "GeneratedMessage",
    "PromptPlan",
    "NoAccessPlan",
    "NoResultsPlan",
    "GroundedPlan",
    "AssembledPrompt",
    "PromptAssembler",
    "select_prompt_plan",
    "serialize_context",
    "render_prompt",
    "ResponseAnalyzer",
    "extract_used_articles",
    "calculate_confidence",
]
