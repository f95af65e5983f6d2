"""
Generation Infrastructure Layer
===============================

Infrastructure implementations for the generation module.

Contains:
- Models: SQLAlchemy ORM models (kb_articles, ticket_comments)
- Repositories: knowledge store and ticket history
- External: completion provider adapter
"""

from src.generation.infrastructure.models import KnowledgeArticleModel, TicketCommentModel
from src.generation.infrastructure.repositories import (
    SQLAlchemyKnowledgeStore,
    SQLAlchemyTicketHistory,
)
from src.generation.infrastructure.external import CompletionProviderAdapter

__all__ = [
    "KnowledgeArticleModel",
    "TicketCommentModel",
    "SQLAlchemyKnowledgeStore",
    "SQLAlchemyTicketHistory",
    "CompletionProviderAdapter",
]
