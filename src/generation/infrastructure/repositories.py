"""
Generation Infrastructure Repositories
======================================

SQLAlchemy implementations of the knowledge store and ticket history.

Each operation opens its own session from the session factory, so these
objects hold no connection state between calls.
"""

from typing import AsyncContextManager, Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core import RepositoryException
from src.generation.application import IKnowledgeStore, ITicketHistory, TicketComment
from src.generation.domain import Article
from src.generation.infrastructure.models import KnowledgeArticleModel, TicketCommentModel
from src.infrastructure.database import get_session_context

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]

TS_CONFIG = "english"


def _to_article(model: KnowledgeArticleModel) -> Article:
    return Article(
        id=str(model.id),
        title=model.title,
        content=model.content,
        category_id=model.category_id,
    )


class SQLAlchemyKnowledgeStore(IKnowledgeStore):
    """Postgres full-text backed knowledge store."""

    def __init__(self, session_factory: SessionFactory = get_session_context):
        self._session_factory = session_factory

    async def _fetch(self, stmt) -> List[Article]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [_to_article(row) for row in result.scalars().all()]
        except Exception as e:
            raise RepositoryException(f"Article query failed: {e}") from e

    async def ping(self) -> None:
        """Fails unless kb_articles can be queried."""
        stmt = select(func.count(KnowledgeArticleModel.id)).limit(1)
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
        except Exception as e:
            raise RepositoryException(f"Knowledge store unavailable: {e}") from e

    async def search_content(self, query: str, limit: int = 10) -> List[Article]:
        document = func.to_tsvector(TS_CONFIG, KnowledgeArticleModel.content)
        stmt = (
            select(KnowledgeArticleModel)
            .where(document.op("@@")(func.to_tsquery(TS_CONFIG, query)))
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def search_phrase(self, phrase: str, limit: int = 10) -> List[Article]:
        document = func.to_tsvector(TS_CONFIG, KnowledgeArticleModel.content)
        stmt = (
            select(KnowledgeArticleModel)
            .where(document.op("@@")(func.phraseto_tsquery(TS_CONFIG, phrase)))
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def search_title(self, fragment: str, limit: int = 10) -> List[Article]:
        stmt = (
            select(KnowledgeArticleModel)
            .where(KnowledgeArticleModel.title.ilike(f"%{fragment}%"))
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def get_article(self, article_id: str) -> Optional[Article]:
        stmt = select(KnowledgeArticleModel).where(KnowledgeArticleModel.id == article_id).limit(1)
        articles = await self._fetch(stmt)
        return articles[0] if articles else None


class SQLAlchemyTicketHistory(ITicketHistory):
    """Ticket conversation read from ticket_comments."""

    def __init__(self, session_factory: SessionFactory = get_session_context):
        self._session_factory = session_factory

    async def list_comments(self, ticket_id: str) -> List[TicketComment]:
        stmt = (
            select(TicketCommentModel)
            .where(TicketCommentModel.ticket_id == ticket_id)
            .order_by(TicketCommentModel.created_at.asc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except Exception as e:
            raise RepositoryException(f"Ticket history query failed: {e}") from e

        return [
            TicketComment(
                author_id=row.user_id,
                content=row.content,
                created_at=row.created_at,
                role=(row.comment_metadata or {}).get("role"),
            )
            for row in rows
        ]
