"""Relational conversation store.

The engine needs two operations only: read the latest active summary of a project
and append one record per processed request.
"""

from typing import Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from modification_service.configuration.postgres_config import PostgresSettings
from modification_service.models.modification_models import ConversationRecord
from modification_service.persistence.db_models import ModificationRecord, ModificationSummary

logger = structlog.get_logger(__name__)


class ConversationStore(Protocol):
    async def fetch_latest_summary(self, project_id: str) -> Optional[str]:
        ...

    async def append_record(self, record: ConversationRecord) -> None:
        ...


class NullConversationStore:
    """Used when no database is configured."""

    async def fetch_latest_summary(self, project_id: str) -> Optional[str]:
        return None

    async def append_record(self, record: ConversationRecord) -> None:
        return None


class SqlConversationStore:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def fetch_latest_summary(self, project_id: str) -> Optional[str]:
        stmt = (
            select(ModificationSummary.summary)
            .where(ModificationSummary.project_id == project_id, ModificationSummary.is_active.is_(True))
            .order_by(ModificationSummary.created_at.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def append_record(self, record: ConversationRecord) -> None:
        async with self._session_factory() as session:
            session.add(ModificationRecord(**record.model_dump()))
            await session.commit()
        logger.debug("conversation_record_appended", session_id=record.session_id, approach=record.approach)


def create_async_db_engine(settings: PostgresSettings) -> AsyncEngine:
    engine = create_async_engine(
        settings.ASYNC_DATABASE_URL,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_recycle=settings.POSTGRES_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=False,
    )
    logger.info(
        "PostgreSQL async engine created",
        host=settings.POSTGRES_HOST,
        port=settings.POSTGRES_PORT,
        db=settings.POSTGRES_DB,
    )
    return engine


def create_conversation_store(settings: PostgresSettings, engine: Optional[AsyncEngine] = None) -> ConversationStore:
    if not settings.POSTGRES_ENABLED:
        return NullConversationStore()
    engine = engine or create_async_db_engine(settings)
    return SqlConversationStore(async_sessionmaker(engine, expire_on_commit=False))
