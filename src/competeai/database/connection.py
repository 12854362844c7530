"""Database connection and session management.

Engines are built from an explicit Settings object and handed to the
components that need them; nothing connects at import time.
"""

import logging
from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from competeai.config import Settings
from competeai.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Async engine for PostgreSQL with asyncpg."""
    return create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before using
    )


@contextmanager
def unavailable_on_error(what: str = "Embedding store") -> Iterator[None]:
    """Turn driver and socket errors into StoreUnavailableError."""
    try:
        yield
    except (DBAPIError, OSError) as e:
        logger.error(f"{what} error: {e}")
        raise StoreUnavailableError(f"{what} unavailable: {e}") from e


class Database:
    """Owns the async engine and session factory for one process."""

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None):
        self.engine = engine or create_engine_from_settings(settings)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Transactional session scope.

        Usage:
            async with database.session() as session:
                await session.execute(...)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init_db(self) -> None:
        """Enable pgvector and create all tables. For development and first deploys."""
        from competeai.database.models import Base

        async with self.engine.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Raise if the database cannot be reached."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Close database connections. Call on shutdown."""
        await self.engine.dispose()
