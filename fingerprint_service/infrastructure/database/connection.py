"""
Database Connection Management
Async SQLAlchemy 2.0 engine and session factory owned by one Database object.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fingerprint_service.core.config import Settings
from fingerprint_service.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine with bounded connect and statement timeouts."""
    url = make_url(settings.database_url)
    timeout = settings.database.timeout_seconds

    if url.get_backend_name() == "sqlite":
        # SQLite busy timeout bounds how long a writer waits for the lock
        return create_async_engine(
            url,
            connect_args={"timeout": timeout},
            echo=settings.DEBUG,
        )

    return create_async_engine(
        url,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        pool_timeout=timeout,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        connect_args={"timeout": timeout, "command_timeout": timeout},
        echo=settings.DEBUG,  # Log SQL queries in debug mode
    )


class Database:
    """Owns the engine and hands out sessions; built once at startup."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(build_engine(settings))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions.
        Commits on success, rolls back on any error.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """
        Create tables if they don't exist.
        The alembic revision under alembic/versions describes the same schema.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def dispose(self) -> None:
        """Close database connections (called on application shutdown)."""
        await self.engine.dispose()
