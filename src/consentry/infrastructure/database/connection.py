"""
Database Connection Management

Async PostgreSQL access for the consent stores.

Each store operation runs in its own short transaction: the primary
consent write and the preference projection sync commit independently.
A server-side statement timeout bounds every query issued on behalf of
a widget request.

SECURITY: The connection URL embeds the database password; log the
host and database name only.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from consentry.config import Settings, get_settings
from consentry.config.logging_config import get_logger

logger = get_logger(__name__)

APPLICATION_NAME = "consentry"


class Base(DeclarativeBase):
    """Declarative base for the consent ORM models."""


class DatabaseManager:
    """
    Engine and transaction scopes for the repositories.

    Usage:
        db = DatabaseManager(settings)
        await db.initialize()
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    async def initialize(self) -> None:
        """Create the pooled engine. Idempotent."""
        if self._engine is not None:
            return

        db = (self._settings or get_settings()).database
        self._engine = create_async_engine(
            db.async_url,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_pre_ping=True,
            connect_args={
                "server_settings": {
                    "application_name": APPLICATION_NAME,
                    "statement_timeout": str(db.statement_timeout_ms),
                },
            },
        )
        self._sessions = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database pool created",
            host=db.host,
            database=db.name,
            pool_size=db.pool_size,
        )

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Database pool disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One transaction: commit on clean exit, roll back on any exception.

        Raises:
            RuntimeError: If initialize() has not been awaited
        """
        if self._sessions is None:
            raise RuntimeError("DatabaseManager.initialize() has not been awaited")

        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """True when a trivial query round-trips."""
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database health check failed", error_type=type(e).__name__)
            return False
        return True
