"""Async database engine and session management.

This module provides the core database infrastructure:
- Async SQLAlchemy engine with connection pooling
- Async session factory for operation-scoped sessions
- Database lifecycle management (open/close)

The engine is owned by a Database instance created in the application
lifespan and handed to whoever needs it; there is no module-level state.

Usage:
    from sumlog.core.database import Database

    async with Database(database_url) as db:
        async with db.session() as session:
            ...
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from sumlog.core.logging import get_logger, mask_password

logger = get_logger(__name__)


class Database:
    """Owner of the async engine and its session factory."""

    def __init__(
        self,
        database_url: str,
        *,
        pool_min: int = 2,
        pool_max: int = 10,
        echo: bool = False,
    ) -> None:
        """Create the engine. No connection is opened until first use.

        Args:
            database_url: SQLAlchemy URL with an async driver
            pool_min: Connections kept open in the pool
            pool_max: Upper bound on open connections
            echo: Log emitted SQL
        """
        self.url = database_url

        logger.info("Initializing database", database_url=mask_password(database_url))

        engine_kwargs: dict[str, Any] = {"echo": echo}

        if database_url.startswith("sqlite"):
            # SQLite doesn't support connection pooling the same way
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_size"] = pool_min
            engine_kwargs["max_overflow"] = max(pool_max - pool_min, 0)
            engine_kwargs["pool_pre_ping"] = True

        self._engine: AsyncEngine | None = create_async_engine(
            database_url, **engine_kwargs
        )
        self._session_factory: async_sessionmaker[AsyncSession] | None = (
            async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        )

    @property
    def engine(self) -> AsyncEngine:
        """The engine.

        Raises:
            RuntimeError: If the database has been closed
        """
        if self._engine is None:
            raise RuntimeError("Database is closed.")
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that is rolled back on error and always closed."""
        if self._session_factory is None:
            raise RuntimeError("Database is closed.")
        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Check if the database connection is working."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Dispose of the engine and every pooled connection."""
        if self._engine is not None:
            logger.info("Closing database connections")
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connections closed")

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
