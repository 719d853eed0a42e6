"""HistoryLog - durable, append-only log of calculations.

Each operation acquires its own session from the pool and releases it on
every exit path. Every operation is bounded by a timeout; a timeout is
reported the same way as any other database failure.
"""

import asyncio

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from sumlog.core.database import Database
from sumlog.core.exceptions import PersistenceError
from sumlog.core.logging import get_logger
from sumlog.models.base import Base
from sumlog.models.history import HistoryRecord

logger = get_logger(__name__)

# Failures that mean "the database did not do what we asked"
DATABASE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


class HistoryLog:
    """Repository for HistoryRecord rows.

    Usage:
        ```python
        log = HistoryLog(database, timeout=5.0)
        await log.ensure_schema()
        await log.append(2.0, 3.0, 5.0)
        records = await log.recent_records(limit=5)
        ```
    """

    DEFAULT_LIMIT = 5

    def __init__(self, database: Database, *, timeout: float = 5.0) -> None:
        """Initialize the log.

        Args:
            database: Database owning the connection pool
            timeout: Upper bound in seconds for each operation
        """
        self.database = database
        self.timeout = timeout

    async def append(self, num1: float, num2: float, result: float) -> HistoryRecord:
        """Insert one record in its own transaction.

        The identity and created_at come back with the INSERT itself, so the
        commit is the last statement: once it succeeds the append has succeeded.

        Raises:
            PersistenceError: If the insert fails or times out
        """
        record = HistoryRecord(num1=num1, num2=num2, result=result)
        try:
            async with asyncio.timeout(self.timeout):
                async with self.database.session() as session:
                    session.add(record)
                    await session.flush()
                    await session.commit()
        except DATABASE_ERRORS as e:
            logger.error(
                "history_append_failed",
                num1=num1,
                num2=num2,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise PersistenceError(operation="append", error=str(e)) from e

        logger.debug("history_appended", record_id=record.id, result=result)
        return record

    async def recent_records(self, limit: int = DEFAULT_LIMIT) -> list[HistoryRecord]:
        """Get up to ``limit`` records, newest first.

        Ties on created_at are broken by id so records inserted within the
        same clock tick keep their insertion order.

        Raises:
            PersistenceError: If the query fails or times out
        """
        try:
            async with asyncio.timeout(self.timeout):
                async with self.database.session() as session:
                    result = await session.execute(
                        select(HistoryRecord)
                        .order_by(
                            HistoryRecord.created_at.desc(), HistoryRecord.id.desc()
                        )
                        .limit(limit)
                    )
                    return list(result.scalars().all())
        except DATABASE_ERRORS as e:
            logger.error(
                "history_query_failed",
                limit=limit,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise PersistenceError(operation="recent_records", error=str(e)) from e

    async def ensure_schema(self) -> None:
        """Create the backing table if it does not exist yet.

        Existing tables and their rows are left untouched.

        Raises:
            PersistenceError: If the DDL fails or times out
        """
        try:
            async with asyncio.timeout(self.timeout):
                async with self.database.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        except DATABASE_ERRORS as e:
            logger.error(
                "schema_setup_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise PersistenceError(operation="ensure_schema", error=str(e)) from e

        logger.info("Schema ensured", table=HistoryRecord.__tablename__)

    async def ping(self) -> bool:
        return await self.database.ping()
