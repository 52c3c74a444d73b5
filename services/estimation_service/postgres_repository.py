"""Postgres adapter for session repository."""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Optional

import asyncpg

from app.domain.session import Session
from app.ports.session_repository import SessionRepository
from core.exceptions import StorageError

logger = logging.getLogger(__name__)


class PostgresSessionRepository(SessionRepository):
    """Postgres implementation of session repository.

    Mutations are serialized per process only (inherited ``locked``); run a
    single service instance against one database.
    """

    def __init__(
        self,
        dsn: str,
        retention: timedelta = timedelta(days=7),
        table: str = "estimation_sessions",
        min_pool_size: int = 1,
        max_pool_size: int = 5,
    ):
        super().__init__()
        self.dsn = dsn
        self.retention = retention
        self.table = table
        self._pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()
        self._pool_kwargs = {"min_size": min_pool_size, "max_size": max_pool_size}

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            async with self._pool_lock:
                if self._pool is None:
                    try:
                        pool = await asyncpg.create_pool(self.dsn, **self._pool_kwargs)
                    except (OSError, asyncpg.PostgresError) as exc:
                        raise StorageError(f"Postgres unavailable: {exc}") from exc
                    try:
                        await self._ensure_schema(pool)
                    except (OSError, asyncpg.PostgresError) as exc:
                        await pool.close()
                        raise StorageError(f"Postgres schema setup failed: {exc}") from exc
                    self._pool = pool
        return self._pool

    async def _ensure_schema(self, pool: asyncpg.Pool) -> None:
        """Ensure database schema exists."""
        async with pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id TEXT PRIMARY KEY,
                    data JSONB NOT NULL,
                    last_activity TIMESTAMPTZ NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_{self.table}_last_activity ON {self.table}(last_activity);
                """
            )

    async def get_session(self, session_id: str) -> Optional[Session]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(f"SELECT data FROM {self.table} WHERE id = $1", session_id)
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageError(f"Postgres read failed: {exc}") from exc
        if row is None:
            return None
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        return Session.from_dict(data)

    async def save_session(self, session: Session) -> None:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO {self.table} (id, data, last_activity)
                    VALUES ($1, $2::jsonb, $3)
                    ON CONFLICT (id)
                    DO UPDATE SET data = EXCLUDED.data, last_activity = EXCLUDED.last_activity
                    """,
                    session.id,
                    json.dumps(session.to_dict(), ensure_ascii=False),
                    session.last_activity,
                )
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageError(f"Postgres write failed: {exc}") from exc

    async def delete_session(self, session_id: str) -> bool:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                status = await conn.execute(f"DELETE FROM {self.table} WHERE id = $1", session_id)
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageError(f"Postgres delete failed: {exc}") from exc
        return _affected_rows(status) > 0

    async def purge_expired(self, now: datetime) -> int:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                status = await conn.execute(
                    f"DELETE FROM {self.table} WHERE last_activity < $1",
                    now - self.retention,
                )
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageError(f"Postgres purge failed: {exc}") from exc
        removed = _affected_rows(status)
        if removed:
            logger.info(f"Purged {removed} expired sessions")
        return removed

    async def count_sessions(self) -> int:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                return await conn.fetchval(f"SELECT COUNT(*) FROM {self.table}")
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageError(f"Postgres count failed: {exc}") from exc

    async def ping(self) -> None:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageError(f"Postgres unavailable: {exc}") from exc

    async def close(self) -> None:
        """Close connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


def _affected_rows(status: str) -> int:
    """Parse asyncpg command status such as 'DELETE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
