"""Redis adapter for session repository."""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError

from app.domain.session import Session
from app.ports.session_repository import SessionRepository
from core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Mutations are a single GET + SET; anything slower means trouble
LOCK_TIMEOUT_SECONDS = 5


class RedisSessionRepository(SessionRepository):
    """Redis implementation of session repository.

    Every save refreshes the key TTL, so idle sessions expire on their own.
    """

    def __init__(
        self,
        redis_url: str,
        retention: timedelta = timedelta(days=7),
        client: Optional[redis.Redis] = None,
    ):
        super().__init__()
        self.redis_url = redis_url
        self.retention = retention
        self._client: Optional[redis.Redis] = client

    async def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    @staticmethod
    def _make_key(session_id: str) -> str:
        """Make Redis key for session."""
        return f"session:{session_id}"

    async def get_session(self, session_id: str) -> Optional[Session]:
        client = await self._get_client()
        try:
            data = await client.get(self._make_key(session_id))
        except RedisError as exc:
            raise StorageError(f"Redis read failed: {exc}") from exc
        if not data:
            return None
        try:
            return Session.from_dict(json.loads(data))
        except (ValueError, KeyError) as exc:
            raise StorageError(f"Corrupted session {session_id}: {exc}") from exc

    async def save_session(self, session: Session) -> None:
        client = await self._get_client()
        data = json.dumps(session.to_dict(), ensure_ascii=False)
        try:
            await client.set(self._make_key(session.id), data, ex=int(self.retention.total_seconds()))
        except RedisError as exc:
            raise StorageError(f"Redis write failed: {exc}") from exc

    async def delete_session(self, session_id: str) -> bool:
        client = await self._get_client()
        try:
            return bool(await client.delete(self._make_key(session_id)))
        except RedisError as exc:
            raise StorageError(f"Redis delete failed: {exc}") from exc

    async def purge_expired(self, now: datetime) -> int:
        """Key TTLs do the work; nothing to sweep."""
        return 0

    async def count_sessions(self) -> int:
        client = await self._get_client()
        count = 0
        try:
            async for _ in client.scan_iter(match="session:*"):
                count += 1
        except RedisError as exc:
            raise StorageError(f"Redis scan failed: {exc}") from exc
        return count

    async def ping(self) -> None:
        client = await self._get_client()
        try:
            await client.ping()
        except RedisError as exc:
            raise StorageError(f"Redis unavailable: {exc}") from exc

    @asynccontextmanager
    async def locked(self, session_id: str) -> AsyncIterator[None]:
        """Serialize mutations across every process sharing this Redis."""
        client = await self._get_client()
        lock = client.lock(
            f"lock:{self._make_key(session_id)}",
            timeout=LOCK_TIMEOUT_SECONDS,
            blocking_timeout=LOCK_TIMEOUT_SECONDS,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise StorageError(f"Redis lock failed: {exc}") from exc
        if not acquired:
            raise StorageError(f"Session {session_id} is busy")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning(f"Lock for session {session_id} expired before release")

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
