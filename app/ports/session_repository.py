"""Session repository interface."""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Optional

from app.domain.session import Session


class SessionRepository(ABC):
    """Interface for session persistence.

    Implementations store full snapshots keyed by session id. Mutations go
    through ``locked()`` so that read-modify-write on one session is
    serialized while different sessions proceed independently.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[Session]:
        """Load session or None when it does not exist."""
        pass

    @abstractmethod
    async def save_session(self, session: Session) -> None:
        """Save session state."""
        pass

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        """Delete session. Returns False when there was nothing to delete."""
        pass

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Delete sessions idle past the retention window; returns the count."""
        pass

    async def count_sessions(self) -> int:
        """Number of stored sessions (best effort)."""
        return 0

    async def ping(self) -> None:
        """Raise StorageError when the backend is unreachable."""
        return None

    async def close(self) -> None:
        """Release connections."""
        return None

    @asynccontextmanager
    async def locked(self, session_id: str) -> AsyncIterator[None]:
        """Serialize mutations of one session within this process.

        The lock entry lives only while someone holds or waits on it, so ids
        that never get a session leave nothing behind.
        """
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[session_id] - 1
            if remaining:
                self._lock_users[session_id] = remaining
            else:
                del self._lock_users[session_id]
                del self._locks[session_id]
