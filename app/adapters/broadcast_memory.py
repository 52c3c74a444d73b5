"""In-process adapter for the broadcast bus."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Set

from app.ports.broadcaster import Broadcaster

logger = logging.getLogger(__name__)


class InMemoryBroadcaster(Broadcaster):
    """Fans messages out to per-subscriber queues of a single process."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}

    async def publish(self, session_id: str, event: str, payload: Dict[str, Any]) -> None:
        message = {"event": event, "data": payload}
        for queue in list(self._subscribers.get(session_id, ())):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                # A slow subscriber only misses snapshots; the next one supersedes them
                logger.warning(f"Dropping {event} for slow subscriber of session {session_id}")

    @asynccontextmanager
    async def subscribe(self, session_id: str) -> AsyncIterator[AsyncIterator[Dict[str, Any]]]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.setdefault(session_id, set()).add(queue)
        try:
            yield self._drain(queue)
        finally:
            subscribers = self._subscribers.get(session_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[session_id]

    @staticmethod
    async def _drain(queue: asyncio.Queue) -> AsyncIterator[Dict[str, Any]]:
        while True:
            yield await queue.get()

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))

    async def close(self) -> None:
        self._subscribers.clear()
