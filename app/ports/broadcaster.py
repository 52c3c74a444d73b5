"""Broadcast bus interface."""

from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, AsyncIterator, Dict

SESSION_STATE_EVENT = "session-state"
BELL_EVENT = "bell"


def channel_name(session_id: str) -> str:
    """Per-session channel every member listens on."""
    return f"session-{session_id}"


class Broadcaster(ABC):
    """Publishes session events to every subscriber of a session.

    Delivery is fire-and-forget and at-least-once with no ordering promise;
    subscribers must treat messages idempotently.
    """

    @abstractmethod
    async def publish(self, session_id: str, event: str, payload: Dict[str, Any]) -> None:
        """Publish event to the session channel."""
        pass

    @abstractmethod
    def subscribe(self, session_id: str) -> AsyncContextManager[AsyncIterator[Dict[str, Any]]]:
        """Register a subscriber and yield an iterator of later messages.

        Registration is complete once the context is entered; the iterator
        yields ``{"event": ..., "data": ...}`` dicts until cancelled.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Cleanup resources."""
        pass
