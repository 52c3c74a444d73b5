"""Metrics repository interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class MetricsRepository(ABC):
    """Interface for recording operational metrics and events."""

    @abstractmethod
    async def record_event(
        self,
        event: str,
        session_id: Optional[str] = None,
        participant_id: Optional[str] = None,
        status: str = "ok",
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Persist a single event with optional context."""
        raise NotImplementedError

    @abstractmethod
    async def snapshot(self) -> Dict[str, Any]:
        """Aggregated counters for the metrics endpoint."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Cleanup resources (connections/pools)."""
        raise NotImplementedError
