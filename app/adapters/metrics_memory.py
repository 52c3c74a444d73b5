"""In-memory metrics adapter."""

from collections import Counter
from typing import Any, Dict, Optional

from app.ports.metrics_repository import MetricsRepository


class InMemoryMetricsRepository(MetricsRepository):
    """Counts events per name and status; enough for the metrics endpoint."""

    def __init__(self) -> None:
        self._events: Counter = Counter()
        self._errors: Counter = Counter()

    async def record_event(
        self,
        event: str,
        session_id: Optional[str] = None,
        participant_id: Optional[str] = None,
        status: str = "ok",
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._events[event] += 1
        if status != "ok":
            self._errors[f"{event}:{status}"] += 1

    async def snapshot(self) -> Dict[str, Any]:
        return {
            "events": dict(self._events),
            "errors": dict(self._errors),
            "total_events": sum(self._events.values()),
        }

    async def close(self) -> None:
        return None
