"""Adapters (implementations) for ports."""

from app.adapters.broadcast_memory import InMemoryBroadcaster
from app.adapters.metrics_memory import InMemoryMetricsRepository
from app.adapters.session_memory import InMemorySessionRepository

__all__ = ["InMemoryBroadcaster", "InMemoryMetricsRepository", "InMemorySessionRepository"]
