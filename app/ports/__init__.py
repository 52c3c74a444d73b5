"""Ports (interfaces) for dependency inversion."""

from app.ports.broadcaster import Broadcaster
from app.ports.metrics_repository import MetricsRepository
from app.ports.session_repository import SessionRepository

__all__ = ["Broadcaster", "MetricsRepository", "SessionRepository"]
