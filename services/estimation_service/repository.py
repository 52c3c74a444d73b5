"""Backend factory for the estimation service."""

import logging
from datetime import timedelta

from app.adapters.broadcast_memory import InMemoryBroadcaster
from app.adapters.session_memory import InMemorySessionRepository
from app.ports.broadcaster import Broadcaster
from app.ports.session_repository import SessionRepository
from config import POSTGRES_DSN, REDIS_URL, SESSION_EXPIRY_SECONDS
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def get_repository() -> SessionRepository:
    """Get session repository based on configuration (Redis, Postgres, memory)."""
    if SESSION_EXPIRY_SECONDS <= 0:
        raise ConfigurationError("SESSION_EXPIRY_SECONDS must be positive", error_code="bad_expiry")
    retention = timedelta(seconds=SESSION_EXPIRY_SECONDS)
    if REDIS_URL:
        from services.estimation_service.redis_repository import RedisSessionRepository

        logger.info("Using Redis session repository")
        return RedisSessionRepository(REDIS_URL, retention=retention)

    if POSTGRES_DSN:
        from services.estimation_service.postgres_repository import PostgresSessionRepository

        logger.info("Using Postgres session repository")
        return PostgresSessionRepository(POSTGRES_DSN, retention=retention)

    logger.warning("No REDIS_URL/POSTGRES_DSN set, sessions live in process memory")
    return InMemorySessionRepository(retention=retention)


def get_broadcaster() -> Broadcaster:
    """Redis pub/sub when Redis is configured, otherwise in-process fan-out."""
    if REDIS_URL:
        from services.estimation_service.redis_broadcaster import RedisBroadcaster

        return RedisBroadcaster(REDIS_URL)
    return InMemoryBroadcaster()
