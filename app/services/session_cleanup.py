"""Periodic reclamation of idle sessions."""

import asyncio
import logging

from app.ports.metrics_repository import MetricsRepository
from app.usecases.delete_session import PurgeExpiredSessionsUseCase
from core.exceptions import StorageError

logger = logging.getLogger(__name__)


async def run_cleanup(purge: PurgeExpiredSessionsUseCase, metrics: MetricsRepository) -> int:
    """Run one sweep; storage failures are reported, not raised."""
    try:
        removed = await purge.execute()
    except StorageError as exc:
        logger.warning(f"Session cleanup failed: {exc}")
        await metrics.record_event(event="session_cleanup", status="error", payload={"error": str(exc)[:200]})
        return 0
    await metrics.record_event(event="session_cleanup", payload={"removed": removed})
    return removed


async def cleanup_loop(
    purge: PurgeExpiredSessionsUseCase,
    metrics: MetricsRepository,
    interval_seconds: float,
) -> None:
    """Background task: sweep expired sessions every interval."""
    while True:
        await asyncio.sleep(interval_seconds)
        await run_cleanup(purge, metrics)
