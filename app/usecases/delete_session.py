"""Use cases for removing sessions."""

import logging

from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class DeleteSessionUseCase:
    """Use case for deleting a session explicitly."""

    def __init__(self, session_repo: SessionRepository):
        self.session_repo = session_repo

    async def execute(self, session_id: str) -> UseCaseResult:
        async with self.session_repo.locked(session_id):
            deleted = await self.session_repo.delete_session(session_id)
        if not deleted:
            return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Session not found")
        return UseCaseResult.ok(None)


class PurgeExpiredSessionsUseCase:
    """Use case for reclaiming sessions idle past the retention window."""

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(self) -> int:
        """Returns number of sessions removed."""
        removed = await self.session_repo.purge_expired(self.clock())
        if removed:
            logger.info(f"Expired {removed} idle sessions")
        return removed
