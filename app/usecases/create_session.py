"""Use case for creating a session."""

from app.domain.session import Session
from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow


class CreateSessionUseCase:
    """Use case for creating an empty planning poker session."""

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(self, session_id: str, name: str) -> UseCaseResult:
        """Create session; an id already in use is rejected and left intact."""
        if not session_id or not name or not name.strip():
            return UseCaseResult.fail(ErrorKind.INVALID_INPUT, "Session name is required")

        async with self.session_repo.locked(session_id):
            if await self.session_repo.get_session(session_id) is not None:
                return UseCaseResult.fail(ErrorKind.ALREADY_EXISTS, "Session already exists")

            now = self.clock()
            session = Session(id=session_id, name=name, created_at=now, last_activity=now)
            await self.session_repo.save_session(session)
            return UseCaseResult.ok(session)
