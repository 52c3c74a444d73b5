"""Use case for leaving a session."""

from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow


class LeaveSessionUseCase:
    """Use case for leaving a planning poker session."""

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(self, session_id: str, participant_id: str) -> UseCaseResult:
        """Remove user from session, vote included."""
        async with self.session_repo.locked(session_id):
            session = await self.session_repo.get_session(session_id)
            if session is None:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Session not found")

            if participant_id not in session.participants:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Participant not found")

            session.participants.pop(participant_id, None)
            session.touch(self.clock())
            await self.session_repo.save_session(session)
            return UseCaseResult.ok(session)
