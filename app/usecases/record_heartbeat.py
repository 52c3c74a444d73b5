"""Use case for recording a participant heartbeat."""

from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow


class RecordHeartbeatUseCase:
    """Stamp the participant's liveness. Missing heartbeats only affect presence."""

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(self, session_id: str, participant_id: str) -> UseCaseResult:
        async with self.session_repo.locked(session_id):
            session = await self.session_repo.get_session(session_id)
            if session is None:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Session not found")

            participant = session.get_participant(participant_id)
            if participant is None:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Participant not found")

            now = self.clock()
            participant.last_heartbeat = now
            session.touch(now)
            await self.session_repo.save_session(session)
            return UseCaseResult.ok(session)
