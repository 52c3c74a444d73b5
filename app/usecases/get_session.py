"""Use case for reading a session."""

from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult


class GetSessionUseCase:
    def __init__(self, session_repo: SessionRepository):
        self.session_repo = session_repo

    async def execute(self, session_id: str) -> UseCaseResult:
        session = await self.session_repo.get_session(session_id)
        if session is None:
            return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Session not found")
        return UseCaseResult.ok(session)
