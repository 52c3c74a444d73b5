"""Use case for updating the story under estimation."""

from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow


class UpdateStoryUseCase:
    """Store story text and lock flag verbatim; trimming is the caller's job."""

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(self, session_id: str, story: str, story_locked: bool) -> UseCaseResult:
        async with self.session_repo.locked(session_id):
            session = await self.session_repo.get_session(session_id)
            if session is None:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Session not found")

            session.story = story
            session.story_locked = story_locked
            session.touch(self.clock())
            await self.session_repo.save_session(session)
            return UseCaseResult.ok(session)
