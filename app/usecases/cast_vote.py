"""Use case for casting a vote."""

from typing import Optional

from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow


class CastVoteUseCase:
    """Use case for casting (or clearing) a vote in the current round.

    Votes are accepted after reveal as well: clients disable the cards once
    the round is revealed, this layer deliberately does not.
    """

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(self, session_id: str, participant_id: str, vote_value: Optional[str]) -> UseCaseResult:
        """Set vote; None clears it."""
        async with self.session_repo.locked(session_id):
            session = await self.session_repo.get_session(session_id)
            if session is None:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Session not found")

            participant = session.get_participant(participant_id)
            if participant is None:
                return UseCaseResult.fail(ErrorKind.NOT_FOUND, "Participant not found")

            if not participant.can_vote:
                return UseCaseResult.fail(ErrorKind.FORBIDDEN, "Observers cannot vote")

            participant.vote = vote_value
            session.touch(self.clock())
            await self.session_repo.save_session(session)
            return UseCaseResult.ok(session)
