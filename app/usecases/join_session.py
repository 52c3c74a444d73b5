"""Use case for joining a session."""

import logging
from typing import Optional

from app.domain.avatars import random_avatar
from app.domain.participant import Participant, ParticipantRole
from app.domain.session import Session
from app.ports.session_repository import SessionRepository
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.clock import Clock, utcnow
from config import DEFAULT_SESSION_NAME

logger = logging.getLogger(__name__)


class JoinSessionUseCase:
    """Use case for joining (or rejoining) a planning poker session.

    Joining an unknown session id creates it, so a shared link works on its
    own. Rejoining with a known participant id keeps the vote and the avatar
    so a page refresh does not lose anything.
    """

    def __init__(self, session_repo: SessionRepository, clock: Clock = utcnow):
        self.session_repo = session_repo
        self.clock = clock

    async def execute(
        self,
        session_id: str,
        participant_id: str,
        name: str,
        role: ParticipantRole = ParticipantRole.VOTER,
        avatar: Optional[str] = None,
    ) -> UseCaseResult:
        """Join user to session with given role."""
        if not session_id or not participant_id or not name or not name.strip():
            return UseCaseResult.fail(ErrorKind.INVALID_INPUT, "Name and participantId are required")

        async with self.session_repo.locked(session_id):
            now = self.clock()
            session = await self.session_repo.get_session(session_id)
            if session is None:
                logger.info(f"Creating session {session_id} on first join")
                session = Session(id=session_id, name=DEFAULT_SESSION_NAME, created_at=now, last_activity=now)

            existing = session.participants.get(participant_id)
            if existing is not None:
                existing.name = name
                existing.role = role
                if not existing.avatar:
                    existing.avatar = avatar or random_avatar()
                # Observers never hold a vote
                if not role.can_vote:
                    existing.vote = None
            else:
                session.participants[participant_id] = Participant(
                    id=participant_id,
                    name=name,
                    role=role,
                    vote=None,
                    avatar=avatar or random_avatar(),
                )

            session.touch(now)
            await self.session_repo.save_session(session)
            return UseCaseResult.ok(session)
