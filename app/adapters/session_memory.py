"""In-memory adapter for session repository."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from app.domain.session import Session
from app.ports.session_repository import SessionRepository

logger = logging.getLogger(__name__)


class InMemorySessionRepository(SessionRepository):
    """Keeps serialized snapshots in a dict.

    Storing dicts rather than live objects means a caller that mutates a
    loaded session changes nothing until it calls ``save_session``.
    """

    def __init__(self, retention: timedelta = timedelta(days=7)):
        super().__init__()
        self.retention = retention
        self._sessions: Dict[str, Dict[str, Any]] = {}

    async def get_session(self, session_id: str) -> Optional[Session]:
        data = self._sessions.get(session_id)
        if data is None:
            return None
        return Session.from_dict(data)

    async def save_session(self, session: Session) -> None:
        self._sessions[session.id] = session.to_dict()

    async def delete_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    async def purge_expired(self, now: datetime) -> int:
        expired = []
        for session_id, data in self._sessions.items():
            if Session.from_dict(data).is_expired(now, self.retention):
                expired.append(session_id)
        for session_id in expired:
            await self.delete_session(session_id)
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    async def count_sessions(self) -> int:
        return len(self._sessions)
