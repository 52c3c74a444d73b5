"""Session model for Planning Poker."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.domain.participant import Participant
from app.utils.clock import from_iso, to_iso, utcnow


@dataclass
class Session:
    """Represents a planning poker session.

    Participants are kept in join order so every client renders the same list.
    """

    id: str
    name: str
    participants: Dict[str, Participant] = field(default_factory=dict)
    revealed: bool = False
    story: str = ""
    story_locked: bool = False
    created_at: datetime = field(default_factory=utcnow)
    last_activity: datetime = field(default_factory=utcnow)

    @property
    def voters(self) -> List[Participant]:
        return [p for p in self.participants.values() if p.can_vote]

    @property
    def observers(self) -> List[Participant]:
        return [p for p in self.participants.values() if not p.can_vote]

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        return self.participants.get(participant_id)

    def touch(self, now: datetime) -> None:
        """Record activity; drives idle expiry."""
        self.last_activity = now

    def is_expired(self, now: datetime, retention: timedelta) -> bool:
        return now - self.last_activity > retention

    def to_dict(self) -> Dict[str, Any]:
        """Full snapshot as sent to clients and stored by the repositories."""
        return {
            "id": self.id,
            "name": self.name,
            "participants": [p.to_dict() for p in self.participants.values()],
            "revealed": self.revealed,
            "story": self.story,
            "storyLocked": self.story_locked,
            "createdAt": to_iso(self.created_at),
            "lastActivity": to_iso(self.last_activity),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        participants: Dict[str, Participant] = {}
        for item in data.get("participants", []):
            participant = Participant.from_dict(item)
            participants[participant.id] = participant

        created_at = from_iso(data.get("createdAt")) or utcnow()
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            participants=participants,
            revealed=bool(data.get("revealed", False)),
            story=data.get("story") or "",
            story_locked=bool(data.get("storyLocked", False)),
            created_at=created_at,
            last_activity=from_iso(data.get("lastActivity")) or created_at,
        )
