"""Participant model for Planning Poker."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from app.utils.clock import from_iso, to_iso


class ParticipantRole(Enum):
    VOTER = "voter"
    OBSERVER = "observer"

    @property
    def can_vote(self) -> bool:
        """Only voters cast votes; observers may still reveal and reset."""
        return self is ParticipantRole.VOTER

    @classmethod
    def parse(cls, value: Optional[str]) -> "ParticipantRole":
        """Anything that is not an explicit observer joins as a voter."""
        if value == cls.OBSERVER.value:
            return cls.OBSERVER
        return cls.VOTER


@dataclass
class Participant:
    """Represents a participant in a session."""

    id: str
    name: str
    role: ParticipantRole = ParticipantRole.VOTER
    vote: Optional[str] = None
    avatar: str = ""
    last_heartbeat: Optional[datetime] = None

    @property
    def can_vote(self) -> bool:
        return self.role.can_vote

    def to_dict(self) -> Dict[str, Any]:
        """Convert participant to dictionary."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "vote": self.vote,
            "avatar": self.avatar,
        }
        if self.last_heartbeat is not None:
            data["lastHeartbeat"] = to_iso(self.last_heartbeat)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """Create participant from dictionary."""
        role = ParticipantRole.parse(data.get("role"))
        return cls(
            id=str(data["id"]),
            name=data.get("name", "Unknown"),
            role=role,
            vote=data.get("vote") if role.can_vote else None,
            avatar=data.get("avatar") or "",
            last_heartbeat=from_iso(data.get("lastHeartbeat")),
        )
