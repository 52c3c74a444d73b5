"""Domain models and business rules."""

from app.domain.history import History, HistoryEntry, last_occurrence_ids
from app.domain.participant import Participant, ParticipantRole
from app.domain.session import Session

__all__ = [
    "History",
    "HistoryEntry",
    "Participant",
    "ParticipantRole",
    "Session",
    "last_occurrence_ids",
]
