"""Client-local estimation history."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from app.utils.clock import utcnow

MAX_HISTORY_ENTRIES = 8


@dataclass(frozen=True)
class HistoryEntry:
    """A story together with the estimate the team settled on."""

    id: str
    story: str
    vote: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "story": self.story,
            "vote": self.vote,
            "timestamp": int(self.timestamp.timestamp() * 1000),
        }


def last_occurrence_ids(entries: Iterable[HistoryEntry]) -> Set[str]:
    """Ids of the entries that are the most recent occurrence of their vote.

    Walks from newest to oldest; older entries with an already seen vote
    are left out.
    """
    seen_votes: Set[str] = set()
    result: Set[str] = set()
    for entry in reversed(list(entries)):
        if entry.vote in seen_votes:
            continue
        seen_votes.add(entry.vote)
        result.add(entry.id)
    return result


@dataclass
class History:
    """Append-only log that keeps only the newest entries."""

    max_entries: int = MAX_HISTORY_ENTRIES
    entries: List[HistoryEntry] = field(default_factory=list)

    def add(self, story: str, vote: str, timestamp: Optional[datetime] = None) -> HistoryEntry:
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            story=story,
            vote=vote,
            timestamp=timestamp or utcnow(),
        )
        self.entries.append(entry)
        # Oldest first out
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]
        return entry

    def last_occurrence_ids(self) -> Set[str]:
        return last_occurrence_ids(self.entries)

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)
