"""Online/offline evaluation from heartbeats."""

from datetime import datetime, timedelta
from typing import List

from app.domain.participant import Participant
from app.domain.session import Session

# Clients beat every 10s; three missed beats mean offline
HEARTBEAT_INTERVAL = timedelta(milliseconds=10_000)
OFFLINE_THRESHOLD = timedelta(milliseconds=30_000)


def is_online(participant: Participant, now: datetime) -> bool:
    """True while the last heartbeat is strictly younger than the threshold."""
    if participant.last_heartbeat is None:
        return False
    return now - participant.last_heartbeat < OFFLINE_THRESHOLD


def online_participant_ids(session: Session, now: datetime) -> List[str]:
    return [p.id for p in session.participants.values() if is_online(p, now)]
