"""Client-side reconciliation of server snapshots with local edits.

The server broadcasts full snapshots at least once and in no particular
order. A client keeps two layers: the last confirmed snapshot and a
``PendingEdits`` overlay with whatever the user changed locally and the
server has not echoed yet. ``reconcile`` merges them into what is shown.
"""

import copy
from dataclasses import dataclass, replace
from typing import Optional

from app.domain.session import Session


@dataclass(frozen=True)
class PendingEdits:
    """Local edits not yet confirmed by a snapshot."""

    vote_in_flight: bool = False
    vote: Optional[str] = None
    story_draft: Optional[str] = None

    def with_vote(self, vote: Optional[str]) -> "PendingEdits":
        return replace(self, vote_in_flight=True, vote=vote)

    def with_story_draft(self, text: str) -> "PendingEdits":
        return replace(self, story_draft=text)

    def without_vote(self) -> "PendingEdits":
        return replace(self, vote_in_flight=False, vote=None)

    def without_story_draft(self) -> "PendingEdits":
        return replace(self, story_draft=None)


@dataclass(frozen=True)
class SessionView:
    """What the client renders."""

    session: Session
    story_text: str
    editing_story: bool
    my_vote: Optional[str]


def is_newer(candidate: Session, current: Optional[Session]) -> bool:
    """Whether a snapshot may replace the current one.

    Equal activity stamps are accepted so a duplicate delivery is harmless.
    """
    if current is None:
        return True
    if candidate.id != current.id:
        return False
    return candidate.last_activity >= current.last_activity


def settle(pending: PendingEdits, snapshot: Session, participant_id: Optional[str]) -> PendingEdits:
    """Drop the parts of the overlay the snapshot has caught up with."""
    if pending.vote_in_flight and participant_id is not None:
        me = snapshot.participants.get(participant_id)
        if me is None or not me.can_vote or me.vote == pending.vote:
            pending = pending.without_vote()
    if pending.story_draft is not None and snapshot.story_locked:
        pending = pending.without_story_draft()
    return pending


def reconcile(snapshot: Session, pending: PendingEdits, participant_id: Optional[str]) -> SessionView:
    """Merge the confirmed snapshot with the local overlay.

    Participants, votes and the revealed flag come from the server; the only
    exceptions are this client's own in-flight vote and a story that is being
    typed while the server copy is unlocked.
    """
    session = copy.deepcopy(snapshot)
    me = session.participants.get(participant_id) if participant_id is not None else None

    if me is not None and me.can_vote and pending.vote_in_flight:
        me.vote = pending.vote

    editing_story = pending.story_draft is not None and not snapshot.story_locked
    story_text = pending.story_draft if editing_story else snapshot.story

    return SessionView(
        session=session,
        story_text=story_text,
        editing_story=editing_story,
        my_vote=me.vote if me is not None else None,
    )
