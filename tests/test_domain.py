"""Tests for domain models."""

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.avatars import AVATARS, next_avatar, random_avatar
from app.domain.participant import Participant, ParticipantRole
from app.domain.scales import VotingScale, next_scale, numeric_values, parse_number
from app.domain.session import Session

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestParticipantRole:
    """Tests for ParticipantRole capability checks."""

    def test_only_voters_can_vote(self):
        assert ParticipantRole.VOTER.can_vote is True
        assert ParticipantRole.OBSERVER.can_vote is False

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("voter", ParticipantRole.VOTER),
            ("observer", ParticipantRole.OBSERVER),
            ("estimator", ParticipantRole.VOTER),
            (None, ParticipantRole.VOTER),
        ],
    )
    def test_parse(self, raw, expected):
        assert ParticipantRole.parse(raw) is expected


class TestParticipant:
    """Tests for Participant serialization."""

    def test_to_dict_uses_wire_names(self):
        participant = Participant(
            id="p1", name="Alice", role=ParticipantRole.VOTER, vote="5", avatar="dog", last_heartbeat=NOW
        )
        data = participant.to_dict()
        assert data == {
            "id": "p1",
            "name": "Alice",
            "role": "voter",
            "vote": "5",
            "avatar": "dog",
            "lastHeartbeat": NOW.isoformat(),
        }

    def test_heartbeat_absent_until_recorded(self):
        data = Participant(id="p1", name="Alice").to_dict()
        assert "lastHeartbeat" not in data

    def test_from_dict_drops_observer_vote(self):
        participant = Participant.from_dict({"id": "p2", "name": "Bob", "role": "observer", "vote": "8"})
        assert participant.role is ParticipantRole.OBSERVER
        assert participant.vote is None

    def test_from_dict_parses_browser_timestamp(self):
        participant = Participant.from_dict(
            {"id": "p1", "name": "Alice", "lastHeartbeat": "2024-01-01T12:00:00.000Z"}
        )
        assert participant.last_heartbeat == NOW


class TestSession:
    """Tests for Session model."""

    def test_participants_keep_join_order(self):
        session = Session(id="s1", name="Sprint")
        for pid in ("c", "a", "b"):
            session.participants[pid] = Participant(id=pid, name=pid.upper())

        restored = Session.from_dict(session.to_dict())
        assert list(restored.participants) == ["c", "a", "b"]

    def test_snapshot_round_trip_keeps_state(self):
        session = Session(
            id="s1",
            name="Sprint",
            revealed=True,
            story="JIRA-1",
            story_locked=True,
            created_at=NOW,
            last_activity=NOW,
        )
        session.participants["p1"] = Participant(id="p1", name="Alice", vote="3", avatar="cow")

        restored = Session.from_dict(session.to_dict())
        assert restored == session

    def test_voters_and_observers(self):
        session = Session(id="s1", name="Sprint")
        session.participants["p1"] = Participant(id="p1", name="Alice")
        session.participants["p2"] = Participant(id="p2", name="Bob", role=ParticipantRole.OBSERVER)
        assert [p.id for p in session.voters] == ["p1"]
        assert [p.id for p in session.observers] == ["p2"]

    def test_is_expired(self):
        session = Session(id="s1", name="Sprint", created_at=NOW, last_activity=NOW)
        retention = timedelta(days=7)
        assert session.is_expired(NOW + retention, retention) is False
        assert session.is_expired(NOW + retention + timedelta(seconds=1), retention) is True


class TestAvatars:
    """Tests for avatar catalog."""

    def test_catalog_is_alphabetical(self):
        assert list(AVATARS) == sorted(AVATARS)

    def test_next_avatar_cycles(self):
        assert next_avatar("chicken") == "cow"
        assert next_avatar("tiger") == "chicken"

    def test_next_avatar_unknown_restarts(self):
        assert next_avatar("unicorn") == AVATARS[0]
        assert next_avatar(None) == AVATARS[0]

    def test_random_avatar_from_catalog(self):
        assert random_avatar() in AVATARS


class TestScales:
    """Tests for voting scales."""

    def test_fibonacci_numeric_values(self):
        assert numeric_values(VotingScale.FIBONACCI) == ["0", "1", "2", "3", "5", "8", "13", "21"]

    def test_tshirt_has_no_numeric_values(self):
        assert numeric_values(VotingScale.TSHIRT) == []

    def test_parse_number_rejects_non_estimates(self):
        assert parse_number("5") == 5.0
        assert parse_number("?") is None
        assert parse_number("nan") is None
        assert parse_number("inf") is None

    def test_next_scale_wraps(self):
        assert next_scale(VotingScale.FIBONACCI) is VotingScale.TSHIRT
        assert next_scale(VotingScale.TSHIRT) is VotingScale.FIBONACCI
        assert next_scale(VotingScale.FIBONACCI, -1) is VotingScale.TSHIRT
