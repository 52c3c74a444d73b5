"""Tests for local estimation history."""

from datetime import datetime, timezone

from app.domain.history import MAX_HISTORY_ENTRIES, History, HistoryEntry, last_occurrence_ids

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entries(*pairs):
    return [HistoryEntry(id=entry_id, story=f"Story {entry_id}", vote=vote, timestamp=NOW) for entry_id, vote in pairs]


class TestLastOccurrenceIds:
    """Tests for history deduplication."""

    def test_later_entry_supersedes_earlier_one(self):
        entries = _entries(("A", "5"), ("B", "8"), ("C", "5"))
        assert last_occurrence_ids(entries) == {"B", "C"}

    def test_only_newest_per_value(self):
        entries = _entries(("1", "5"), ("2", "5"), ("3", "8"), ("4", "5"), ("5", "8"))
        assert last_occurrence_ids(entries) == {"4", "5"}

    def test_distinct_values_all_flagged(self):
        entries = _entries(("1", "1"), ("2", "2"), ("3", "3"))
        assert last_occurrence_ids(entries) == {"1", "2", "3"}

    def test_empty(self):
        assert last_occurrence_ids([]) == set()


class TestHistory:
    """Tests for bounded History."""

    def test_add_appends_in_order(self):
        history = History()
        first = history.add("Login page", "5", NOW)
        second = history.add("Signup", "8", NOW)
        assert history.entries == [first, second]
        assert first.id != second.id

    def test_evicts_oldest_on_overflow(self):
        history = History()
        added = [history.add(f"Story {i}", str(i), NOW) for i in range(MAX_HISTORY_ENTRIES + 2)]

        assert len(history) == MAX_HISTORY_ENTRIES
        assert history.entries == added[2:]

    def test_last_occurrence_ids_follow_eviction(self):
        history = History(max_entries=2)
        history.add("A", "5", NOW)
        b = history.add("B", "5", NOW)
        c = history.add("C", "3", NOW)
        assert history.last_occurrence_ids() == {b.id, c.id}

    def test_entry_timestamp_in_milliseconds(self):
        entry = History().add("A", "5", NOW)
        assert entry.to_dict()["timestamp"] == int(NOW.timestamp() * 1000)
