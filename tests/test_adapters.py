"""Tests for in-memory adapters, backend adapters with mocked clients and cleanup."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import RedisError

from app.adapters.broadcast_memory import InMemoryBroadcaster
from app.adapters.metrics_memory import InMemoryMetricsRepository
from app.adapters.session_memory import InMemorySessionRepository
from app.domain.participant import Participant
from app.domain.session import Session
from app.ports.broadcaster import BELL_EVENT, SESSION_STATE_EVENT, channel_name
from app.services.session_cleanup import run_cleanup
from core.exceptions import BroadcastError, ConfigurationError, StorageError
from services.estimation_service import postgres_repository
from services.estimation_service.postgres_repository import PostgresSessionRepository, _affected_rows
from services.estimation_service.redis_broadcaster import RedisBroadcaster
from services.estimation_service.redis_repository import RedisSessionRepository

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_session(session_id="s1", last_activity=NOW):
    session = Session(id=session_id, name="Sprint", created_at=NOW, last_activity=last_activity)
    session.participants["p1"] = Participant(id="p1", name="Alice", vote="5", avatar="dog")
    return session


class TestInMemorySessionRepository:
    """Tests for InMemorySessionRepository."""

    @pytest.mark.asyncio
    async def test_unsaved_changes_are_not_visible(self):
        repo = InMemorySessionRepository()
        await repo.save_session(make_session())

        loaded = await repo.get_session("s1")
        loaded.participants["p1"].vote = "13"

        assert (await repo.get_session("s1")).participants["p1"].vote == "5"

    @pytest.mark.asyncio
    async def test_delete_and_count(self):
        repo = InMemorySessionRepository()
        await repo.save_session(make_session("s1"))
        await repo.save_session(make_session("s2"))
        assert await repo.count_sessions() == 2

        assert await repo.delete_session("s1") is True
        assert await repo.delete_session("s1") is False
        assert await repo.count_sessions() == 1

    @pytest.mark.asyncio
    async def test_purge_expired(self):
        repo = InMemorySessionRepository(retention=timedelta(hours=1))
        await repo.save_session(make_session("old", last_activity=NOW - timedelta(hours=2)))
        await repo.save_session(make_session("new", last_activity=NOW))

        assert await repo.purge_expired(NOW) == 1
        assert await repo.get_session("old") is None
        assert await repo.get_session("new") is not None

    @pytest.mark.asyncio
    async def test_locked_serializes_same_session(self):
        repo = InMemorySessionRepository()
        order = []

        async def worker(name):
            async with repo.locked("s1"):
                order.append(f"{name}-in")
                await asyncio.sleep(0)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]


class TestInMemoryBroadcaster:
    """Tests for InMemoryBroadcaster."""

    @pytest.mark.asyncio
    async def test_subscriber_registered_on_enter(self):
        broadcaster = InMemoryBroadcaster()

        async with broadcaster.subscribe("s1") as messages:
            assert broadcaster.subscriber_count("s1") == 1
            await broadcaster.publish("s1", SESSION_STATE_EVENT, {"id": "s1"})

            message = await asyncio.wait_for(messages.__anext__(), timeout=1)
            assert message == {"event": SESSION_STATE_EVENT, "data": {"id": "s1"}}

        assert broadcaster.subscriber_count("s1") == 0

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self):
        broadcaster = InMemoryBroadcaster()

        async with broadcaster.subscribe("s1") as messages:
            await broadcaster.publish("s2", SESSION_STATE_EVENT, {"id": "s2"})
            await broadcaster.publish("s1", BELL_EVENT, {"from": "Alice"})

            message = await asyncio.wait_for(messages.__anext__(), timeout=1)
            assert message["event"] == BELL_EVENT

    @pytest.mark.asyncio
    async def test_full_queue_drops_message(self):
        broadcaster = InMemoryBroadcaster(max_queue_size=1)

        async with broadcaster.subscribe("s1") as messages:
            await broadcaster.publish("s1", BELL_EVENT, {"n": 1})
            await broadcaster.publish("s1", BELL_EVENT, {"n": 2})

            first = await asyncio.wait_for(messages.__anext__(), timeout=1)
            assert first["data"] == {"n": 1}
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(messages.__anext__(), timeout=0.05)


class TestInMemoryMetricsRepository:
    """Tests for InMemoryMetricsRepository."""

    @pytest.mark.asyncio
    async def test_counts_events_and_errors(self):
        metrics = InMemoryMetricsRepository()
        await metrics.record_event("vote", session_id="s1")
        await metrics.record_event("vote", session_id="s1", status="forbidden")

        snapshot = await metrics.snapshot()
        assert snapshot["events"] == {"vote": 2}
        assert snapshot["errors"] == {"vote:forbidden": 1}
        assert snapshot["total_events"] == 2


class TestSessionCleanup:
    """Tests for the periodic cleanup sweep."""

    @pytest.mark.asyncio
    async def test_records_removed_count(self):
        purge = MagicMock()
        purge.execute = AsyncMock(return_value=3)
        metrics = InMemoryMetricsRepository()

        assert await run_cleanup(purge, metrics) == 3
        assert (await metrics.snapshot())["events"] == {"session_cleanup": 1}

    @pytest.mark.asyncio
    async def test_storage_error_is_reported(self, caplog):
        purge = MagicMock()
        purge.execute = AsyncMock(side_effect=StorageError("down"))
        metrics = InMemoryMetricsRepository()

        assert await run_cleanup(purge, metrics) == 0
        assert (await metrics.snapshot())["errors"] == {"session_cleanup:error": 1}
        assert "Session cleanup failed: down" in caplog.text


def redis_client_mock():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock(return_value=1)
    client.publish = AsyncMock()
    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock()
    client.lock.return_value = lock
    return client


class TestRedisSessionRepository:
    """Tests for RedisSessionRepository with a mocked client."""

    @pytest.mark.asyncio
    async def test_save_refreshes_ttl(self):
        client = redis_client_mock()
        repo = RedisSessionRepository("redis://test", retention=timedelta(days=7), client=client)

        await repo.save_session(make_session())

        key, data = client.set.await_args.args
        assert key == "session:s1"
        assert json.loads(data)["participants"][0]["vote"] == "5"
        assert client.set.await_args.kwargs["ex"] == 7 * 24 * 3600

    @pytest.mark.asyncio
    async def test_get_decodes_snapshot(self):
        client = redis_client_mock()
        client.get.return_value = json.dumps(make_session().to_dict())
        repo = RedisSessionRepository("redis://test", client=client)

        session = await repo.get_session("s1")

        assert session == make_session()

    @pytest.mark.asyncio
    async def test_redis_failure_becomes_storage_error(self):
        client = redis_client_mock()
        client.get.side_effect = RedisError("connection refused")
        repo = RedisSessionRepository("redis://test", client=client)

        with pytest.raises(StorageError):
            await repo.get_session("s1")

    @pytest.mark.asyncio
    async def test_locked_acquires_and_releases(self):
        client = redis_client_mock()
        repo = RedisSessionRepository("redis://test", client=client)

        async with repo.locked("s1"):
            pass

        assert client.lock.call_args.args[0] == "lock:session:s1"
        client.lock.return_value.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_busy_lock_raises(self):
        client = redis_client_mock()
        client.lock.return_value.acquire.return_value = False
        repo = RedisSessionRepository("redis://test", client=client)

        with pytest.raises(StorageError):
            async with repo.locked("s1"):
                pass

    @pytest.mark.asyncio
    async def test_ttl_handles_expiry(self):
        repo = RedisSessionRepository("redis://test", client=redis_client_mock())
        assert await repo.purge_expired(NOW) == 0


class TestRedisBroadcaster:
    """Tests for RedisBroadcaster with a mocked client."""

    @pytest.mark.asyncio
    async def test_publish_on_session_channel(self):
        client = redis_client_mock()
        broadcaster = RedisBroadcaster("redis://test", client=client)

        await broadcaster.publish("s1", SESSION_STATE_EVENT, {"id": "s1"})

        channel, message = client.publish.await_args.args
        assert channel == channel_name("s1") == "session-s1"
        assert json.loads(message) == {"event": SESSION_STATE_EVENT, "data": {"id": "s1"}}

    @pytest.mark.asyncio
    async def test_publish_failure_raises_broadcast_error(self):
        client = redis_client_mock()
        client.publish.side_effect = RedisError("gone")
        broadcaster = RedisBroadcaster("redis://test", client=client)

        with pytest.raises(BroadcastError):
            await broadcaster.publish("s1", "bell", {})


class TestPostgresSessionRepository:
    """Tests for PostgresSessionRepository pool setup."""

    @pytest.mark.asyncio
    async def test_schema_failure_closes_pool(self, monkeypatch):
        pool = MagicMock()
        pool.close = AsyncMock()
        monkeypatch.setattr(postgres_repository.asyncpg, "create_pool", AsyncMock(return_value=pool))
        repo = PostgresSessionRepository("postgresql://test/poker")
        monkeypatch.setattr(repo, "_ensure_schema", AsyncMock(side_effect=OSError("connection reset")))

        with pytest.raises(StorageError):
            await repo.get_session("s1")

        pool.close.assert_awaited_once()
        assert repo._pool is None


class TestPostgresHelpers:
    """Tests for Postgres command status parsing."""

    @pytest.mark.parametrize("status, expected", [("DELETE 3", 3), ("DELETE 0", 0), (None, 0), ("", 0)])
    def test_affected_rows(self, status, expected):
        assert _affected_rows(status) == expected


class TestRepositoryFactory:
    """Tests for configuration-driven backend selection."""

    def test_memory_when_nothing_configured(self, monkeypatch):
        from services.estimation_service import repository

        monkeypatch.setattr(repository, "REDIS_URL", None)
        monkeypatch.setattr(repository, "POSTGRES_DSN", None)

        assert isinstance(repository.get_repository(), InMemorySessionRepository)
        assert isinstance(repository.get_broadcaster(), InMemoryBroadcaster)

    def test_redis_preferred(self, monkeypatch):
        from services.estimation_service import repository

        monkeypatch.setattr(repository, "REDIS_URL", "redis://localhost:6379/0")
        monkeypatch.setattr(repository, "POSTGRES_DSN", "postgresql://localhost/poker")

        assert isinstance(repository.get_repository(), RedisSessionRepository)
        assert isinstance(repository.get_broadcaster(), RedisBroadcaster)

    def test_non_positive_expiry_rejected(self, monkeypatch):
        from services.estimation_service import repository

        monkeypatch.setattr(repository, "SESSION_EXPIRY_SECONDS", 0)

        with pytest.raises(ConfigurationError):
            repository.get_repository()
