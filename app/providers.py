"""Dependency injection container."""

from typing import Optional

from app.adapters.broadcast_memory import InMemoryBroadcaster
from app.adapters.metrics_memory import InMemoryMetricsRepository
from app.adapters.session_memory import InMemorySessionRepository
from app.ports.broadcaster import Broadcaster
from app.ports.metrics_repository import MetricsRepository
from app.ports.session_repository import SessionRepository
from app.usecases.cast_vote import CastVoteUseCase
from app.usecases.create_session import CreateSessionUseCase
from app.usecases.delete_session import DeleteSessionUseCase, PurgeExpiredSessionsUseCase
from app.usecases.get_session import GetSessionUseCase
from app.usecases.join_session import JoinSessionUseCase
from app.usecases.leave_session import LeaveSessionUseCase
from app.usecases.record_heartbeat import RecordHeartbeatUseCase
from app.usecases.reset_round import ResetRoundUseCase
from app.usecases.reveal_votes import RevealVotesUseCase
from app.usecases.update_avatar import UpdateAvatarUseCase
from app.usecases.update_story import UpdateStoryUseCase
from app.utils.clock import Clock, utcnow


class DIContainer:
    """Dependency injection container.

    Everything defaults to the in-memory adapters, which is what tests use;
    the service entry point passes Redis/Postgres backed ones.
    """

    def __init__(
        self,
        session_repo: Optional[SessionRepository] = None,
        broadcaster: Optional[Broadcaster] = None,
        metrics_repo: Optional[MetricsRepository] = None,
        clock: Clock = utcnow,
    ):
        self._session_repo = session_repo or InMemorySessionRepository()
        self._broadcaster = broadcaster or InMemoryBroadcaster()
        self._metrics = metrics_repo or InMemoryMetricsRepository()
        self.clock = clock

        # Use cases
        self.create_session = CreateSessionUseCase(self._session_repo, clock)
        self.get_session = GetSessionUseCase(self._session_repo)
        self.join_session = JoinSessionUseCase(self._session_repo, clock)
        self.cast_vote = CastVoteUseCase(self._session_repo, clock)
        self.reveal_votes = RevealVotesUseCase(self._session_repo, clock)
        self.reset_round = ResetRoundUseCase(self._session_repo, clock)
        self.update_story = UpdateStoryUseCase(self._session_repo, clock)
        self.update_avatar = UpdateAvatarUseCase(self._session_repo, clock)
        self.record_heartbeat = RecordHeartbeatUseCase(self._session_repo, clock)
        self.leave_session = LeaveSessionUseCase(self._session_repo, clock)
        self.delete_session = DeleteSessionUseCase(self._session_repo)
        self.purge_expired = PurgeExpiredSessionsUseCase(self._session_repo, clock)

    @property
    def session_repo(self) -> SessionRepository:
        """Get session repository."""
        return self._session_repo

    @property
    def broadcaster(self) -> Broadcaster:
        """Get broadcast bus."""
        return self._broadcaster

    @property
    def metrics(self) -> MetricsRepository:
        """Get metrics repository."""
        return self._metrics

    async def cleanup(self) -> None:
        """Cleanup resources."""
        await self._broadcaster.close()
        await self._session_repo.close()
        await self._metrics.close()
