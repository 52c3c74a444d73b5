"""Use cases (application layer)."""

from app.usecases.cast_vote import CastVoteUseCase
from app.usecases.create_session import CreateSessionUseCase
from app.usecases.delete_session import DeleteSessionUseCase, PurgeExpiredSessionsUseCase
from app.usecases.get_session import GetSessionUseCase
from app.usecases.join_session import JoinSessionUseCase
from app.usecases.leave_session import LeaveSessionUseCase
from app.usecases.record_heartbeat import RecordHeartbeatUseCase
from app.usecases.reset_round import ResetRoundUseCase
from app.usecases.result import ErrorKind, UseCaseResult
from app.usecases.reveal_votes import RevealVotesUseCase
from app.usecases.update_avatar import UpdateAvatarUseCase
from app.usecases.update_story import UpdateStoryUseCase

__all__ = [
    "CastVoteUseCase",
    "CreateSessionUseCase",
    "DeleteSessionUseCase",
    "ErrorKind",
    "GetSessionUseCase",
    "JoinSessionUseCase",
    "LeaveSessionUseCase",
    "PurgeExpiredSessionsUseCase",
    "RecordHeartbeatUseCase",
    "ResetRoundUseCase",
    "RevealVotesUseCase",
    "UpdateAvatarUseCase",
    "UpdateStoryUseCase",
    "UseCaseResult",
]
