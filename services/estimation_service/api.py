"""Estimation API endpoints."""

import asyncio
import contextlib
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field

from app.domain.participant import ParticipantRole
from app.domain.scales import VotingScale
from app.domain.session import Session
from app.ports.broadcaster import BELL_EVENT, SESSION_STATE_EVENT
from app.providers import DIContainer
from app.services.presence import online_participant_ids
from app.services.voting_service import VotingService
from app.usecases.result import ErrorKind, UseCaseResult
from app.utils.audit import audit_log
from core.exceptions import BroadcastError

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_ERROR = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.ALREADY_EXISTS: 409,
}


class ApiModel(BaseModel):
    """Accepts camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)


class CreateSessionRequest(ApiModel):
    name: str = ""


class CreateSessionResponse(ApiModel):
    id: str
    name: str


class JoinRequest(ApiModel):
    participant_id: str = Field("", alias="participantId")
    name: str = ""
    role: str = ParticipantRole.VOTER.value
    avatar: Optional[str] = None


class VoteRequest(ApiModel):
    participant_id: str = Field(alias="participantId")
    vote: Optional[str] = None


class StoryRequest(ApiModel):
    story: str
    story_locked: bool = Field(False, alias="storyLocked")


class AvatarRequest(ApiModel):
    participant_id: str = Field(alias="participantId")
    avatar: str = ""


class ParticipantRequest(ApiModel):
    participant_id: str = Field(alias="participantId")


class BellRequest(ApiModel):
    participant_name: str = Field("", alias="participantName")


def get_container(request: Request) -> DIContainer:
    """Dependency to get the container from app state."""
    return request.app.state.container


async def _record(container: DIContainer, event: str, session_id: str, result: UseCaseResult,
                  participant_id: Optional[str] = None) -> None:
    status = "ok" if result.applied else result.error.value
    await container.metrics.record_event(
        event=event,
        session_id=session_id,
        participant_id=participant_id,
        status=status,
    )


def _unwrap(result: UseCaseResult) -> Optional[Session]:
    """Translate a failed use case into an HTTP error."""
    if not result.applied:
        raise HTTPException(status_code=_STATUS_BY_ERROR[result.error], detail=result.message)
    return result.session


async def _publish(container: DIContainer, session_id: str, event: str, payload: Dict[str, Any]) -> None:
    """Fire-and-forget: a failed broadcast never undoes a committed change."""
    try:
        await container.broadcaster.publish(session_id, event, payload)
    except BroadcastError as exc:
        logger.warning(f"Broadcast of {event} for session {session_id} failed: {exc}")


async def _commit(
    container: DIContainer,
    event: str,
    session_id: str,
    result: UseCaseResult,
    participant_id: Optional[str] = None,
) -> Dict[str, Any]:
    await _record(container, event, session_id, result, participant_id)
    session = _unwrap(result)
    snapshot = session.to_dict()
    await _publish(container, session_id, SESSION_STATE_EVENT, snapshot)
    return snapshot


@router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(
    request: CreateSessionRequest,
    container: DIContainer = Depends(get_container),
) -> CreateSessionResponse:
    """Create session with a fresh id."""
    session_id = str(uuid.uuid4())
    result = await container.create_session.execute(session_id, request.name)
    await _record(container, "create_session", session_id, result)
    session = _unwrap(result)
    logger.info(f"Created session {session.id} ({session.name!r})")
    return CreateSessionResponse(id=session.id, name=session.name)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, container: DIContainer = Depends(get_container)) -> dict:
    """Get session snapshot."""
    result = await container.get_session.execute(session_id)
    return _unwrap(result).to_dict()


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.delete_session.execute(session_id)
    await _record(container, "delete_session", session_id, result)
    _unwrap(result)
    audit_log("delete_session", session_id)
    return {"success": True}


@router.post("/sessions/{session_id}/join")
async def join_session(
    session_id: str,
    request: JoinRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    """Join or rejoin; unknown sessions are created on the fly."""
    result = await container.join_session.execute(
        session_id,
        request.participant_id,
        request.name.strip(),
        ParticipantRole.parse(request.role),
        request.avatar,
    )
    return await _commit(container, "join", session_id, result, request.participant_id)


@router.post("/sessions/{session_id}/vote")
async def cast_vote(
    session_id: str,
    request: VoteRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    """Cast vote; null clears it."""
    if request.vote is not None and not request.vote.strip():
        raise HTTPException(status_code=400, detail="Vote must be a card value or null")
    result = await container.cast_vote.execute(session_id, request.participant_id, request.vote)
    return await _commit(container, "vote", session_id, result, request.participant_id)


@router.post("/sessions/{session_id}/reveal")
async def reveal_votes(session_id: str, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.reveal_votes.execute(session_id)
    return await _commit(container, "reveal", session_id, result)


@router.post("/sessions/{session_id}/reset")
async def reset_round(session_id: str, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.reset_round.execute(session_id)
    snapshot = await _commit(container, "reset", session_id, result)
    audit_log("reset", session_id, extra={"participants": len(snapshot["participants"])})
    return snapshot


@router.post("/sessions/{session_id}/story")
async def update_story(
    session_id: str,
    request: StoryRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.update_story.execute(session_id, request.story, request.story_locked)
    return await _commit(container, "story", session_id, result)


@router.post("/sessions/{session_id}/avatar")
async def update_avatar(
    session_id: str,
    request: AvatarRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.update_avatar.execute(session_id, request.participant_id, request.avatar)
    return await _commit(container, "avatar", session_id, result, request.participant_id)


@router.post("/sessions/{session_id}/heartbeat")
async def heartbeat(
    session_id: str,
    request: ParticipantRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.record_heartbeat.execute(session_id, request.participant_id)
    return await _commit(container, "heartbeat", session_id, result, request.participant_id)


@router.post("/sessions/{session_id}/leave")
async def leave_session(
    session_id: str,
    request: ParticipantRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.leave_session.execute(session_id, request.participant_id)
    await _commit(container, "leave", session_id, result, request.participant_id)
    audit_log("leave", session_id, request.participant_id)
    return {"success": True}


@router.post("/sessions/{session_id}/bell")
async def ring_bell(
    session_id: str,
    request: BellRequest,
    container: DIContainer = Depends(get_container),
) -> dict:
    """Ping everybody in the session; nothing is stored."""
    await _publish(
        container,
        session_id,
        BELL_EVENT,
        {"from": request.participant_name, "timestamp": int(container.clock().timestamp() * 1000)},
    )
    await container.metrics.record_event(event="bell", session_id=session_id)
    return {"success": True}


@router.get("/sessions/{session_id}/result")
async def get_result(
    session_id: str,
    scale: Optional[VotingScale] = None,
    container: DIContainer = Depends(get_container),
) -> dict:
    """Classification of the current votes plus who is online."""
    session = _unwrap(await container.get_session.execute(session_id))
    result = VotingService.classify(session.participants.values(), scale)
    return {
        "revealed": session.revealed,
        "result": result.to_dict(),
        "online": online_participant_ids(session, container.clock()),
    }


@router.websocket("/sessions/{session_id}/ws")
async def session_stream(websocket: WebSocket, session_id: str) -> None:
    """Push every event of the session; starts with the current snapshot."""
    container: DIContainer = websocket.app.state.container
    await websocket.accept()

    # Subscribe before reading the snapshot so no commit falls in between
    async with container.broadcaster.subscribe(session_id) as messages:
        result = await container.get_session.execute(session_id)
        if result.applied:
            await websocket.send_json({"event": SESSION_STATE_EVENT, "data": result.session.to_dict()})

        async def forward() -> None:
            async for message in messages:
                await websocket.send_json(message)

        forward_task = asyncio.create_task(forward())
        try:
            # Inbound frames carry nothing; reading only detects the disconnect
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug(f"Subscriber left session {session_id}")
        finally:
            forward_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                try:
                    await forward_task
                except (WebSocketDisconnect, RuntimeError) as exc:
                    logger.debug(f"Stream to session {session_id} stopped: {exc!r}")
