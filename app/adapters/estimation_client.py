"""HTTP/WebSocket client for the estimation service."""

import asyncio
import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp

from app.domain.avatars import next_avatar
from app.domain.history import History, HistoryEntry
from app.domain.participant import Participant, ParticipantRole
from app.domain.scales import DEFAULT_SCALE, VotingScale, next_scale
from app.domain.session import Session
from app.ports.broadcaster import SESSION_STATE_EVENT
from app.services.presence import HEARTBEAT_INTERVAL, online_participant_ids
from app.services.sync import PendingEdits, SessionView, is_newer, reconcile, settle
from app.services.voting_service import VoteResult, VotingService
from app.utils.clock import Clock, utcnow
from config import ESTIMATION_SERVICE_URL
from core.exceptions import ClientError, ValidationError

logger = logging.getLogger(__name__)


class EstimationClient:
    """One participant's connection to one session.

    Keeps the last confirmed snapshot plus local pending edits and renders
    them through ``reconcile``; history is local to the client.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session_id: Optional[str] = None,
        timeout: int = 30,
        clock: Clock = utcnow,
    ):
        self.base_url = (base_url or ESTIMATION_SERVICE_URL).rstrip("/")
        self.session_id = session_id
        self.participant_id: Optional[str] = None
        self.role = ParticipantRole.VOTER
        self.scale: VotingScale = DEFAULT_SCALE
        self.snapshot: Optional[Session] = None
        self.pending = PendingEdits()
        self.history = History()
        self.clock = clock
        self._http: Optional[aiohttp.ClientSession] = None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get_http(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
        return self._http

    async def close(self) -> None:
        """Close aiohttp session."""
        if self._http and not self._http.closed:
            await self._http.close()

    def _session_path(self, suffix: str = "") -> str:
        if not self.session_id:
            raise ValidationError("No session selected")
        return f"/sessions/{self.session_id}{suffix}"

    def _require_participant(self) -> str:
        if not self.participant_id:
            raise ValidationError("Join the session first")
        return self.participant_id

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        http = await self._get_http()
        url = f"{self.base_url}/api/v1{path}"
        try:
            async with http.request(method, url, json=payload) as resp:
                data = await resp.json(content_type=None)
                if resp.status >= 400:
                    detail = data.get("detail") if isinstance(data, dict) else None
                    raise ClientError(str(detail or f"status={resp.status}"), status=resp.status)
                return data
        except aiohttp.ClientError as e:
            raise ClientError(f"Estimation service unavailable: {e}", status=0) from e

    async def _mutate(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Optional[SessionView]:
        data = await self._request("POST", path, payload)
        self.apply_snapshot(data)
        return self.view

    # ---------- local state ----------
    @property
    def view(self) -> Optional[SessionView]:
        if self.snapshot is None:
            return None
        return reconcile(self.snapshot, self.pending, self.participant_id)

    @property
    def me(self) -> Optional[Participant]:
        view = self.view
        if view is None or self.participant_id is None:
            return None
        return view.session.participants.get(self.participant_id)

    def apply_snapshot(self, data: Dict[str, Any]) -> bool:
        """Adopt a snapshot unless it is older than the one we hold."""
        session = Session.from_dict(data)
        if not is_newer(session, self.snapshot):
            logger.debug(f"Ignoring stale snapshot for session {session.id}")
            return False
        self.snapshot = session
        self.pending = settle(self.pending, session, self.participant_id)
        return True

    def result(self) -> VoteResult:
        view = self.view
        participants = view.session.participants.values() if view else []
        return VotingService.classify(participants, self.scale)

    def can_reveal(self) -> bool:
        view = self.view
        if view is None or view.session.revealed:
            return False
        return VotingService.has_votes(view.session.participants.values())

    def online_ids(self) -> List[str]:
        if self.snapshot is None:
            return []
        return online_participant_ids(self.snapshot, self.clock())

    def cycle_scale(self, step: int = 1) -> VotingScale:
        self.scale = next_scale(self.scale, step)
        return self.scale

    def edit_story(self, text: str) -> None:
        """Typing is local until the story is locked."""
        self.pending = self.pending.with_story_draft(text)

    def record_estimate(self, vote: str) -> HistoryEntry:
        """Save the agreed value for the current story to local history."""
        view = self.view
        story = view.story_text.strip() if view else ""
        if not story:
            raise ValidationError("Set a story before saving an estimate")
        if not vote or not vote.strip():
            raise ValidationError("Estimate is required")
        return self.history.add(story, vote.strip(), self.clock())

    # ---------- remote operations ----------
    async def create_session(self, name: str) -> str:
        """Create session and select it."""
        if not name or not name.strip():
            raise ValidationError("Session name is required")
        data = await self._request("POST", "/sessions", {"name": name.strip()})
        self.session_id = data["id"]
        self.snapshot = None
        return self.session_id

    async def join(
        self,
        name: str,
        role: ParticipantRole = ParticipantRole.VOTER,
        avatar: Optional[str] = None,
        participant_id: Optional[str] = None,
    ) -> Optional[SessionView]:
        """Join; pass a stored participant_id to rejoin with vote intact."""
        if not name or not name.strip():
            raise ValidationError("Name is required")
        self.participant_id = participant_id or self.participant_id or str(uuid.uuid4())
        self.role = role
        payload = {
            "participantId": self.participant_id,
            "name": name.strip(),
            "role": role.value,
            "avatar": avatar,
        }
        return await self._mutate(self._session_path("/join"), payload)

    async def vote(self, value: str) -> Optional[SessionView]:
        """Pick a card; picking the selected card again clears the vote."""
        participant_id = self._require_participant()
        if not self.role.can_vote:
            raise ValidationError("Observers cannot vote")
        current = self.view.my_vote if self.view else None
        new_value = None if current == value else value

        self.pending = self.pending.with_vote(new_value)
        try:
            return await self._mutate(
                self._session_path("/vote"),
                {"participantId": participant_id, "vote": new_value},
            )
        finally:
            # Success is settled by the snapshot; failure rolls back to server state
            self.pending = self.pending.without_vote()

    async def reveal(self) -> Optional[SessionView]:
        return await self._mutate(self._session_path("/reveal"))

    async def reset(self) -> Optional[SessionView]:
        view = await self._mutate(self._session_path("/reset"))
        self.pending = self.pending.without_story_draft()
        return view

    async def lock_story(self) -> Optional[SessionView]:
        """Commit the drafted story so everybody sees it."""
        draft = self.pending.story_draft
        if draft is None:
            draft = self.snapshot.story if self.snapshot else ""
        text = draft.strip()
        if not text:
            raise ValidationError("Story is empty")
        return await self._mutate(self._session_path("/story"), {"story": text, "storyLocked": True})

    async def unlock_story(self) -> Optional[SessionView]:
        """Reopen the story for editing, starting from the committed text."""
        story = self.snapshot.story if self.snapshot else ""
        self.pending = self.pending.with_story_draft(story)
        return await self._mutate(self._session_path("/story"), {"story": story, "storyLocked": False})

    async def cycle_avatar(self) -> Optional[SessionView]:
        participant_id = self._require_participant()
        me = self.me
        avatar = next_avatar(me.avatar if me else None)
        return await self._mutate(
            self._session_path("/avatar"),
            {"participantId": participant_id, "avatar": avatar},
        )

    async def heartbeat(self) -> Optional[SessionView]:
        participant_id = self._require_participant()
        return await self._mutate(self._session_path("/heartbeat"), {"participantId": participant_id})

    async def heartbeat_loop(self) -> None:
        """Beat until cancelled; a missed beat is logged, not fatal."""
        while True:
            try:
                await self.heartbeat()
            except ClientError as exc:
                logger.warning(f"Heartbeat failed: {exc.message}")
            await asyncio.sleep(HEARTBEAT_INTERVAL.total_seconds())

    async def leave(self) -> None:
        participant_id = self._require_participant()
        await self._request("POST", self._session_path("/leave"), {"participantId": participant_id})
        self.participant_id = None
        self.snapshot = None
        self.pending = PendingEdits()

    async def ring_bell(self, participant_name: str) -> None:
        await self._request("POST", self._session_path("/bell"), {"participantName": participant_name})

    async def listen(self) -> AsyncIterator[Dict[str, Any]]:
        """Stream session events, applying snapshots as they arrive."""
        http = await self._get_http()
        ws_url = self.base_url.replace("http", "ws", 1) + f"/api/v1{self._session_path('/ws')}"
        async with http.ws_connect(ws_url) as ws:
            async for msg in ws:
                if msg.type != aiohttp.WSMsgType.TEXT:
                    if msg.type == aiohttp.WSMsgType.ERROR:
                        raise ClientError(f"Event stream failed: {ws.exception()}", status=0)
                    continue
                message = msg.json()
                if message.get("event") == SESSION_STATE_EVENT:
                    self.apply_snapshot(message["data"])
                yield message
