"""Redis pub/sub adapter for the broadcast bus."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.ports.broadcaster import Broadcaster, channel_name
from core.exceptions import BroadcastError

logger = logging.getLogger(__name__)


class RedisBroadcaster(Broadcaster):
    """Publishes on channel ``session-{id}`` so every service instance sees it."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self._client: Optional[redis.Redis] = client

    async def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    async def publish(self, session_id: str, event: str, payload: Dict[str, Any]) -> None:
        client = await self._get_client()
        message = json.dumps({"event": event, "data": payload}, ensure_ascii=False)
        try:
            await client.publish(channel_name(session_id), message)
        except RedisError as exc:
            raise BroadcastError(f"Publish to session {session_id} failed: {exc}") from exc

    @asynccontextmanager
    async def subscribe(self, session_id: str) -> AsyncIterator[AsyncIterator[Dict[str, Any]]]:
        client = await self._get_client()
        channel = channel_name(session_id)
        pubsub = client.pubsub()
        await pubsub.subscribe(channel)
        try:
            yield self._messages(pubsub, channel)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

    @staticmethod
    async def _messages(pubsub, channel: str) -> AsyncIterator[Dict[str, Any]]:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                yield json.loads(message["data"])
            except ValueError:
                logger.warning(f"Skipping malformed message on {channel}")

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
