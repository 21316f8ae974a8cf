"""Redis-backed session persistence."""
from __future__ import annotations

import logging

import redis.asyncio as aioredis

from chat_client.application.dto.session import Session

logger = logging.getLogger(__name__)


class RedisSessionStore:
    """Implements application.ports.storage.SessionStore.

    The session is one hash with ``token`` and ``user_name`` fields.
    """

    def __init__(self, redis: aioredis.Redis, key: str) -> None:
        self._redis = redis
        self._key = key

    @classmethod
    def from_url(cls, url: str, key: str) -> RedisSessionStore:
        return cls(aioredis.from_url(url, decode_responses=True), key)

    async def load(self) -> Session | None:
        data = await self._redis.hgetall(self._key)
        token = data.get("token")
        user_name = data.get("user_name")
        if not token or not user_name:
            return None
        return Session(token=token, user_name=user_name)

    async def save(self, session: Session) -> None:
        await self._redis.hset(
            self._key, mapping={"token": session.token, "user_name": session.user_name},
        )
        logger.info("Session persisted for %s", session.user_name)

    async def clear(self) -> None:
        await self._redis.delete(self._key)
        logger.info("Persisted session cleared")

    async def aclose(self) -> None:
        await self._redis.aclose()
