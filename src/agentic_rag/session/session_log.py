"""Per-session message history with idle expiry."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from agentic_rag.errors import SessionLogError
from agentic_rag.types import Message

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class SessionLog(Protocol):
    """Append-only history store keyed by session id."""

    async def get(self, session_id: str) -> list[Message]:
        """Return the session's messages in append order; unknown ids are empty."""

    async def append(self, session_id: str, message: Message) -> None:
        """Append one message and refresh the session's last-access time."""


@dataclass(slots=True)
class _SessionData:
    messages: list[Message] = field(default_factory=list)
    last_accessed: float = 0.0


class InMemorySessionLog:
    """Process-local session log.

    One `asyncio.Lock` guards the session map. Sessions idle for longer than
    `ttl_seconds` are dropped on the next access of any session.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, _SessionData] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> list[Message]:
        async with self._lock:
            self._sweep()
            data = self._sessions.get(session_id)
            return list(data.messages) if data is not None else []

    async def append(self, session_id: str, message: Message) -> None:
        async with self._lock:
            self._sweep()
            data = self._sessions.setdefault(session_id, _SessionData())
            data.messages.append(message)
            data.last_accessed = self._clock()

    async def exists(self, session_id: str) -> bool:
        async with self._lock:
            self._sweep()
            return session_id in self._sessions

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)

    async def extend_ttl(self, session_id: str) -> None:
        async with self._lock:
            data = self._sessions.get(session_id)
            if data is not None:
                data.last_accessed = self._clock()

    def __len__(self) -> int:
        return len(self._sessions)

    def _sweep(self) -> None:
        now = self._clock()
        expired = [
            session_id
            for session_id, data in self._sessions.items()
            if now - data.last_accessed >= self.ttl_seconds
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug("Expired %d idle sessions", len(expired))


class RedisSessionLog:
    """Session log stored as one JSON document per session in Redis.

    Key layout is `session:<id>` holding `{"messages": [...], "last_accessed": ts}`;
    every append rewrites the document with `SET ... EX ttl`.
    """

    def __init__(self, client: Redis, ttl_seconds: int = 3600) -> None:
        self._client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 3600) -> RedisSessionLog:
        from redis.asyncio import Redis

        return cls(Redis.from_url(url, decode_responses=True), ttl_seconds)

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}"

    async def get(self, session_id: str) -> list[Message]:
        payload = await self._load(session_id)
        return [Message.from_dict(item) for item in payload.get("messages", [])]

    async def append(self, session_id: str, message: Message) -> None:
        payload = await self._load(session_id)
        messages = payload.get("messages", [])
        messages.append(message.to_dict())
        document = json.dumps({"messages": messages, "last_accessed": time.time()})
        try:
            await self._client.set(self._key(session_id), document, ex=self.ttl_seconds)
        except Exception as exc:
            raise SessionLogError(f"Failed to save session to Redis: {exc}") from exc

    async def exists(self, session_id: str) -> bool:
        try:
            return bool(await self._client.exists(self._key(session_id)))
        except Exception as exc:
            raise SessionLogError(f"Failed to check session existence: {exc}") from exc

    async def delete(self, session_id: str) -> None:
        try:
            await self._client.delete(self._key(session_id))
        except Exception as exc:
            raise SessionLogError(f"Failed to delete session: {exc}") from exc

    async def extend_ttl(self, session_id: str) -> None:
        try:
            await self._client.expire(self._key(session_id), self.ttl_seconds)
        except Exception as exc:
            raise SessionLogError(f"Failed to extend session TTL: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()

    async def _load(self, session_id: str) -> dict:
        try:
            raw = await self._client.get(self._key(session_id))
        except Exception as exc:
            raise SessionLogError(f"Failed to get session from Redis: {exc}") from exc
        if raw is None:
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SessionLogError(f"Failed to deserialize session data: {exc}") from exc
