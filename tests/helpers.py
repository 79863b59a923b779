"""Scripted collaborators shared by the test suite."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from agentic_rag.errors import SessionLogError
from agentic_rag.ingest.embedder import EmbeddingProvider
from agentic_rag.session.session_log import InMemorySessionLog
from agentic_rag.types import ChatMessage, GenerationEvent, Message


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(float(delay))


class ScriptedGenerationClient:
    def __init__(
        self,
        events: list[GenerationEvent] | None = None,
        *,
        open_error: Exception | None = None,
    ) -> None:
        self.events = events or []
        self.open_error = open_error
        self.conversations: list[list[ChatMessage]] = []

    async def send(self, messages: list[ChatMessage]) -> AsyncGenerator[GenerationEvent, None]:
        self.conversations.append(messages)
        if self.open_error is not None:
            raise self.open_error
        return self._stream()

    async def _stream(self) -> AsyncGenerator[GenerationEvent, None]:
        for event in self.events:
            yield event


class FlakySessionLog(InMemorySessionLog):
    """Fails the N-th append (1-based) or every history read."""

    def __init__(self, *, fail_append_at: int | None = None, fail_get: bool = False) -> None:
        super().__init__()
        self.fail_append_at = fail_append_at
        self.fail_get = fail_get
        self.append_calls = 0

    async def append(self, session_id: str, message: Message) -> None:
        self.append_calls += 1
        if self.append_calls == self.fail_append_at:
            raise SessionLogError("store unavailable")
        await super().append(session_id, message)

    async def get(self, session_id: str) -> list[Message]:
        if self.fail_get:
            raise SessionLogError("store unavailable")
        return await super().get(session_id)


class FailingEmbeddingProvider(EmbeddingProvider):
    def __init__(self, error: Exception, dimension: int = 64) -> None:
        self.error = error
        self.calls = 0
        self._dimension = dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        raise self.error

    def dimension(self) -> int:
        return self._dimension


