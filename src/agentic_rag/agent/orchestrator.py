"""Per-request agent pipeline: tools, embedding, retrieval, streaming generation."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing
from typing import Any, Protocol

from agentic_rag.agent.conversation import build_conversation
from agentic_rag.agent.detector import ToolCallDetector
from agentic_rag.agent.registry import ToolRegistry
from agentic_rag.errors import (
    DimensionMismatchError,
    ErrorKind,
    PipelineError,
    SessionLogError,
    ToolError,
)
from agentic_rag.events import (
    OutputEvent,
    assistant_output_event,
    content_delta_event,
    error_event,
    stream_end_event,
    tool_usage_event,
)
from agentic_rag.ingest.embedder import EmbeddingClient
from agentic_rag.obs.tracing import PipelinePhase, PipelineTrace, Timer
from agentic_rag.retrieval.retriever import Retriever
from agentic_rag.session.session_log import SessionLog
from agentic_rag.types import (
    ChatMessage,
    ContentDelta,
    GenerationEvent,
    GenerationFailed,
    Message,
    MessageStop,
    RetrievedDocument,
    Role,
    ToolInvocation,
)

logger = logging.getLogger(__name__)

APOLOGY = "I'm sorry, I encountered an error processing your request."
TOOL_RESULT_NAME = "tool_result"

_PHASE_ERROR_KIND: dict[PipelinePhase, ErrorKind] = {
    PipelinePhase.STARTED: ErrorKind.SESSION,
    PipelinePhase.PERSISTED: ErrorKind.VALIDATION,
    PipelinePhase.TOOL: ErrorKind.TOOL,
    PipelinePhase.EMBEDDING: ErrorKind.EMBEDDING,
    PipelinePhase.RETRIEVAL: ErrorKind.VECTOR_STORE,
    PipelinePhase.GENERATION: ErrorKind.GENERATION,
}


class GenerationBackend(Protocol):
    async def send(
        self, messages: list[ChatMessage]
    ) -> AsyncGenerator[GenerationEvent, None]:
        """Open a reply stream; raises if no attempt could start one."""


class AgentOrchestrator:
    """Sequences one request through the agent pipeline.

    Phases run in a fixed order: persist the new messages, run detected
    tools, embed the latest user message, retrieve context, then stream
    generation. Tool failures are reported and skipped. Embedding, retrieval
    and generation failures end the request early with an explanatory
    `assistant_output`. Session and validation failures produce an
    `error_event` followed by an apology. The event stream itself never
    raises.
    """

    def __init__(
        self,
        *,
        session_log: SessionLog,
        detector: ToolCallDetector,
        registry: ToolRegistry,
        embedding_client: EmbeddingClient,
        retriever: Retriever,
        generation_client: GenerationBackend,
        top_k: int = 5,
    ) -> None:
        self.session_log = session_log
        self.detector = detector
        self.registry = registry
        self.embedding_client = embedding_client
        self.retriever = retriever
        self.generation_client = generation_client
        self.top_k = top_k

    async def process(
        self,
        session_id: str,
        messages: list[Message],
        trace: PipelineTrace | None = None,
    ) -> list[OutputEvent]:
        return [event async for event in self.run(session_id, messages, trace=trace)]

    async def run(
        self,
        session_id: str,
        messages: list[Message],
        trace: PipelineTrace | None = None,
    ) -> AsyncIterator[OutputEvent]:
        """Yield output events as each phase produces them."""

        trace = trace or PipelineTrace(session_id=session_id)
        logger.info("Processing %d messages for session %s", len(messages), session_id)
        try:
            async for event in self._pipeline(session_id, messages, trace):
                yield event
        except PipelineError as exc:
            logger.warning("Request for session %s failed: %s", session_id, exc)
            trace.fail(exc.kind)
            yield error_event(exc)
            yield assistant_output_event(APOLOGY)
        except Exception as exc:
            kind = _PHASE_ERROR_KIND.get(trace.phase, ErrorKind.GENERATION)
            logger.exception("Unexpected failure in %s for session %s", trace.phase.value, session_id)
            trace.fail(kind)
            yield error_event(PipelineError(kind, _describe(exc)))
            yield assistant_output_event(APOLOGY)
        logger.info("Finished session %s in phase %s", session_id, trace.phase.value)

    async def _pipeline(
        self, session_id: str, messages: list[Message], trace: PipelineTrace
    ) -> AsyncIterator[OutputEvent]:
        for message in messages:
            await self._append(session_id, message)
        trace.advance(PipelinePhase.PERSISTED)

        user_text = _latest_user_text(messages)
        if user_text is None:
            raise PipelineError(ErrorKind.VALIDATION, "No user message found in request")

        trace.advance(PipelinePhase.TOOL)
        for invocation in self.detector.detect(user_text):
            yield await self._run_tool(session_id, invocation)

        trace.advance(PipelinePhase.EMBEDDING)
        try:
            vectors = await self.embedding_client.embed([user_text])
        except Exception as exc:
            logger.warning("Embedding failed: %s", _describe(exc))
            trace.complete(ErrorKind.EMBEDDING)
            yield assistant_output_event(
                "I'm having trouble processing your request due to an embedding error: "
                f"{_describe(exc)}"
            )
            return
        if not vectors or not vectors[0]:
            trace.complete(ErrorKind.EMBEDDING)
            yield assistant_output_event("I'm having trouble generating embeddings for your query.")
            return

        trace.advance(PipelinePhase.RETRIEVAL)
        try:
            documents = await self.retriever.retrieve(vectors[0], top_k=self.top_k)
        except DimensionMismatchError as exc:
            logger.error("Embedding/index dimension mismatch: %s", exc)
            trace.complete(ErrorKind.VECTOR_STORE)
            yield assistant_output_event(self._dimension_mismatch_message(exc))
            return
        except Exception as exc:
            logger.warning("Retrieval failed: %s", _describe(exc))
            trace.complete(ErrorKind.VECTOR_STORE)
            yield assistant_output_event(f"I'm having trouble searching documents: {_describe(exc)}")
            return

        trace.advance(PipelinePhase.GENERATION)
        async for event in self._generate(session_id, documents, trace):
            yield event

    async def _run_tool(self, session_id: str, invocation: ToolInvocation) -> OutputEvent:
        args = dict(invocation.arguments)
        error: str | None = None
        value: Any = None

        with Timer() as timer:
            try:
                result = await self.registry.execute(invocation)
            except ToolError as exc:
                error = str(exc)
            except Exception as exc:
                logger.exception("Tool %s raised unexpectedly", invocation.name)
                error = _describe(exc)
            else:
                if result.success:
                    value = result.result
                else:
                    error = result.error_message or "tool returned no result"
        duration_ms = int(timer.elapsed_ms)

        if error is not None:
            logger.warning("Tool %s failed: %s", invocation.name, error)
            return tool_usage_event(invocation.name, args, duration_ms, f"Error: {error}")

        await self._append(
            session_id,
            Message(role=Role.TOOL, content=json.dumps(value), name=TOOL_RESULT_NAME),
        )
        logger.info("Tool %s completed in %d ms", invocation.name, duration_ms)
        return tool_usage_event(invocation.name, args, duration_ms, value)

    async def _generate(
        self,
        session_id: str,
        documents: list[RetrievedDocument],
        trace: PipelineTrace,
    ) -> AsyncIterator[OutputEvent]:
        history = await self._history(session_id)
        conversation = build_conversation(history, documents)

        try:
            stream = await self.generation_client.send(conversation)
        except Exception as exc:
            logger.error("Generation could not start: %s", _describe(exc))
            trace.complete(ErrorKind.GENERATION)
            yield assistant_output_event(f"I'm having trouble with the AI service: {_describe(exc)}")
            return

        parts: list[str] = []
        failure: str | None = None
        async with aclosing(stream):
            try:
                async for event in stream:
                    if isinstance(event, ContentDelta):
                        if event.text:
                            parts.append(event.text)
                            yield content_delta_event(event.text)
                    elif isinstance(event, MessageStop):
                        yield stream_end_event()
                        break
                    elif isinstance(event, GenerationFailed):
                        failure = event.message
                        break
            except Exception as exc:
                failure = _describe(exc)

        if failure is not None:
            logger.warning("Generation stream ended with error: %s", failure)
            yield assistant_output_event(f"I'm having trouble with the AI service: {failure}")

        if parts:
            await self._append(session_id, Message(role=Role.ASSISTANT, content="".join(parts)))
        trace.complete(ErrorKind.GENERATION if failure is not None else None)

    async def _append(self, session_id: str, message: Message) -> None:
        try:
            await self.session_log.append(session_id, message)
        except SessionLogError:
            raise
        except Exception as exc:
            raise SessionLogError(f"Failed to append message: {_describe(exc)}") from exc

    async def _history(self, session_id: str) -> list[Message]:
        try:
            return await self.session_log.get(session_id)
        except SessionLogError:
            raise
        except Exception as exc:
            raise SessionLogError(f"Failed to get session messages: {_describe(exc)}") from exc

    def _dimension_mismatch_message(self, exc: DimensionMismatchError) -> str:
        return (
            "Vector search failed due to embedding dimension mismatch. This usually means "
            "the database was created with different embedding dimensions than the current "
            f"provider ({self.embedding_client.dimension()}). Please recreate the database "
            f"or run initialization again. Details: {exc}"
        )


def _latest_user_text(messages: list[Message]) -> str | None:
    for message in reversed(messages):
        if message.role is Role.USER:
            return message.content
    return None


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
