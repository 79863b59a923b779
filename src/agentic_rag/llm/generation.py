"""Streaming chat completion with primary/fallback model retry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    BaseMessageChunk,
    HumanMessage,
    SystemMessage,
)

from agentic_rag.config import LlmConfig
from agentic_rag.retry import SleepFn, build_retrying
from agentic_rag.types import (
    ChatMessage,
    ContentDelta,
    ContentStop,
    GenerationEvent,
    GenerationFailed,
    MessageStart,
    MessageStop,
)

logger = logging.getLogger(__name__)


class GenerationClient:
    """Streams a reply from LangChain chat models.

    Attempt 0 uses the primary model and every retry uses the fallback, with
    `base_delay_seconds * 2**(attempt - 1)` of sleep before retry `attempt`.
    An attempt succeeds as soon as the first chunk arrives within the
    timeout. Failures after that point end the stream with `GenerationFailed`
    instead of retrying.
    """

    def __init__(
        self,
        primary: BaseChatModel,
        fallback: BaseChatModel,
        config: LlmConfig | None = None,
        *,
        sleep: SleepFn | None = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.config = config or LlmConfig()
        self._sleep = sleep

    async def send(
        self, messages: list[ChatMessage]
    ) -> AsyncGenerator[GenerationEvent, None]:
        """Open a stream, retrying as configured, and return its event iterator.

        Raises the last attempt's error when every attempt fails to produce a
        first chunk.
        """

        prompt = to_langchain_messages(messages)
        retrying = build_retrying(
            max_retries=self.config.max_retries,
            base_delay_seconds=self.config.base_delay_seconds,
            operation="generation",
            sleep=self._sleep,
        )

        async for attempt in retrying:
            with attempt:
                index = attempt.retry_state.attempt_number - 1
                model = self.primary if index == 0 else self.fallback
                logger.debug("Generation attempt %d using %s", index, _model_name(model))
                stream, first = await self._open(model, prompt)

        logger.info("Generation stream opened")
        return self._events(stream, first)

    async def _open(
        self, model: BaseChatModel, prompt: list[BaseMessage]
    ) -> tuple[AsyncGenerator[BaseMessageChunk, None], BaseMessageChunk | None]:
        stream: Any = model.astream(prompt)
        try:
            first = await asyncio.wait_for(
                anext(stream, None), timeout=self.config.timeout_seconds
            )
        except Exception:
            await stream.aclose()
            raise
        return stream, first

    async def _events(
        self,
        stream: AsyncGenerator[BaseMessageChunk, None],
        first: BaseMessageChunk | None,
    ) -> AsyncGenerator[GenerationEvent, None]:
        yield MessageStart()
        try:
            chunk = first
            while chunk is not None:
                text = chunk_text(chunk)
                if text:
                    yield ContentDelta(text)
                chunk = await asyncio.wait_for(
                    anext(stream, None), timeout=self.config.timeout_seconds
                )
        except Exception as exc:
            logger.warning("Generation stream failed: %s", exc)
            yield GenerationFailed(f"Stream error: {exc}")
            return
        finally:
            await stream.aclose()
        yield ContentStop()
        yield MessageStop()


def to_langchain_messages(messages: list[ChatMessage]) -> list[BaseMessage]:
    converted: list[BaseMessage] = []
    for message in messages:
        if message.role == "assistant":
            converted.append(AIMessage(content=message.content))
        elif message.role == "system":
            converted.append(SystemMessage(content=message.content))
        else:
            converted.append(HumanMessage(content=message.content))
    return converted


def chunk_text(chunk: BaseMessageChunk) -> str:
    content = chunk.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def _model_name(model: BaseChatModel) -> str:
    name = getattr(model, "model_name", None) or getattr(model, "model", None)
    return str(name or model._llm_type)


def create_chat_models(
    config: LlmConfig, api_key: str | None = None
) -> tuple[BaseChatModel, BaseChatModel]:
    """Return `(primary, fallback)` chat models.

    Without an API key both slots hold the offline extractive model.
    """

    if not api_key:
        from agentic_rag.agent.fallback import ExtractiveChatModel

        logger.warning("OPENAI_API_KEY not set, using the extractive offline model")
        return ExtractiveChatModel(), ExtractiveChatModel()

    from langchain_openai import ChatOpenAI

    def _build(model_name: str) -> BaseChatModel:
        return ChatOpenAI(
            model=model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            api_key=api_key,
            max_retries=0,
        )

    logger.info("Using chat models primary=%s fallback=%s", config.primary, config.fallback)
    return _build(config.primary), _build(config.fallback)
