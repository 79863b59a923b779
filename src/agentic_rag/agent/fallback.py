"""Deterministic chat model used when no external LLM is configured."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from langchain_core.callbacks import CallbackManagerForLLMRun
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, HumanMessage
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult

from agentic_rag.agent.conversation import CONTEXT_HEADER

NO_EVIDENCE_ANSWER = "I cannot find verifiable evidence for this question in the indexed documents."

_SOURCE_BLOCK = re.compile(
    r"From (?P<file>[^\n:]+): (?P<body>.*?)(?=\n\nFrom |\n\nBased on the above context|\Z)",
    flags=re.DOTALL,
)
_WORD = re.compile(r"\S+\s*")


class ExtractiveChatModel(BaseChatModel):
    """Answers from the retrieved-context message without calling a model.

    The reply lists up to `max_snippets` numbered snippets, each cited with
    its source file. Without a context message it says no evidence was
    found. Streaming emits the same reply word by word, which keeps the
    response contract of a hosted model for local and offline use.
    """

    max_snippets: int = 3
    snippet_chars: int = 240

    @property
    def _llm_type(self) -> str:
        return "extractive"

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: CallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        answer = self.answer(messages)
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=answer))])

    def _stream(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: CallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> Iterator[ChatGenerationChunk]:
        for word in _WORD.findall(self.answer(messages)):
            chunk = ChatGenerationChunk(message=AIMessageChunk(content=word))
            if run_manager is not None:
                run_manager.on_llm_new_token(word, chunk=chunk)
            yield chunk

    def answer(self, messages: list[BaseMessage]) -> str:
        snippets = _context_snippets(messages)
        if not snippets:
            return NO_EVIDENCE_ANSWER

        lines: list[str] = []
        for idx, (file_name, body) in enumerate(snippets[: self.max_snippets], start=1):
            text = " ".join(body.split())
            if len(text) > self.snippet_chars:
                text = text[: self.snippet_chars].rstrip() + "..."
            lines.append(f"{idx}. {text} [{file_name}]")
        return "\n".join(lines)


def _context_snippets(messages: list[BaseMessage]) -> list[tuple[str, str]]:
    for message in messages:
        if not isinstance(message, HumanMessage) or not isinstance(message.content, str):
            continue
        if message.content.startswith(CONTEXT_HEADER):
            return [
                (match.group("file").strip(), match.group("body").strip())
                for match in _SOURCE_BLOCK.finditer(message.content)
            ]
    return []
