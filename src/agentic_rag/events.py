"""Output events streamed to the client and their SSE encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from agentic_rag.errors import PipelineError


@dataclass(slots=True, frozen=True)
class OutputEvent:
    """Named event with a JSON-serializable payload."""

    event: str
    data: dict[str, Any] = field(default_factory=dict)

    def encode(self) -> str:
        """Render as one server-sent event frame."""

        payload = json.dumps(self.data, separators=(",", ":"), ensure_ascii=False)
        return f"event: {self.event}\ndata: {payload}\n\n"


def tool_usage_event(
    tool: str, args: dict[str, Any], duration_ms: int, result: Any
) -> OutputEvent:
    return OutputEvent(
        "tool_usage",
        {"tool": tool, "args": args, "duration_ms": duration_ms, "result": result},
    )


def assistant_output_event(content: str) -> OutputEvent:
    return OutputEvent("assistant_output", {"content": content})


def content_delta_event(content: str) -> OutputEvent:
    return OutputEvent("content_delta", {"content": content, "type": "delta"})


def stream_start_event() -> OutputEvent:
    return OutputEvent("stream_start", {})


def stream_end_event() -> OutputEvent:
    return OutputEvent("stream_end", {})


def error_event(error: PipelineError) -> OutputEvent:
    return OutputEvent("error_event", error.to_event_data())
