"""Error taxonomy shared by every pipeline stage."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure category with a fixed HTTP status and retry hint.

    Each member's value is the tag sent to clients; `http_status`,
    `retryable` and `label` are looked up from `_KIND_PROPERTIES`.
    """

    EMBEDDING = "Embedding"
    TOOL = "Tool"
    GENERATION = "Generation"
    DATABASE = "Database"
    VECTOR_STORE = "VectorStore"
    SESSION = "Session"
    CONFIG = "Config"
    VALIDATION = "Validation"

    @property
    def http_status(self) -> int:
        return _KIND_PROPERTIES[self][0]

    @property
    def retryable(self) -> bool:
        return _KIND_PROPERTIES[self][1]

    @property
    def label(self) -> str:
        return _KIND_PROPERTIES[self][2]


_KIND_PROPERTIES: dict[ErrorKind, tuple[int, bool, str]] = {
    ErrorKind.EMBEDDING: (500, True, "Embedding service error"),
    ErrorKind.TOOL: (400, False, "Tool execution error"),
    ErrorKind.GENERATION: (503, True, "LLM service error"),
    ErrorKind.DATABASE: (500, True, "Database connection error"),
    ErrorKind.VECTOR_STORE: (500, True, "Vector store error"),
    ErrorKind.SESSION: (422, False, "Session management error"),
    ErrorKind.CONFIG: (500, False, "Configuration error"),
    ErrorKind.VALIDATION: (400, False, "Invalid request"),
}


class PipelineError(Exception):
    """A tagged failure raised by a pipeline stage."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.label}: {message}")

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def to_event_data(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "retryable": self.retryable,
            "http_status": self.http_status,
        }


class DimensionMismatchError(PipelineError):
    """Query or chunk vector length differs from the index dimension."""

    def __init__(self, expected: int, actual: int, subject: str = "Query embedding") -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            ErrorKind.VECTOR_STORE,
            f"{subject} dimension mismatch: expected {expected}, got {actual}",
        )


class SessionLogError(PipelineError):
    """Reading or writing session history failed."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.SESSION, message)


class ToolError(Exception):
    """Failure reported by a tool or by the registry."""

    def __init__(self, tool_name: str, message: str, recoverable: bool = False) -> None:
        self.tool_name = tool_name
        self.message = message
        self.recoverable = recoverable
        super().__init__(f"Tool '{tool_name}' error: {message}")

    def to_pipeline_error(self) -> PipelineError:
        return PipelineError(ErrorKind.TOOL, self.message)
