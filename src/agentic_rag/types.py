"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Author of a session message."""

    USER = "User"
    ASSISTANT = "Assistant"
    TOOL = "Tool"


@dataclass(slots=True, frozen=True)
class Message:
    """One entry of a session's conversation history."""

    role: Role
    content: str
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content, "name": self.name}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Message:
        return cls(
            role=Role(payload["role"]),
            content=str(payload["content"]),
            name=payload.get("name"),
        )


@dataclass(slots=True)
class ToolInvocation:
    """A request to run one named tool with ordered arguments."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def with_argument(self, key: str, value: Any) -> ToolInvocation:
        self.arguments[key] = value
        return self

    def get_argument(self, key: str) -> Any:
        if key not in self.arguments:
            raise KeyError(f"Argument '{key}' not found")
        return self.arguments[key]


@dataclass(slots=True)
class ToolResult:
    """Structured outcome of a tool execution."""

    success: bool
    result: Any
    error_message: str | None = None

    @classmethod
    def ok(cls, result: Any) -> ToolResult:
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error_message: str, partial_result: Any = None) -> ToolResult:
        return cls(success=False, result=partial_result, error_message=error_message)


@dataclass(slots=True)
class ParsedDocument:
    """A parsed source document before chunking."""

    file_name: str
    text: str
    metadata: dict[str, Any]


@dataclass(slots=True)
class TextChunk:
    """A window of a document with character offsets into the source text."""

    content: str
    start_pos: int
    end_pos: int
    chunk_id: int


@dataclass(slots=True)
class DocumentChunk:
    """An embedded chunk ready to be stored in the vector index."""

    file_name: str
    chunk_id: int
    content: str
    embedding: list[float]


@dataclass(slots=True)
class RetrievedDocument:
    """A retrieval hit; similarity is `1 - cosine_distance`."""

    file_name: str
    chunk_id: int
    content: str
    similarity: float


@dataclass(slots=True)
class ChatMessage:
    """Model-facing conversation turn."""

    role: str
    content: str

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> ChatMessage:
        return cls(role="assistant", content=content)


@dataclass(slots=True, frozen=True)
class MessageStart:
    pass


@dataclass(slots=True, frozen=True)
class ContentDelta:
    text: str


@dataclass(slots=True, frozen=True)
class ContentStop:
    pass


@dataclass(slots=True, frozen=True)
class MessageStop:
    pass


@dataclass(slots=True, frozen=True)
class GenerationFailed:
    """In-stream failure reported by the generation client."""

    message: str


GenerationEvent = MessageStart | ContentDelta | ContentStop | MessageStop | GenerationFailed
