"""Built-in tool implementations."""

from __future__ import annotations

import asyncio
from pathlib import Path

from pydantic import BaseModel, Field

from agentic_rag.agent.registry import Tool, ToolRegistry
from agentic_rag.errors import ToolError
from agentic_rag.types import ToolResult

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS = (
    "txt",
    "md",
    "rs",
    "py",
    "js",
    "ts",
    "json",
    "yaml",
    "yml",
    "toml",
    "cfg",
    "conf",
)
PREVIEW_LINES = 5


class FileSummarizerInput(BaseModel):
    file_path: str = Field(min_length=1, description="Path to the file to summarize")


class FileSummarizerTool(Tool):
    """Summarizes a local text file: size, rough structure and a short preview."""

    name = "file_summarizer"
    description = (
        "Reads and summarizes text files, providing file statistics, "
        "structure analysis and a content preview"
    )
    args_model = FileSummarizerInput

    def __init__(
        self,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS,
    ) -> None:
        self.max_file_size = max_file_size
        self.allowed_extensions = tuple(ext.lower() for ext in allowed_extensions)

    async def run(self, arguments: FileSummarizerInput) -> ToolResult:
        content = await asyncio.to_thread(self._read, arguments.file_path)
        return ToolResult.ok(summarize_content(content, arguments.file_path))

    def is_allowed_file(self, file_path: str) -> bool:
        suffix = Path(file_path).suffix
        return bool(suffix) and suffix[1:].lower() in self.allowed_extensions

    def _read(self, file_path: str) -> str:
        path = Path(file_path)
        if not path.exists():
            raise ToolError(self.name, f"File not found: {file_path}")
        if not self.is_allowed_file(file_path):
            raise ToolError(self.name, f"File type not allowed: {file_path}")

        try:
            size = path.stat().st_size
        except OSError as exc:
            raise ToolError(
                self.name, f"Failed to read file metadata: {exc}", recoverable=True
            ) from exc
        if size > self.max_file_size:
            raise ToolError(
                self.name,
                f"File too large: {size} bytes (max: {self.max_file_size} bytes)",
            )

        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ToolError(self.name, f"Failed to read file: {exc}", recoverable=True) from exc


def summarize_content(content: str, file_path: str) -> str:
    lines = content.splitlines()
    counts: tuple[tuple[str, int], ...]
    if file_path.endswith(".rs"):
        counts = (
            ("Functions", content.count("fn ")),
            ("Structs", content.count("struct ")),
            ("Implementations", content.count("impl ")),
        )
    elif file_path.endswith(".py"):
        counts = (
            ("Functions", content.count("def ")),
            ("Classes", content.count("class ")),
            ("Imports", content.count("import ") + content.count("from ")),
        )
    else:
        counts = ()
    structure = [f"{label}: {count}" for label, count in counts if count > 0]

    preview = "\n".join(lines[:PREVIEW_LINES])
    return (
        f"File: {file_path}\n"
        f"Size: {len(lines)} lines, {len(content.split())} words, {len(content)} characters\n"
        f"Structure: {', '.join(structure) if structure else 'Plain text'}\n\n"
        f"Preview (first {PREVIEW_LINES} lines):\n{preview}"
    )


def register_builtin_tools(registry: ToolRegistry) -> None:
    """Register the default tool set used by the orchestrator."""

    registry.register(FileSummarizerTool())
