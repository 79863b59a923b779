from pathlib import Path

import pytest

from agentic_rag.agent.tools import FileSummarizerTool, summarize_content
from agentic_rag.errors import ToolError
from agentic_rag.types import ToolInvocation

RUST_SOURCE = """use std::fmt;

struct Point { x: i32 }

impl Point {
    fn new(x: i32) -> Self { Self { x } }
    fn x(&self) -> i32 { self.x }
}
"""


def _invoke(path: Path | str) -> ToolInvocation:
    return ToolInvocation("file_summarizer", {"file_path": str(path)})


def test_defaults() -> None:
    tool = FileSummarizerTool()

    assert tool.name == "file_summarizer"
    assert tool.max_file_size == 1024 * 1024
    assert tool.is_allowed_file("test.txt")
    assert tool.is_allowed_file("script.RS")
    assert tool.is_allowed_file("config.json")
    assert not tool.is_allowed_file("image.png")
    assert not tool.is_allowed_file("file_without_extension")


@pytest.mark.asyncio
async def test_summarizes_rust_structure(tmp_path: Path) -> None:
    path = tmp_path / "point.rs"
    path.write_text(RUST_SOURCE, encoding="utf-8")

    result = await FileSummarizerTool().execute(_invoke(path))

    assert result.success
    summary = result.result
    assert summary.startswith(f"File: {path}\n")
    assert "Structure: Functions: 2, Structs: 1, Implementations: 1" in summary
    assert "Preview (first 5 lines):\nuse std::fmt;" in summary


def test_python_structure_and_plain_text() -> None:
    python_summary = summarize_content(
        "import os\nfrom pathlib import Path\n\nclass A:\n    def run(self):\n        pass\n",
        "mod.py",
    )
    plain_summary = summarize_content("just words here\n", "notes.txt")

    assert "Structure: Functions: 1, Classes: 1, Imports: 3" in python_summary
    assert "Size: 1 lines, 3 words, 16 characters" in plain_summary
    assert "Structure: Plain text" in plain_summary


@pytest.mark.asyncio
async def test_missing_file_is_not_recoverable(tmp_path: Path) -> None:
    with pytest.raises(ToolError) as exc_info:
        await FileSummarizerTool().execute(_invoke(tmp_path / "absent.txt"))

    assert exc_info.value.message.startswith("File not found")
    assert exc_info.value.recoverable is False


@pytest.mark.asyncio
async def test_disallowed_extension_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "image.png"
    path.write_bytes(b"\x89PNG")

    with pytest.raises(ToolError) as exc_info:
        await FileSummarizerTool().execute(_invoke(path))

    assert exc_info.value.message == f"File type not allowed: {path}"


@pytest.mark.asyncio
async def test_oversized_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "big.txt"
    path.write_text("x" * 64, encoding="utf-8")

    with pytest.raises(ToolError) as exc_info:
        await FileSummarizerTool(max_file_size=16).execute(_invoke(path))

    assert exc_info.value.message == "File too large: 64 bytes (max: 16 bytes)"
    assert exc_info.value.recoverable is False
