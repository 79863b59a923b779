"""Heuristic detection of file references in user text."""

from __future__ import annotations

import os

from agentic_rag.agent.tools import FileSummarizerTool
from agentic_rag.types import ToolInvocation


class ToolCallDetector:
    """Turns file-like tokens in a message into `file_summarizer` invocations.

    A whitespace token qualifies when it contains a dot and ends with one of
    `extensions`. Relative paths are resolved against `document_dir`. Invocations
    keep message order and duplicates are not collapsed.
    """

    def __init__(
        self,
        document_dir: str = "./data",
        extensions: tuple[str, ...] = (".txt", ".rs", ".py"),
    ) -> None:
        self.document_dir = document_dir
        self.extensions = extensions

    def detect(self, text: str) -> list[ToolInvocation]:
        invocations: list[ToolInvocation] = []
        for token in text.split():
            if "." not in token or not token.endswith(self.extensions):
                continue
            if os.path.isabs(token):
                path = token
            else:
                path = os.path.abspath(os.path.join(self.document_dir, token))
            invocations.append(
                ToolInvocation(name=FileSummarizerTool.name).with_argument("file_path", path)
            )
        return invocations
