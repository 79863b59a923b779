"""Readers that turn files in the document directory into indexable text."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

from agentic_rag.types import ParsedDocument

Reader = Callable[[str], str]


def _plain(raw: str) -> str:
    return raw


def _sorted_json(raw: str) -> str:
    payload = json.loads(raw)
    if isinstance(payload, (dict, list)):
        return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)
    return str(payload)


DEFAULT_FORMATS: dict[str, tuple[str, Reader]] = {
    ".txt": ("text", _plain),
    ".log": ("text", _plain),
    ".md": ("markdown", _plain),
    ".markdown": ("markdown", _plain),
    ".json": ("json", _sorted_json),
}


class ParserRegistry:
    """Chooses a reader by lowercase file suffix.

    JSON is re-serialized with sorted keys so equal payloads chunk identically.
    """

    def __init__(self, formats: dict[str, tuple[str, Reader]] | None = None) -> None:
        self._formats = dict(DEFAULT_FORMATS if formats is None else formats)

    def supports(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self._formats

    def parse_path(self, path: str | Path) -> ParsedDocument:
        file_path = Path(path)
        entry = self._formats.get(file_path.suffix.lower())
        if entry is None:
            raise ValueError(f"No parser registered for extension: {file_path.suffix}")
        format_name, reader = entry
        return ParsedDocument(
            file_name=file_path.name,
            text=reader(file_path.read_text(encoding="utf-8")),
            metadata={"source": str(file_path), "format": format_name},
        )
