"""Sliding-window chunking over whitespace tokens."""

from __future__ import annotations

from agentic_rag.config import ChunkingConfig
from agentic_rag.types import TextChunk


class TextChunker:
    """Splits text into overlapping windows of whitespace tokens.

    Windows hold `chunk_size` tokens and advance by `chunk_size - overlap_size`,
    so consecutive chunks share `overlap_size` tokens. A token is never split.

    Chunk text is the window's tokens joined by single spaces, and offsets are
    measured in that normalized text: a window starting at token `i` begins at
    `sum(len(token) + 1 for token in tokens[:i])`. The final window always ends
    at `len(text)`. Text that fits in one window is returned verbatim.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()
        if self.config.overlap_size >= self.config.chunk_size:
            raise ValueError("overlap_size must be less than chunk_size")

    def chunk_text(self, text: str) -> list[TextChunk]:
        if not text:
            return []

        tokens = text.split()

        size = self.config.chunk_size
        if len(tokens) <= size:
            return [TextChunk(content=text, start_pos=0, end_pos=len(text), chunk_id=0)]

        stride = size - self.config.overlap_size
        offsets = self._token_offsets(tokens)
        chunks: list[TextChunk] = []
        start = 0

        while start < len(tokens):
            end = min(start + size, len(tokens))
            content = " ".join(tokens[start:end])
            start_pos = offsets[start]
            end_pos = len(text) if end == len(tokens) else start_pos + len(content)
            chunks.append(
                TextChunk(
                    content=content,
                    start_pos=start_pos,
                    end_pos=end_pos,
                    chunk_id=len(chunks),
                )
            )
            if end == len(tokens):
                break
            start += stride

        return chunks

    @staticmethod
    def estimate_tokens(text: str) -> int:
        return len(text.split())

    @staticmethod
    def _token_offsets(tokens: list[str]) -> list[int]:
        offsets: list[int] = []
        position = 0
        for token in tokens:
            offsets.append(position)
            position += len(token) + 1
        return offsets
