"""Vector store contract and the in-process cosine index."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from math import sqrt
from typing import Protocol

from agentic_rag.errors import DimensionMismatchError
from agentic_rag.types import DocumentChunk, RetrievedDocument


class VectorStore(Protocol):
    """Minimal vector store contract for ingestion and retrieval."""

    def dimension(self) -> int:
        """Vector length every stored and query embedding must have."""

    async def insert(self, chunk: DocumentChunk) -> None:
        """Store one embedded chunk."""

    async def search(self, query_embedding: list[float], k: int) -> list[RetrievedDocument]:
        """Return up to `k` chunks ranked by descending similarity."""


@dataclass(slots=True)
class _StoredVector:
    chunk: DocumentChunk
    norm: float


class InMemoryVectorStore:
    """Exact cosine search over all stored chunks.

    Similarity is `1 - cosine_distance`; hits at or below `min_similarity` are
    dropped. Vectors of any other length than `dimension` are rejected with
    `DimensionMismatchError`.
    """

    def __init__(self, dimension: int, min_similarity: float = 0.01) -> None:
        self._dimension = dimension
        self.min_similarity = min_similarity
        self._records: list[_StoredVector] = []
        self._lock = asyncio.Lock()

    def dimension(self) -> int:
        return self._dimension

    def __len__(self) -> int:
        return len(self._records)

    async def insert(self, chunk: DocumentChunk) -> None:
        if len(chunk.embedding) != self._dimension:
            raise DimensionMismatchError(
                self._dimension, len(chunk.embedding), subject="Embedding"
            )
        async with self._lock:
            self._records.append(_StoredVector(chunk=chunk, norm=_norm(chunk.embedding)))

    async def search(self, query_embedding: list[float], k: int) -> list[RetrievedDocument]:
        if len(query_embedding) != self._dimension:
            raise DimensionMismatchError(self._dimension, len(query_embedding))

        query_norm = _norm(query_embedding)
        async with self._lock:
            records = list(self._records)

        hits: list[RetrievedDocument] = []
        for record in records:
            similarity = _cosine_similarity(
                query_embedding, query_norm, record.chunk.embedding, record.norm
            )
            if similarity > self.min_similarity:
                hits.append(
                    RetrievedDocument(
                        file_name=record.chunk.file_name,
                        chunk_id=record.chunk.chunk_id,
                        content=record.chunk.content,
                        similarity=similarity,
                    )
                )

        hits.sort(key=lambda hit: hit.similarity, reverse=True)
        return hits[:k]


def _norm(vector: list[float]) -> float:
    return sqrt(sum(value * value for value in vector))


def _cosine_similarity(a: list[float], norm_a: float, b: list[float], norm_b: float) -> float:
    if norm_a == 0 or norm_b == 0:
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    return numerator / (norm_a * norm_b)
