"""Embedding providers and the retrying embedding client."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt
from typing import TYPE_CHECKING

from agentic_rag.config import EmbeddingConfig
from agentic_rag.errors import ErrorKind, PipelineError
from agentic_rag.retry import SleepFn, build_retrying

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Turns text into fixed-length vectors."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch; output order matches input order."""

    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this provider returns."""


class HashingEmbedder(EmbeddingProvider):
    """Deterministic bag-of-tokens embedding without external model calls.

    Each lowercase token is hashed into one signed bucket and the result is
    L2-normalized, so texts sharing words land close together. Used for local
    development, offline deployments and tests.
    """

    def __init__(self, dimension: int = 1024) -> None:
        self._dimension = dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_one(text) for text in texts]

    def dimension(self) -> int:
        return self._dimension

    def embed_one(self, text: str) -> list[float]:
        vector = [0.0 for _ in range(self._dimension)]
        tokens = text.lower().split()
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self._dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


class LangChainEmbeddingProvider(EmbeddingProvider):
    """Adapts any LangChain `Embeddings` implementation."""

    def __init__(self, embeddings: Embeddings, dimension: int) -> None:
        self._embeddings = embeddings
        self._dimension = dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return await self._embeddings.aembed_documents(texts)

    def dimension(self) -> int:
        return self._dimension


class EmbeddingClient:
    """Embeds text through a provider with timeout and exponential backoff.

    Attempt `n` (0-based) that fails or times out is followed by a sleep of
    `base_delay_seconds * 2**n`; after `max_retries` retries the last error is
    re-raised unchanged.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        config: EmbeddingConfig | None = None,
        *,
        sleep: SleepFn | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or EmbeddingConfig()
        self._sleep = sleep

    def dimension(self) -> int:
        return self.provider.dimension()

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        retrying = build_retrying(
            max_retries=self.config.max_retries,
            base_delay_seconds=self.config.base_delay_seconds,
            operation="embedding",
            sleep=self._sleep,
        )
        try:
            return await retrying(self._attempt, texts)
        except Exception as exc:
            logger.error(
                "Embedding failed after %d attempts: %s", self.config.max_retries + 1, exc
            )
            raise

    async def _attempt(self, texts: list[str]) -> list[list[float]]:
        return await asyncio.wait_for(
            self.provider.embed(texts), timeout=self.config.timeout_seconds
        )


def create_embedding_provider(
    config: EmbeddingConfig, api_key: str | None = None
) -> EmbeddingProvider:
    """Build the provider named by `config.provider`."""

    if config.provider == "hashing":
        return HashingEmbedder(dimension=config.dimension)

    if not api_key:
        raise PipelineError(
            ErrorKind.CONFIG, "OPENAI_API_KEY is required for the openai embedding provider"
        )

    from langchain_openai import OpenAIEmbeddings

    embeddings = OpenAIEmbeddings(
        model=config.model or "text-embedding-3-small",
        dimensions=config.dimension,
        api_key=api_key,
        max_retries=0,
    )
    logger.info("Using OpenAI embeddings model %s", embeddings.model)
    return LangChainEmbeddingProvider(embeddings, dimension=config.dimension)
