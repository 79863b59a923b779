"""Top-k document retrieval for a query embedding."""

from __future__ import annotations

import logging

from agentic_rag.config import RetrievalConfig
from agentic_rag.errors import ErrorKind, PipelineError
from agentic_rag.retrieval.vector_store import VectorStore
from agentic_rag.types import RetrievedDocument

logger = logging.getLogger(__name__)


class Retriever:
    """Queries the vector store and normalizes its failures.

    A dimension mismatch is raised as-is so callers can word it separately;
    every other store failure becomes a `VectorStore` pipeline error.
    """

    def __init__(self, vector_store: VectorStore, config: RetrievalConfig | None = None) -> None:
        self.vector_store = vector_store
        self.config = config or RetrievalConfig()

    async def retrieve(
        self, query_embedding: list[float], *, top_k: int | None = None
    ) -> list[RetrievedDocument]:
        k = top_k or self.config.top_k
        try:
            documents = await self.vector_store.search(query_embedding, k)
        except PipelineError:
            raise
        except Exception as exc:
            raise PipelineError(ErrorKind.VECTOR_STORE, str(exc)) from exc

        logger.debug("Retrieved %d documents (k=%d)", len(documents), k)
        for document in documents:
            logger.debug(
                "Result: file=%s chunk=%d similarity=%.4f",
                document.file_name,
                document.chunk_id,
                document.similarity,
            )
        return documents
