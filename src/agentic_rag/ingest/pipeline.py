"""Document ingestion: parse -> chunk -> embed -> insert."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from agentic_rag.errors import ErrorKind, PipelineError
from agentic_rag.ingest.chunker import TextChunker
from agentic_rag.ingest.embedder import EmbeddingClient
from agentic_rag.ingest.parser import ParserRegistry
from agentic_rag.retrieval.vector_store import VectorStore
from agentic_rag.types import DocumentChunk

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Indexes documents into the vector store used at query time."""

    def __init__(
        self,
        parser_registry: ParserRegistry,
        chunker: TextChunker,
        embedding_client: EmbeddingClient,
        vector_store: VectorStore,
    ) -> None:
        self._parser_registry = parser_registry
        self._chunker = chunker
        self._embedding_client = embedding_client
        self._vector_store = vector_store

    async def add_document(self, file_name: str, content: str) -> int:
        """Chunk, embed and store `content`; returns the number of chunks stored."""

        chunks = self._chunker.chunk_text(content)
        if not chunks:
            return 0

        embeddings = await self._embedding_client.embed([chunk.content for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise PipelineError(
                ErrorKind.EMBEDDING,
                f"expected {len(chunks)} embeddings for {file_name}, got {len(embeddings)}",
            )

        for chunk, embedding in zip(chunks, embeddings, strict=True):
            await self._vector_store.insert(
                DocumentChunk(
                    file_name=file_name,
                    chunk_id=chunk.chunk_id,
                    content=chunk.content,
                    embedding=embedding,
                )
            )
        logger.debug("Stored %d chunks for %s", len(chunks), file_name)
        return len(chunks)

    async def ingest_path(self, path: str | Path) -> int:
        parsed = await asyncio.to_thread(self._parser_registry.parse_path, path)
        return await self.add_document(parsed.file_name, parsed.text)

    async def load_directory(self, directory: str | Path) -> int:
        """Ingest every parseable file directly inside `directory`."""

        root = Path(directory)
        if not root.is_dir():
            raise PipelineError(ErrorKind.CONFIG, f"Document directory not found: {root}")

        total = 0
        for path in sorted(root.iterdir()):
            if not path.is_file() or not self._parser_registry.supports(path):
                continue
            logger.info("Loading document: %s", path.name)
            total += await self.ingest_path(path)
        logger.info("Loaded %d chunks from %s", total, root)
        return total
