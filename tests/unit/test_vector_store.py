import pytest

from agentic_rag.config import RetrievalConfig
from agentic_rag.errors import DimensionMismatchError, ErrorKind, PipelineError
from agentic_rag.retrieval.retriever import Retriever
from agentic_rag.retrieval.vector_store import InMemoryVectorStore
from agentic_rag.types import DocumentChunk, RetrievedDocument


def _chunk(name: str, vector: list[float], chunk_id: int = 0) -> DocumentChunk:
    return DocumentChunk(file_name=name, chunk_id=chunk_id, content=f"{name} text", embedding=vector)


class BrokenStore:
    def dimension(self) -> int:
        return 2

    async def insert(self, chunk: DocumentChunk) -> None:
        raise NotImplementedError

    async def search(self, query_embedding: list[float], k: int) -> list[RetrievedDocument]:
        raise ConnectionError("connection refused")


@pytest.mark.asyncio
async def test_search_ranks_by_similarity_and_caps_at_k() -> None:
    store = InMemoryVectorStore(dimension=2)
    await store.insert(_chunk("far.txt", [0.2, 1.0]))
    await store.insert(_chunk("near.txt", [1.0, 0.1]))
    await store.insert(_chunk("mid.txt", [1.0, 1.0]))

    hits = await store.search([1.0, 0.0], k=2)

    assert [hit.file_name for hit in hits] == ["near.txt", "mid.txt"]
    assert hits[0].similarity > hits[1].similarity
    assert all(0.0 < hit.similarity <= 1.0 + 1e-9 for hit in hits)


@pytest.mark.asyncio
async def test_hits_at_or_below_threshold_are_dropped() -> None:
    store = InMemoryVectorStore(dimension=2)
    await store.insert(_chunk("orthogonal.txt", [0.0, 1.0]))
    await store.insert(_chunk("opposite.txt", [-1.0, 0.0]))

    assert await store.search([1.0, 0.0], k=5) == []


@pytest.mark.asyncio
async def test_query_dimension_mismatch_is_vector_store_error() -> None:
    store = InMemoryVectorStore(dimension=768)

    with pytest.raises(DimensionMismatchError) as exc_info:
        await store.search([0.1] * 1024, k=5)

    error = exc_info.value
    assert error.kind is ErrorKind.VECTOR_STORE
    assert error.retryable is True
    assert (error.expected, error.actual) == (768, 1024)
    assert "Query embedding dimension mismatch: expected 768, got 1024" in str(error)


@pytest.mark.asyncio
async def test_insert_rejects_wrong_dimension() -> None:
    store = InMemoryVectorStore(dimension=3)

    with pytest.raises(DimensionMismatchError):
        await store.insert(_chunk("bad.txt", [1.0, 0.0]))
    assert len(store) == 0


@pytest.mark.asyncio
async def test_retriever_wraps_generic_failures() -> None:
    retriever = Retriever(BrokenStore(), RetrievalConfig(top_k=5))

    with pytest.raises(PipelineError) as exc_info:
        await retriever.retrieve([1.0, 0.0])

    assert exc_info.value.kind is ErrorKind.VECTOR_STORE
    assert not isinstance(exc_info.value, DimensionMismatchError)
    assert exc_info.value.message == "connection refused"


@pytest.mark.asyncio
async def test_retriever_passes_dimension_mismatch_through() -> None:
    retriever = Retriever(InMemoryVectorStore(dimension=4))

    with pytest.raises(DimensionMismatchError):
        await retriever.retrieve([1.0, 0.0])
