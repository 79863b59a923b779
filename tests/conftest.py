from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from helpers import RecordingSleep

from agentic_rag.agent.detector import ToolCallDetector
from agentic_rag.agent.orchestrator import AgentOrchestrator
from agentic_rag.agent.registry import ToolRegistry
from agentic_rag.agent.tools import register_builtin_tools
from agentic_rag.config import EmbeddingConfig
from agentic_rag.ingest.embedder import EmbeddingClient, EmbeddingProvider, HashingEmbedder
from agentic_rag.retrieval.retriever import Retriever
from agentic_rag.retrieval.vector_store import InMemoryVectorStore, VectorStore
from agentic_rag.session.session_log import InMemorySessionLog, SessionLog


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(
    recording_sleep: RecordingSleep,
) -> Callable[..., AgentOrchestrator]:
    def _make(
        generation_client: Any,
        *,
        session_log: SessionLog | None = None,
        provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
        document_dir: str = "/docs",
        embedding_retries: int = 0,
    ) -> AgentOrchestrator:
        provider = provider or HashingEmbedder(dimension=64)
        registry = ToolRegistry()
        register_builtin_tools(registry)
        return AgentOrchestrator(
            session_log=session_log if session_log is not None else InMemorySessionLog(),
            detector=ToolCallDetector(document_dir=document_dir),
            registry=registry,
            embedding_client=EmbeddingClient(
                provider,
                EmbeddingConfig(max_retries=embedding_retries, base_delay_seconds=1.0),
                sleep=recording_sleep,
            ),
            retriever=Retriever(
                vector_store
                if vector_store is not None
                else InMemoryVectorStore(dimension=provider.dimension())
            ),
            generation_client=generation_client,
        )

    return _make
