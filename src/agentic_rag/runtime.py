"""Wires configured components into a ready-to-serve agent runtime."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from agentic_rag.agent.detector import ToolCallDetector
from agentic_rag.agent.orchestrator import AgentOrchestrator
from agentic_rag.agent.registry import ToolRegistry
from agentic_rag.agent.tools import register_builtin_tools
from agentic_rag.config import AgentConfig, AppSettings
from agentic_rag.ingest.chunker import TextChunker
from agentic_rag.ingest.embedder import EmbeddingClient, create_embedding_provider
from agentic_rag.ingest.parser import ParserRegistry
from agentic_rag.ingest.pipeline import IngestPipeline
from agentic_rag.llm.generation import GenerationClient, create_chat_models
from agentic_rag.retrieval.retriever import Retriever
from agentic_rag.retrieval.vector_store import InMemoryVectorStore
from agentic_rag.session.session_log import InMemorySessionLog, RedisSessionLog, SessionLog

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AgentRuntime:
    config: AgentConfig
    orchestrator: AgentOrchestrator
    ingest_pipeline: IngestPipeline
    session_log: SessionLog

    async def load_documents(self) -> int:
        """Index the configured document directory; failures leave the index empty."""

        directory = self.config.data.document_dir
        try:
            return await self.ingest_pipeline.load_directory(directory)
        except Exception as exc:
            logger.warning("Failed to load documents from %s: %s", directory, exc)
            return 0

    async def aclose(self) -> None:
        if isinstance(self.session_log, RedisSessionLog):
            await self.session_log.close()


def build_session_log(config: AgentConfig) -> SessionLog:
    if config.session.backend == "redis":
        logger.info("Using Redis session log at %s", config.session.redis_url)
        return RedisSessionLog.from_url(config.session.redis_url, config.session.ttl_seconds)
    return InMemorySessionLog(ttl_seconds=config.session.ttl_seconds)


def build_runtime(config: AgentConfig, settings: AppSettings | None = None) -> AgentRuntime:
    api_key = settings.openai_api_key if settings is not None else None

    provider = create_embedding_provider(config.embedding, api_key)
    embedding_client = EmbeddingClient(provider, config.embedding)
    vector_store = InMemoryVectorStore(
        dimension=config.retrieval.dimension or provider.dimension(),
        min_similarity=config.retrieval.min_similarity,
    )

    registry = ToolRegistry()
    register_builtin_tools(registry)

    primary, fallback = create_chat_models(config.llm, api_key)
    session_log = build_session_log(config)

    orchestrator = AgentOrchestrator(
        session_log=session_log,
        detector=ToolCallDetector(
            document_dir=config.data.document_dir,
            extensions=config.data.tool_extensions,
        ),
        registry=registry,
        embedding_client=embedding_client,
        retriever=Retriever(vector_store, config.retrieval),
        generation_client=GenerationClient(primary, fallback, config.llm),
        top_k=config.retrieval.top_k,
    )
    ingest_pipeline = IngestPipeline(
        ParserRegistry(),
        TextChunker(config.chunking),
        embedding_client,
        vector_store,
    )
    return AgentRuntime(
        config=config,
        orchestrator=orchestrator,
        ingest_pipeline=ingest_pipeline,
        session_log=session_log,
    )
