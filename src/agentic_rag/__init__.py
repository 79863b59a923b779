"""Agentic RAG streaming chat service."""

from .config import AgentConfig, AppSettings, ChunkingConfig, RetrievalConfig
from .errors import ErrorKind, PipelineError

__all__ = [
    "AgentConfig",
    "AppSettings",
    "ChunkingConfig",
    "ErrorKind",
    "PipelineError",
    "RetrievalConfig",
]
