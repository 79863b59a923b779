"""Configuration models for the agent service."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentic_rag.errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)


class ChunkingConfig(BaseModel):
    """Configures sliding-window chunking of ingested documents."""

    chunk_size: int = Field(default=500, ge=1)
    overlap_size: int = Field(default=100, ge=0)

    @model_validator(mode="after")
    def _overlap_below_window(self) -> ChunkingConfig:
        if self.overlap_size >= self.chunk_size:
            raise ValueError("overlap_size must be less than chunk_size")
        return self


class EmbeddingConfig(BaseModel):
    """Configures the embedding provider and its retry policy."""

    provider: Literal["hashing", "openai"] = "hashing"
    model: str | None = None
    dimension: int = Field(default=1024, ge=1)
    max_retries: int = Field(default=3, ge=0)
    base_delay_seconds: float = Field(default=1.0, ge=0.0)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class LlmConfig(BaseModel):
    """Configures the primary/fallback chat models."""

    primary: str = "gpt-4o"
    fallback: str = "gpt-4o-mini"
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_retries: int = Field(default=1, ge=0)
    base_delay_seconds: float = Field(default=1.0, ge=0.0)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class RetrievalConfig(BaseModel):
    """Configures vector search; `dimension=None` follows the embedder."""

    top_k: int = Field(default=5, ge=1)
    dimension: int | None = Field(default=None, ge=1)
    min_similarity: float = Field(default=0.01, ge=0.0, le=1.0)


class SessionConfig(BaseModel):
    """Configures where session history lives and how long it idles."""

    backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"
    ttl_seconds: int = Field(default=3600, ge=1)


class DataConfig(BaseModel):
    """Configures document loading and file-reference detection."""

    document_dir: str = "./data"
    tool_extensions: tuple[str, ...] = (".txt", ".rs", ".py")


class AgentConfig(BaseModel):
    """Complete configuration, built once at startup."""

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    llm: LlmConfig = Field(default_factory=LlmConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    data: DataConfig = Field(default_factory=DataConfig)

    @classmethod
    def load(cls, path: str | Path) -> AgentConfig:
        """Read a TOML file with one table per section."""

        file_path = Path(path)
        try:
            payload: dict[str, Any] = tomllib.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise PipelineError(ErrorKind.CONFIG, f"cannot read {file_path}: {exc}") from exc
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise PipelineError(ErrorKind.CONFIG, f"invalid {file_path}: {exc}") from exc


class AppSettings(BaseSettings):
    """Process environment; the only place environment variables are read."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    config_path: str = Field(default="./config.toml", alias="CONFIG_PATH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    llm_primary_model: str | None = Field(default=None, alias="LLM_PRIMARY_MODEL")
    llm_fallback_model: str | None = Field(default=None, alias="LLM_FALLBACK_MODEL")
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    document_dir: str | None = Field(default=None, alias="DOCUMENT_DIR")

    def build_config(self) -> AgentConfig:
        """Load the TOML config (or development defaults) and apply overrides."""

        path = Path(self.config_path)
        if path.is_file():
            config = AgentConfig.load(path)
        else:
            logger.warning("Config file %s not found, using development defaults", path)
            config = AgentConfig()

        if self.llm_primary_model:
            config.llm.primary = self.llm_primary_model
        if self.llm_fallback_model:
            config.llm.fallback = self.llm_fallback_model
        if self.redis_url:
            config.session.backend = "redis"
            config.session.redis_url = self.redis_url
        if self.document_dir:
            config.data.document_dir = self.document_dir
        return config
