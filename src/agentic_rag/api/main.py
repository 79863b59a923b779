"""FastAPI entrypoint: health check and the streaming prediction endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from agentic_rag.agent.orchestrator import AgentOrchestrator
from agentic_rag.config import AppSettings
from agentic_rag.obs.logging_setup import configure_logging
from agentic_rag.runtime import AgentRuntime, build_runtime
from agentic_rag.types import Message, Role

logger = logging.getLogger(__name__)


class MessageIn(BaseModel):
    role: Role
    content: str
    name: str | None = None

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content, name=self.name)


class PredictStreamRequest(BaseModel):
    session_id: str = Field(min_length=1)
    messages: list[MessageIn] = Field(default_factory=list)


def create_app(
    orchestrator: AgentOrchestrator | None = None,
    settings: AppSettings | None = None,
) -> FastAPI:
    """Build the application.

    An injected orchestrator is used as-is; otherwise the lifespan builds one
    from `AppSettings` and indexes the configured document directory.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        runtime: AgentRuntime | None = None
        if app.state.orchestrator is None:
            app_settings = settings or AppSettings()
            configure_logging(app_settings.log_level)
            runtime = build_runtime(app_settings.build_config(), app_settings)
            chunks = await runtime.load_documents()
            logger.info("Agent ready with %d indexed chunks", chunks)
            app.state.orchestrator = runtime.orchestrator
        yield
        if runtime is not None:
            await runtime.aclose()
        logger.info("Shutting down")

    app = FastAPI(title="Agentic RAG Service", version="0.1.0", lifespan=lifespan)
    app.state.orchestrator = orchestrator

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @app.post("/predict_stream")
    async def predict_stream(body: PredictStreamRequest, request: Request) -> StreamingResponse:
        agent: AgentOrchestrator = request.app.state.orchestrator
        messages = [message.to_message() for message in body.messages]

        async def _encode() -> AsyncIterator[str]:
            count = 0
            async for event in agent.run(body.session_id, messages):
                count += 1
                yield event.encode()
            logger.info("Session %s streamed %d events", body.session_id, count)

        return StreamingResponse(
            _encode(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = AppSettings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
