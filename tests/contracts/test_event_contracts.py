import json

import pytest

from agentic_rag.errors import DimensionMismatchError, ErrorKind, PipelineError
from agentic_rag.events import (
    OutputEvent,
    assistant_output_event,
    content_delta_event,
    error_event,
    stream_end_event,
    stream_start_event,
    tool_usage_event,
)

ERROR_TABLE = [
    (ErrorKind.EMBEDDING, 500, True, "Embedding service error"),
    (ErrorKind.TOOL, 400, False, "Tool execution error"),
    (ErrorKind.GENERATION, 503, True, "LLM service error"),
    (ErrorKind.DATABASE, 500, True, "Database connection error"),
    (ErrorKind.VECTOR_STORE, 500, True, "Vector store error"),
    (ErrorKind.SESSION, 422, False, "Session management error"),
    (ErrorKind.CONFIG, 500, False, "Configuration error"),
    (ErrorKind.VALIDATION, 400, False, "Invalid request"),
]


@pytest.mark.parametrize(("kind", "status", "retryable", "label"), ERROR_TABLE)
def test_error_kind_properties(kind: ErrorKind, status: int, retryable: bool, label: str) -> None:
    error = PipelineError(kind, "details")

    assert error.http_status == status
    assert error.retryable is retryable
    assert str(error) == f"{label}: details"
    assert error.to_event_data() == {
        "error": f"{label}: details",
        "retryable": retryable,
        "http_status": status,
    }


def test_dimension_mismatch_is_distinct_vector_store_error() -> None:
    error = DimensionMismatchError(768, 1024)

    assert isinstance(error, PipelineError)
    assert error.kind is ErrorKind.VECTOR_STORE
    assert error.http_status == 500
    assert "dimension mismatch" in error.message


def test_event_payload_shapes() -> None:
    assert tool_usage_event("file_summarizer", {"file_path": "/a.txt"}, 7, "ok").data == {
        "tool": "file_summarizer",
        "args": {"file_path": "/a.txt"},
        "duration_ms": 7,
        "result": "ok",
    }
    assert assistant_output_event("text").data == {"content": "text"}
    assert content_delta_event("Hi").data == {"content": "Hi", "type": "delta"}
    assert stream_start_event() == OutputEvent("stream_start", {})
    assert stream_end_event() == OutputEvent("stream_end", {})
    assert error_event(PipelineError(ErrorKind.SESSION, "x")).event == "error_event"


def test_sse_frame_encoding() -> None:
    frame = content_delta_event("Hi").encode()

    assert frame == 'event: content_delta\ndata: {"content":"Hi","type":"delta"}\n\n'
    header, data, *_ = frame.split("\n")
    assert json.loads(data.removeprefix("data: ")) == {"content": "Hi", "type": "delta"}
    assert header == "event: content_delta"
