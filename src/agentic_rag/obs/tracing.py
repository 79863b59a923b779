"""Per-request pipeline tracing and timing helpers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

from agentic_rag.errors import ErrorKind


class PipelinePhase(str, Enum):
    STARTED = "Started"
    PERSISTED = "Persisted"
    TOOL = "ToolPhase"
    EMBEDDING = "EmbeddingPhase"
    RETRIEVAL = "RetrievalPhase"
    GENERATION = "GenerationPhase"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(slots=True)
class PhaseTransition:
    phase: PipelinePhase
    elapsed_ms: float
    error_kind: ErrorKind | None = None


@dataclass(slots=True)
class PipelineTrace:
    """Records the phases one request passed through.

    `Completed` and `Failed` are absorbing: once either is reached, further
    transitions are ignored.
    """

    session_id: str
    transitions: list[PhaseTransition] = field(default_factory=list)
    _start: float = field(default_factory=time.perf_counter, init=False, repr=False)

    def __post_init__(self) -> None:
        self.transitions.append(PhaseTransition(PipelinePhase.STARTED, 0.0))

    @property
    def phase(self) -> PipelinePhase:
        return self.transitions[-1].phase

    @property
    def phases(self) -> list[PipelinePhase]:
        return [transition.phase for transition in self.transitions]

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.transitions[-1].error_kind

    @property
    def finished(self) -> bool:
        return self.phase in (PipelinePhase.COMPLETED, PipelinePhase.FAILED)

    def advance(self, phase: PipelinePhase) -> None:
        if not self.finished:
            self.transitions.append(PhaseTransition(phase, self._elapsed_ms()))

    def complete(self, error_kind: ErrorKind | None = None) -> None:
        """Finish; `error_kind` marks a stage that ended the request early."""
        if not self.finished:
            self.transitions.append(
                PhaseTransition(PipelinePhase.COMPLETED, self._elapsed_ms(), error_kind=error_kind)
            )

    def fail(self, kind: ErrorKind) -> None:
        if not self.finished:
            self.transitions.append(
                PhaseTransition(PipelinePhase.FAILED, self._elapsed_ms(), error_kind=kind)
            )

    def _elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000.0


class Timer:
    """Simple context timer used around tool calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
