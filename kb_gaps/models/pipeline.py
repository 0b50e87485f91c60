"""
Run-state value objects owned by the extraction orchestrator.

Observers receive immutable snapshots; only the orchestrator builds new ones.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class RunStatus(Enum):
    """Lifecycle of an extraction run."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.PAUSED, RunStatus.COMPLETED, RunStatus.FAILED)


@dataclass(frozen=True)
class RunTally:
    """Cumulative per-item outcome counts."""

    successful: int = 0
    unclear: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.successful + self.unclear + self.errors

    def __add__(self, other: "RunTally") -> "RunTally":
        return RunTally(
            successful=self.successful + other.successful,
            unclear=self.unclear + other.unclear,
            errors=self.errors + other.errors,
        )


@dataclass(frozen=True)
class PipelineRunState:
    """
    Snapshot of an extraction run.

    Attributes:
        status: Current lifecycle status
        processed_count: Conversations consumed so far (committed batches only)
        total_count: Conversations in the run
        tally: Cumulative successful/unclear/error counts
        current_batch: 1-based number of the last batch started
        total_batches: Number of batches in the run
        message: Human-readable status line
        error: Error text for FAILED runs or permission halts
        permission_error: True when the run halted on a credential problem
    """

    status: RunStatus = RunStatus.IDLE
    processed_count: int = 0
    total_count: int = 0
    tally: RunTally = field(default_factory=RunTally)
    current_batch: int = 0
    total_batches: int = 0
    message: str = ""
    error: str | None = None
    permission_error: bool = False

    @property
    def progress(self) -> float:
        """Fraction of conversations processed (0.0 - 1.0)."""
        if self.total_count == 0:
            return 0.0
        return self.processed_count / self.total_count

    def evolve(self, **changes) -> "PipelineRunState":
        return replace(self, **changes)
