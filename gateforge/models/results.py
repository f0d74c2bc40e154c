"""Execution and gate result models."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gateforge.models.gates import Gate


class ExecutionResult(BaseModel):
    """A script that ran to completion (any exit code)."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0


class TimedOut(BaseModel):
    """A script that was killed after exceeding its wall-clock bound.

    Kept distinct from a non-zero exit: a hang points at an infinite loop
    or a blocking read, not at a handled error path.
    """

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0


class AssertionFailure(BaseModel):
    """One ``  FAIL: <description> -- <reason>`` line."""

    model_config = ConfigDict(frozen=True)

    description: str
    reason: str = ""


class GateResult(BaseModel):
    """Outcome of one gate execution.

    A gate is passed iff the harness exited 0, reported no failures and
    executed at least one assertion. A run with zero assertions never
    passes, whatever its exit code.
    """

    model_config = ConfigDict(frozen=True)

    gate: Gate
    pass_count: int = 0
    fail_count: int = 0
    total_count: int = 0
    raw_output: str = ""
    exit_code: int | None = None  # None when the harness timed out
    stderr: str = ""
    timed_out: bool = False
    attempt: int = 1
    duration_ms: float = 0.0
    failures: list[AssertionFailure] = []
    # Assertions printed under this gate's own banner; None when the
    # output carries no gate banners and every line belongs to this gate.
    section_count: int | None = None
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode="after")
    def _check_counts(self) -> GateResult:
        if min(self.pass_count, self.fail_count, self.total_count) < 0:
            raise ValueError("assertion counts must be non-negative")
        if self.pass_count + self.fail_count != self.total_count:
            raise ValueError(
                f"pass_count ({self.pass_count}) + fail_count ({self.fail_count}) "
                f"!= total_count ({self.total_count})"
            )
        if self.section_count is not None and not 0 <= self.section_count <= self.total_count:
            raise ValueError("section_count must be between 0 and total_count")
        return self

    @property
    def passed(self) -> bool:
        return (
            not self.timed_out
            and self.exit_code == 0
            and self.fail_count == 0
            and self.own_count > 0
        )

    @property
    def own_count(self) -> int:
        """Assertions that belong to this gate rather than an earlier section."""
        return self.total_count if self.section_count is None else self.section_count

    @property
    def failure_kind(self) -> str:
        """Short classifier used in logs and reports."""
        if self.passed:
            return "none"
        if self.timed_out:
            return "timeout"
        if self.fail_count:
            return "assertion"
        if self.own_count == 0:
            return "vacuous"
        return "exit_code"
