"""Gate state machine models: ordered gates and legal transitions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Gate(str, Enum):
    """The three validation gates, in build order."""

    SMOKE = "smoke"
    CONTRACT = "contract"
    INTEGRATION = "integration"

    @property
    def ordinal(self) -> int:
        return GATE_ORDER.index(self) + 1

    @property
    def previous(self) -> Gate | None:
        """The gate that must be PASSED before this one may run."""
        idx = GATE_ORDER.index(self)
        return GATE_ORDER[idx - 1] if idx > 0 else None


GATE_ORDER: list[Gate] = [Gate.SMOKE, Gate.CONTRACT, Gate.INTEGRATION]


class GateState(str, Enum):
    """Per-gate state within one build."""

    IDLE = "idle"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ABORTED = "aborted"


# Enforced structurally by GateEngine.
# PASSED and ABORTED are terminal; FAILED -> IDLE is the retry loop.
VALID_TRANSITIONS: dict[GateState, set[GateState]] = {
    GateState.IDLE: {GateState.RUNNING},
    GateState.RUNNING: {GateState.PASSED, GateState.FAILED},
    GateState.FAILED: {GateState.IDLE, GateState.ABORTED},
    GateState.PASSED: set(),
    GateState.ABORTED: set(),
}


class GateDefinition(BaseModel):
    """Describes one gate and the requirements its tests must cover.

    ``requirements`` is handed verbatim to the content generator when the
    gate's test section and hardened implementation are authored.
    """

    model_config = ConfigDict(frozen=True)

    gate: Gate
    display_name: str
    requirements: str
    prerequisites: list[Gate] = []


class GateTransition(BaseModel):
    """Audit record of a single gate state change."""

    model_config = ConfigDict(frozen=True)

    gate: Gate
    from_state: GateState
    to_state: GateState
    attempt: int = 0
    reason: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


DEFAULT_GATE_DEFINITIONS: list[GateDefinition] = [
    GateDefinition(
        gate=Gate.SMOKE,
        display_name="Smoke",
        requirements=(
            "Single assertion exercising the primary happy path: valid input "
            "on stdin produces the expected output and exit code 0."
        ),
    ),
    GateDefinition(
        gate=Gate.CONTRACT,
        display_name="Contract",
        requirements=(
            "Input/output boundary behaviour: empty or invalid input exits 1 "
            "with a message on stderr, unknown flags exit 2, --help exits 0, "
            "output format is stable."
        ),
        prerequisites=[Gate.SMOKE],
    ),
    GateDefinition(
        gate=Gate.INTEGRATION,
        display_name="Integration",
        requirements=(
            "Edge cases and realistic end-to-end scenarios: multi-line input, "
            "unicode, whitespace-only lines, large input, piping through "
            "flags and stdin together."
        ),
        prerequisites=[Gate.SMOKE, Gate.CONTRACT],
    ),
]
