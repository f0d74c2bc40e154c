"""Pipeline state and build report models.

``PipelineState`` is the one mutable model: it is owned by exactly one
``PipelineController`` for the lifetime of one build and never shared.
Its ``history`` and ``transitions`` lists are append-only.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from gateforge.models.artifacts import ArtifactManifest
from gateforge.models.gates import Gate, GateTransition
from gateforge.models.results import GateResult


class Phase(str, Enum):
    """Build-level phase. Advances monotonically."""

    SMOKE = "smoke"
    CONTRACT = "contract"
    INTEGRATION = "integration"
    DONE = "done"
    ABORTED = "aborted"


_PHASE_ORDER: list[Phase] = [Phase.SMOKE, Phase.CONTRACT, Phase.INTEGRATION, Phase.DONE]


def phase_for_gate(gate: Gate) -> Phase:
    return Phase(gate.value)


class BuildStep(str, Enum):
    """The twelve-step generation sequence, in order."""

    DERIVE_NAME = "derive_name"
    WRITE_SKELETON = "write_skeleton"
    WRITE_IMPLEMENTATION = "write_implementation"
    WRITE_SMOKE_TESTS = "write_smoke_tests"
    RUN_SMOKE_GATE = "run_smoke_gate"
    APPEND_CONTRACT_TESTS = "append_contract_tests"
    RUN_CONTRACT_GATE = "run_contract_gate"
    APPEND_INTEGRATION_TESTS = "append_integration_tests"
    RUN_INTEGRATION_GATE = "run_integration_gate"
    WRITE_EXAMPLES = "write_examples"
    WRITE_DOCUMENTATION = "write_documentation"
    PUBLISH = "publish"

    @property
    def ordinal(self) -> int:
        return list(BuildStep).index(self) + 1


class PipelineState(BaseModel):
    """Mutable per-build state: current phase, attempts, result history."""

    current_phase: Phase = Phase.SMOKE
    attempts: dict[Gate, int] = Field(
        default_factory=lambda: {gate: 0 for gate in Gate}
    )
    history: list[GateResult] = []
    transitions: list[GateTransition] = []
    steps_completed: list[BuildStep] = []

    def record_result(self, result: GateResult) -> None:
        self.history.append(result)

    def record_transition(self, transition: GateTransition) -> None:
        self.transitions.append(transition)

    def complete_step(self, step: BuildStep) -> None:
        expected = len(self.steps_completed) + 1
        if step.ordinal != expected:
            raise RuntimeError(
                f"Build step {step.value} (#{step.ordinal}) out of order; "
                f"expected step #{expected}"
            )
        self.steps_completed.append(step)

    def advance(self, phase: Phase) -> None:
        """Move to *phase*. Only forward moves, or into ABORTED, are legal."""
        if self.current_phase in (Phase.DONE, Phase.ABORTED):
            raise RuntimeError(
                f"Pipeline already finished in {self.current_phase.value}"
            )
        if phase != Phase.ABORTED:
            if _PHASE_ORDER.index(phase) <= _PHASE_ORDER.index(self.current_phase):
                raise RuntimeError(
                    f"Phase cannot regress from {self.current_phase.value} "
                    f"to {phase.value}"
                )
        self.current_phase = phase

    def results_for(self, gate: Gate) -> list[GateResult]:
        return [r for r in self.history if r.gate == gate]

    def has_passed(self, gate: Gate) -> bool:
        return any(r.passed for r in self.results_for(gate))


class BuildReport(BaseModel):
    """What the caller gets back: always the history, files only on success."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    skill_name: str = ""
    status: Phase
    published_path: Path | None = None
    manifest: ArtifactManifest | None = None
    history: list[GateResult] = []
    transitions: list[GateTransition] = []
    steps_completed: list[BuildStep] = []
    failed_gate: Gate | None = None
    error_kind: str = ""
    error_message: str = ""
    finished_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def succeeded(self) -> bool:
        return self.status == Phase.DONE

    def gate_history(self, gate: Gate) -> list[GateResult]:
        return [r for r in self.history if r.gate == gate]
