"""Gate state machine: ordered, pass-once gates with bounded retry.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- A gate may start only when every earlier gate is PASSED
- FAILED -> IDLE is the only loop, and only while attempts remain
- Reaching the retry ceiling moves the gate to ABORTED (fatal for the build)
- Every transition and every GateResult recorded in the PipelineState
"""

from __future__ import annotations

import logging
from pathlib import Path

from gateforge.core import result_parser
from gateforge.core.script_runner import ScriptRunner
from gateforge.models.artifacts import TEST_SCRIPT
from gateforge.models.config import BuildConfig
from gateforge.models.gates import (
    DEFAULT_GATE_DEFINITIONS,
    GATE_ORDER,
    VALID_TRANSITIONS,
    Gate,
    GateDefinition,
    GateState,
    GateTransition,
)
from gateforge.models.pipeline import Phase, PipelineState, phase_for_gate
from gateforge.models.results import GateResult

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested gate state transition is not valid."""


class GateOrderError(RuntimeError):
    """Raised when a gate is started, or built upon, before its predecessors passed."""


class GateFailedError(RuntimeError):
    """A gate run did not pass but attempts remain. Recoverable."""

    def __init__(self, result: GateResult, attempt: int, remaining: int) -> None:
        super().__init__(
            f"Gate {result.gate.value} failed on attempt {attempt} "
            f"({result.failure_kind}); {remaining} attempt(s) remaining"
        )
        self.result = result
        self.gate = result.gate
        self.attempt = attempt
        self.remaining = remaining


class GateAbortedError(RuntimeError):
    """A gate exhausted its retry ceiling. Fatal for the build."""

    def __init__(self, gate: Gate, history: list[GateResult]) -> None:
        super().__init__(
            f"Gate {gate.value} aborted after {len(history)} failed attempt(s)"
        )
        self.gate = gate
        self.history = list(history)


class GateEngine:
    """Runs the gates of one build against its materialized skill directory.

    Parameters
    ----------
    state:
        The build's PipelineState; results and transitions are appended to it.
    runner:
        Executes ``scripts/test.sh``.
    config:
        Supplies per-gate timeouts and the retry ceiling.
    """

    def __init__(
        self,
        state: PipelineState,
        runner: ScriptRunner,
        config: BuildConfig,
        definitions: list[GateDefinition] | None = None,
    ) -> None:
        self._state = state
        self._runner = runner
        self._config = config
        self._definitions = {
            d.gate: d for d in (definitions or DEFAULT_GATE_DEFINITIONS)
        }
        self._gate_states: dict[Gate, GateState] = {g: GateState.IDLE for g in GATE_ORDER}

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def get_state(self, gate: Gate) -> GateState:
        return self._gate_states[gate]

    def get_all_states(self) -> dict[Gate, GateState]:
        return dict(self._gate_states)

    def attempts(self, gate: Gate) -> int:
        return self._state.attempts[gate]

    def can_start(self, gate: Gate) -> tuple[bool, list[str]]:
        """Check whether *gate* may enter RUNNING.

        Returns (can_start, blocking_reasons).
        """
        current = self._gate_states[gate]
        if current not in (GateState.IDLE, GateState.FAILED):
            return False, [f"{gate.value} is {current.value}"]
        reasons = [
            f"{prereq.value} is {self._gate_states[prereq].value}"
            for prereq in self._prerequisites(gate)
            if self._gate_states[prereq] != GateState.PASSED
        ]
        return not reasons, reasons

    def require_passed(self, gate: Gate) -> GateResult:
        """Return the passing result for *gate* or raise ``GateOrderError``.

        Called before any content for the next gate is authored.
        """
        if self._gate_states[gate] != GateState.PASSED or not self._state.has_passed(gate):
            raise GateOrderError(
                f"Gate {gate.value} has not passed (state: "
                f"{self._gate_states[gate].value}); later gates may not be authored"
            )
        return next(r for r in reversed(self._state.results_for(gate)) if r.passed)

    def _prerequisites(self, gate: Gate) -> list[Gate]:
        definition = self._definitions.get(gate)
        declared = list(definition.prerequisites) if definition else []
        # Earlier gates are always prerequisites, whatever the definitions say.
        implied = GATE_ORDER[: GATE_ORDER.index(gate)]
        return list(dict.fromkeys(implied + declared))

    # ------------------------------------------------------------------
    # Transition logic
    # ------------------------------------------------------------------

    def transition(self, gate: Gate, target: GateState, *, reason: str = "") -> GateTransition:
        """Move *gate* to *target*, recording the transition.

        Raises ``InvalidTransitionError`` for moves outside the table and
        ``GateOrderError`` when entering RUNNING before earlier gates passed.
        """
        current = self._gate_states[gate]
        allowed = VALID_TRANSITIONS.get(current, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {gate.value} from {current.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        if target == GateState.RUNNING:
            ok, reasons = self.can_start(gate)
            if not ok:
                raise GateOrderError(
                    f"Cannot start {gate.value}: {'; '.join(reasons)}"
                )

        record = GateTransition(
            gate=gate,
            from_state=current,
            to_state=target,
            attempt=self._state.attempts[gate],
            reason=reason,
        )
        self._gate_states[gate] = target
        self._state.record_transition(record)
        logger.info(
            "gate %s: %s -> %s%s",
            gate.value, current.value, target.value, f" ({reason})" if reason else "",
        )
        return record

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, gate: Gate, skill_dir: Path) -> GateResult:
        """Execute *gate* once against the harness in *skill_dir*.

        Returns the passing ``GateResult``. Raises ``GateFailedError`` when
        the run fails with attempts remaining and ``GateAbortedError`` when
        the retry ceiling is reached. ``ScriptLaunchError`` propagates.
        """
        if self._gate_states[gate] == GateState.FAILED:
            self.transition(gate, GateState.IDLE, reason="retry")
        self.transition(gate, GateState.RUNNING)

        attempt = self._state.attempts[gate] + 1
        self._state.attempts[gate] = attempt
        timeout = self._config.timeout_for(gate)

        outcome = self._runner.execute(
            Path(skill_dir) / TEST_SCRIPT,
            "",
            timeout,
            cwd=Path(skill_dir),
            env={"GATEFORGE_GATE": gate.value},
        )
        result = result_parser.parse_execution(outcome, gate=gate, attempt=attempt)
        self._state.record_result(result)
        logger.info("%s", result_parser.summarize(result))

        if result.passed:
            self.transition(gate, GateState.PASSED)
            next_index = GATE_ORDER.index(gate) + 1
            if next_index < len(GATE_ORDER):
                self._state.advance(phase_for_gate(GATE_ORDER[next_index]))
            return result

        self.transition(gate, GateState.FAILED, reason=result.failure_kind)
        ceiling = self._config.retry_ceiling
        if attempt >= ceiling:
            self.transition(gate, GateState.ABORTED, reason=f"retry ceiling {ceiling} reached")
            self._state.advance(Phase.ABORTED)
            raise GateAbortedError(gate, self._state.results_for(gate))
        raise GateFailedError(result, attempt, ceiling - attempt)
