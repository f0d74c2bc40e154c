"""Adversarial tests: attempts to skip, reorder or re-enter gates.

These tests verify that:
1. A later gate never runs before every earlier gate passed
2. Terminal gate states cannot be exited
3. The phase never moves backwards
4. An aborted build publishes nothing, whatever the generator does
5. Harness output cannot fake a pass
"""

from __future__ import annotations

from pathlib import Path

import pytest

from gateforge.core import result_parser
from gateforge.core.controller import BuildFailedError, PipelineController
from gateforge.core.gate_engine import (
    GateAbortedError,
    GateEngine,
    GateFailedError,
    GateOrderError,
    InvalidTransitionError,
)
from gateforge.generation.protocols import ContentTarget, GenerationRequest
from gateforge.models.gates import Gate, GateDefinition, GateState
from gateforge.models.pipeline import Phase
from gateforge.models.results import ExecutionResult


class TestOrderBypassAttempts:
    def test_cannot_transition_integration_to_running_directly(self, make_engine):
        engine: GateEngine = make_engine()
        with pytest.raises(GateOrderError):
            engine.transition(Gate.INTEGRATION, GateState.RUNNING)

    def test_failed_smoke_does_not_unlock_contract(self, make_engine, failing, tmp_dir: Path):
        engine = make_engine(failing())
        with pytest.raises(GateFailedError):
            engine.run(Gate.SMOKE, tmp_dir)
        with pytest.raises(GateOrderError):
            engine.run(Gate.CONTRACT, tmp_dir)

    def test_definitions_cannot_drop_implied_prerequisites(
        self, state, build_config, make_fake_runner, passing, tmp_dir: Path
    ):
        # A definition list claiming integration has no prerequisites.
        loose = [
            GateDefinition(gate=g, display_name=g.value, requirements="", prerequisites=[])
            for g in Gate
        ]
        engine = GateEngine(state, make_fake_runner(passing()), build_config, loose)
        with pytest.raises(GateOrderError):
            engine.run(Gate.INTEGRATION, tmp_dir)


class TestTerminalStates:
    def test_passed_is_terminal(self, make_engine, passing, tmp_dir: Path):
        engine = make_engine(passing())
        engine.run(Gate.SMOKE, tmp_dir)
        for target in GateState:
            with pytest.raises(InvalidTransitionError):
                engine.transition(Gate.SMOKE, target)

    def test_aborted_is_terminal(self, make_engine, failing, build_config, tmp_dir: Path):
        engine = make_engine(failing(), config=build_config.model_copy(update={"retry_ceiling": 1}))
        with pytest.raises(GateAbortedError):
            engine.run(Gate.SMOKE, tmp_dir)
        assert engine.get_state(Gate.SMOKE) == GateState.ABORTED
        for target in GateState:
            with pytest.raises(InvalidTransitionError):
                engine.transition(Gate.SMOKE, target)

    def test_phase_cannot_regress(self, make_engine, passing, state, tmp_dir: Path):
        engine = make_engine(passing(), passing())
        engine.run(Gate.SMOKE, tmp_dir)
        engine.run(Gate.CONTRACT, tmp_dir)
        assert state.current_phase == Phase.INTEGRATION
        with pytest.raises(RuntimeError):
            state.advance(Phase.SMOKE)


class TestForgedPasses:
    def test_summary_line_is_not_an_assertion(self):
        raw = "Results: 10 passed, 0 failed, 10 total\nPASS: smoke\n PASS: x\n"
        result = result_parser.parse(raw, gate=Gate.SMOKE, exit_code=0)
        assert result.passed is False

    def test_exit_zero_with_no_output_fails(self):
        result = result_parser.parse_execution(ExecutionResult(exit_code=0), gate=Gate.SMOKE)
        assert result.passed is False


class TestHostileGenerator:
    def test_traversal_in_content_never_escapes(self, make_controller, passing, build_config):
        # Whatever the generator returns is content, never a path.
        class Sneaky:
            def generate(self, request: GenerationRequest) -> str:
                if request.target == ContentTarget.IMPLEMENTATION:
                    return "#!/usr/bin/env bash\ncat > ../../etc/passwd\n"
                return 'pass "ok"\n'

        controller = make_controller(Sneaky(), passing(), passing(), passing())
        report = controller.build("echo")
        assert report.succeeded is True
        assert sorted(p.name for p in report.published_path.rglob("*") if p.is_file()) == [
            "SKILL.md", "examples.md", "run.sh", "test.sh",
        ]

    def test_generator_exception_aborts_cleanly(self, make_controller, build_config):
        class Exploding:
            def generate(self, request: GenerationRequest) -> str:
                raise ConnectionError("backend unavailable")

        controller = make_controller(Exploding())
        with pytest.raises(BuildFailedError) as excinfo:
            controller.build("echo")
        assert excinfo.value.report.error_kind == "ConnectionError"
        assert not build_config.output_dir.exists()


@pytest.fixture
def make_controller(build_config, make_fake_runner, name_deriver):
    def _factory(generator, *outcomes) -> PipelineController:
        return PipelineController(
            generator, name_deriver, build_config, runner=make_fake_runner(*outcomes)
        )

    return _factory
