"""Shared test fixtures for Gateforge."""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

from gateforge.core.artifact_store import ArtifactStore
from gateforge.core.gate_engine import GateEngine
from gateforge.core.script_runner import ScriptRunner
from gateforge.generation.protocols import ContentTarget, GenerationRequest, SkillIdentity
from gateforge.models.config import BuildConfig
from gateforge.models.gates import Gate
from gateforge.models.pipeline import PipelineState
from gateforge.models.results import ExecutionResult, TimedOut


# ---------------------------------------------------------------------------
# Test doubles for the external collaborators
# ---------------------------------------------------------------------------


class FakeRunner:
    """ScriptRunner stand-in that replays canned outcomes in order."""

    def __init__(
        self,
        outcomes: Iterable[ExecutionResult | TimedOut] = (),
        events: list[tuple[str, Any]] | None = None,
    ) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []
        self.events = events if events is not None else []

    def execute(self, script_path, stdin_content="", timeout=5.0, *, args=(), cwd=None, env=None):
        self.calls.append(
            {"script_path": Path(script_path), "timeout": timeout, "cwd": cwd, "env": env}
        )
        gate = (env or {}).get("GATEFORGE_GATE", "")
        self.events.append(("run", gate))
        if not self.outcomes:
            raise AssertionError("FakeRunner ran out of outcomes")
        return self.outcomes.pop(0)


class ScriptedGenerator:
    """Content generator returning fixed text per (target, gate).

    ``implementations`` may hold a list per gate: each IMPLEMENTATION request
    for that gate pops the next entry, the last one repeating.
    """

    def __init__(
        self,
        implementations: dict[Gate, list[str]] | None = None,
        tests: dict[Gate, str] | None = None,
        events: list[tuple[str, Any]] | None = None,
    ) -> None:
        self.implementations = implementations or {
            gate: ["#!/usr/bin/env bash\ncat\n"] for gate in Gate
        }
        self.tests = tests or {
            gate: f'pass "{gate.value} ok"\n' for gate in Gate
        }
        self.requests: list[GenerationRequest] = []
        self.events = events if events is not None else []

    def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        gate = request.gate.value if request.gate else ""
        self.events.append((f"generate:{request.target.value}", gate))
        if request.target == ContentTarget.IMPLEMENTATION:
            queue = self.implementations[request.gate]
            return queue.pop(0) if len(queue) > 1 else queue[0]
        if request.target == ContentTarget.TESTS:
            return self.tests[request.gate]
        if request.target == ContentTarget.EXAMPLES:
            return f"# Examples for {request.skill_name}\n"
        return f"# {request.skill_name}\n\n{request.description}\n"


class FixedNameDeriver:
    def __init__(self, name: str = "echo-skill", description: str = "Echoes stdin.") -> None:
        self.identity = SkillIdentity(name=name, description=description)

    def derive(self, prompt: str) -> SkillIdentity:
        return self.identity


def _passing(count: int = 1) -> ExecutionResult:
    return ExecutionResult(
        exit_code=0,
        stdout="".join(f"  PASS: check {i}\n" for i in range(count)),
    )


def _failing(reason: str = "expected exit 1, got 0") -> ExecutionResult:
    return ExecutionResult(
        exit_code=1,
        stdout=f"  PASS: no args fails\n  FAIL: invalid input fails -- {reason}\n",
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def bash() -> str:
    """Path to bash; skips the test when it is not installed."""
    path = shutil.which("bash")
    if path is None:
        pytest.skip("bash is not available")
    return path


@pytest.fixture
def build_config(tmp_dir: Path) -> BuildConfig:
    """BuildConfig writing into the test's temp directory."""
    return BuildConfig(
        output_dir=tmp_dir / "skills",
        work_root=tmp_dir / "work",
        smoke_timeout_seconds=5.0,
        contract_timeout_seconds=10.0,
        integration_timeout_seconds=10.0,
        retry_ceiling=3,
    )


@pytest.fixture
def state() -> PipelineState:
    return PipelineState()


@pytest.fixture
def events() -> list[tuple[str, Any]]:
    """Shared, ordered log of generator requests and harness runs."""
    return []


@pytest.fixture
def make_fake_runner(events: list[tuple[str, Any]]) -> Callable[..., FakeRunner]:
    def _factory(*outcomes: ExecutionResult | TimedOut) -> FakeRunner:
        return FakeRunner(outcomes, events=events)

    return _factory


@pytest.fixture
def make_engine(
    state: PipelineState, build_config: BuildConfig, make_fake_runner
) -> Callable[..., GateEngine]:
    """Factory fixture: a GateEngine fed by a FakeRunner."""

    def _factory(*outcomes: ExecutionResult | TimedOut, config: BuildConfig | None = None) -> GateEngine:
        return GateEngine(state, make_fake_runner(*outcomes), config or build_config)

    return _factory


@pytest.fixture
def make_generator(events: list[tuple[str, Any]]) -> Callable[..., ScriptedGenerator]:
    def _factory(**kwargs: Any) -> ScriptedGenerator:
        return ScriptedGenerator(events=events, **kwargs)

    return _factory


@pytest.fixture
def name_deriver() -> FixedNameDeriver:
    return FixedNameDeriver()


@pytest.fixture
def store() -> ArtifactStore:
    """A fresh in-memory store for a skill named ``demo-skill``."""
    return ArtifactStore("demo-skill")


@pytest.fixture
def runner(bash: str) -> ScriptRunner:
    return ScriptRunner(bash)


@pytest.fixture
def write_script(tmp_dir: Path) -> Callable[[str, str], Path]:
    """Factory fixture: write an executable script into the temp dir."""

    def _factory(body: str, name: str = "script.sh") -> Path:
        path = tmp_dir / name
        path.write_text("#!/usr/bin/env bash\n" + body)
        path.chmod(0o755)
        return path

    return _factory


@pytest.fixture
def passing() -> Callable[..., ExecutionResult]:
    """Factory fixture: a harness run with N passing assertions, exit 0."""
    return _passing


@pytest.fixture
def failing() -> Callable[..., ExecutionResult]:
    """Factory fixture: one PASS plus one FAIL line, exit 1."""
    return _failing
