"""Pipeline controller: drives one skill build through the twelve steps.

The controller is the only component that talks to the content generator.
It owns, for exactly one build, a PipelineState, an ArtifactStore, a
GateEngine and a private working directory; none of them outlive the
``build()`` call or are shared with another build.

A build either returns a ``BuildReport`` with status DONE and a published
skill directory, or raises ``BuildFailedError``. In the failure case the
artifact is discarded and nothing is written to the output directory.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TypeVar

from gateforge.core import frontmatter, harness, hasher
from gateforge.core.artifact_store import ArtifactStore, ArtifactStoreError
from gateforge.core.gate_engine import GateAbortedError, GateEngine, GateFailedError
from gateforge.core.script_runner import ScriptRunner
from gateforge.core.structure import enforce_structure
from gateforge.generation.protocols import (
    ContentGenerator,
    ContentTarget,
    GenerationRequest,
    NameDeriver,
)
from gateforge.models.artifacts import (
    BASH_SHEBANG,
    EXAMPLES_MD,
    RUN_SCRIPT,
    SKILL_MD,
    TEST_SCRIPT,
    SkillMetadata,
    is_valid_skill_name,
)
from gateforge.models.config import BuildConfig
from gateforge.models.gates import (
    DEFAULT_GATE_DEFINITIONS,
    Gate,
    GateDefinition,
)
from gateforge.models.pipeline import BuildReport, BuildStep, Phase, PipelineState
from gateforge.models.results import GateResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FEEDBACK_TAIL_CHARS = 4000

_EXAMPLES_REQUIREMENTS = (
    "Realistic invocations of scripts/run.sh with their output, including "
    "at least one error case and its exit code."
)
_DOCUMENTATION_REQUIREMENTS = (
    "Markdown body for SKILL.md (no frontmatter): purpose, usage, flags, "
    "exit codes (0 success, 1 input error, 2 usage error), how to run tests."
)

# Step that authors each gate's tests, and the step that runs the gate.
_GATE_STEPS: dict[Gate, tuple[BuildStep, BuildStep]] = {
    Gate.SMOKE: (BuildStep.WRITE_SMOKE_TESTS, BuildStep.RUN_SMOKE_GATE),
    Gate.CONTRACT: (BuildStep.APPEND_CONTRACT_TESTS, BuildStep.RUN_CONTRACT_GATE),
    Gate.INTEGRATION: (BuildStep.APPEND_INTEGRATION_TESTS, BuildStep.RUN_INTEGRATION_GATE),
}


class InvalidSkillNameError(ValueError):
    """Raised when the derived skill name is not kebab-case, 3-50 characters."""


class ArtifactExistsError(ArtifactStoreError):
    """Raised when the publish destination already exists and overwrite is off."""


class BuildFailedError(RuntimeError):
    """The build ended in any state other than DONE.

    ``report`` carries the full GateResult history for diagnosis; it never
    carries files.
    """

    def __init__(self, report: BuildReport) -> None:
        super().__init__(
            f"Build {report.build_id} failed ({report.error_kind}): {report.error_message}"
        )
        self.report = report


class PipelineController:
    """Builds one skill per instance.

    Parameters
    ----------
    generator:
        Produces script and documentation text.
    name_deriver:
        Turns the free-text prompt into a name and description.
    config:
        Build configuration. Defaults to ``BuildConfig()``.
    runner:
        Script runner used by the gate engine. Defaults to one using
        ``config.shell``.
    definitions:
        Gate definitions replacing the defaults for their gates; their
        ``requirements`` text is what the generator is asked to satisfy.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        name_deriver: NameDeriver,
        config: BuildConfig | None = None,
        *,
        runner: ScriptRunner | None = None,
        definitions: list[GateDefinition] | None = None,
    ) -> None:
        self.config = config or BuildConfig()
        self._generator = generator
        self._name_deriver = name_deriver
        self._definitions = {d.gate: d for d in DEFAULT_GATE_DEFINITIONS}
        self._definitions.update((d.gate, d) for d in definitions or ())

        self.state = PipelineState()
        self.engine = GateEngine(
            self.state,
            runner or ScriptRunner(self.config.shell),
            self.config,
            list(self._definitions.values()),
        )
        self.store: ArtifactStore | None = None
        self.metadata: SkillMetadata | None = None

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.build_id = f"gf-{ts}-{uuid.uuid4().hex[:6]}"
        self._workdir: Path | None = None
        self._started = False

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def build(self, prompt: str) -> BuildReport:
        """Run all twelve steps for *prompt*.

        Returns the DONE report, or raises ``BuildFailedError``.
        """
        if self._started:
            raise RuntimeError("PipelineController runs exactly one build")
        self._started = True

        work_root = self.config.work_root
        if work_root is not None:
            Path(work_root).mkdir(parents=True, exist_ok=True)
        self._workdir = Path(
            tempfile.mkdtemp(prefix=f"{self.build_id}-", dir=work_root)
        ).resolve()
        logger.info("build %s started in %s", self.build_id, self._workdir)

        try:
            return self._run_steps(prompt)
        except Exception as exc:
            raise self._fail(exc) from exc
        finally:
            self._cleanup()

    # ------------------------------------------------------------------
    # The twelve steps
    # ------------------------------------------------------------------

    def _run_steps(self, prompt: str) -> BuildReport:
        # 1. Derive the name
        identity = self._name_deriver.derive(prompt)
        if not is_valid_skill_name(identity.name):
            raise InvalidSkillNameError(
                f"derived name {identity.name!r} is not kebab-case (3-50 characters)"
            )
        self.metadata = SkillMetadata(
            name=identity.name,
            description=identity.description,
            version=self.config.version,
            license=self.config.license,
        )
        self.store = ArtifactStore(identity.name, max_bytes=self.config.max_file_bytes)
        self._complete(BuildStep.DERIVE_NAME)

        # 2. Skeleton SKILL.md: frontmatter only
        self.store.write(SKILL_MD, frontmatter.render(self.metadata))
        frontmatter.parse(self.store.read_text(SKILL_MD))
        self._complete(BuildStep.WRITE_SKELETON)

        # 3. First implementation
        self._write_implementation(Gate.SMOKE)
        self._complete(BuildStep.WRITE_IMPLEMENTATION)

        # 4-9. Author and run each gate in order
        for gate in (Gate.SMOKE, Gate.CONTRACT, Gate.INTEGRATION):
            author_step, run_step = _GATE_STEPS[gate]
            previous = gate.previous
            if previous is not None:
                self.engine.require_passed(previous)
                self._write_implementation(gate)
            self._write_tests(gate)
            self._complete(author_step)
            self._run_gate(gate)
            self._complete(run_step)

        self.engine.require_passed(Gate.INTEGRATION)

        # 10. references/examples.md
        self.store.write(EXAMPLES_MD, self._generate(ContentTarget.EXAMPLES))
        self._complete(BuildStep.WRITE_EXAMPLES)

        # 11. Full SKILL.md
        body = self._generate(
            ContentTarget.DOCUMENTATION, existing=self.store.read_text(SKILL_MD)
        )
        self.store.write(SKILL_MD, frontmatter.render(self.metadata, _strip_frontmatter(body)))
        frontmatter.parse(self.store.read_text(SKILL_MD))
        self._complete(BuildStep.WRITE_DOCUMENTATION)

        # 12. Validate and publish
        return self._publish()

    def _complete(self, step: BuildStep) -> None:
        self.state.complete_step(step)
        logger.info("build %s: step %d/12 %s", self.build_id, step.ordinal, step.value)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def _generate(
        self,
        target: ContentTarget,
        *,
        gate: Gate | None = None,
        existing: str = "",
        feedback: str = "",
    ) -> str:
        metadata = _require(self.metadata, "metadata")
        if target in (ContentTarget.IMPLEMENTATION, ContentTarget.TESTS):
            requirements = self._definitions[gate].requirements if gate else ""
        elif target == ContentTarget.EXAMPLES:
            requirements = _EXAMPLES_REQUIREMENTS
        else:
            requirements = _DOCUMENTATION_REQUIREMENTS
        request = GenerationRequest(
            skill_name=metadata.name,
            description=metadata.description,
            target=target,
            gate=gate,
            requirements=requirements,
            existing_content=existing,
            feedback=feedback,
        )
        text = self._generator.generate(request)
        if not isinstance(text, str):
            raise TypeError(
                f"generator returned {type(text).__name__} for {target.value}, expected str"
            )
        return text

    def _write_implementation(self, gate: Gate, feedback: str = "") -> None:
        store = _require(self.store, "artifact store")
        existing = store.read_text(RUN_SCRIPT) if store.exists(RUN_SCRIPT) else ""
        text = self._generate(
            ContentTarget.IMPLEMENTATION, gate=gate, existing=existing, feedback=feedback
        )
        store.write(RUN_SCRIPT, _with_shebang(text))

    def _write_tests(self, gate: Gate) -> None:
        store = _require(self.store, "artifact store")
        existing = store.read_text(TEST_SCRIPT) if store.exists(TEST_SCRIPT) else ""
        body = self._generate(ContentTarget.TESTS, gate=gate, existing=existing)
        section = harness.section(gate, body)
        if gate == Gate.SMOKE:
            store.write(TEST_SCRIPT, harness.preamble(store.name) + section)
        else:
            store.append(TEST_SCRIPT, section)

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _run_gate(self, gate: Gate) -> GateResult:
        """Run *gate* until it passes; revise the implementation between tries.

        ``GateAbortedError`` from the engine ends the loop and the build.
        """
        store = _require(self.store, "artifact store")
        workdir = _require(self._workdir, "working directory")
        while True:
            skill_dir = store.materialize(workdir)
            try:
                return self.engine.run(gate, skill_dir)
            except GateFailedError as exc:
                logger.warning("%s; revising implementation", exc)
                self._write_implementation(gate, feedback=_feedback(exc.result))

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _publish(self) -> BuildReport:
        store = _require(self.store, "artifact store")
        workdir = _require(self._workdir, "working directory")
        snapshot = store.snapshot()
        enforce_structure(snapshot)
        manifest = hasher.build_manifest(snapshot)

        destination = Path(self.config.output_dir) / store.name
        if destination.exists() and not self.config.overwrite:
            raise ArtifactExistsError(f"{destination} already exists")
        _replace_tree(store.materialize(workdir), destination)

        self._complete(BuildStep.PUBLISH)
        self.state.advance(Phase.DONE)
        logger.info(
            "build %s: published %s (manifest %s)",
            self.build_id, destination, manifest.manifest_hash[:12],
        )
        return BuildReport(
            build_id=self.build_id,
            skill_name=store.name,
            status=Phase.DONE,
            published_path=destination,
            manifest=manifest,
            history=list(self.state.history),
            transitions=list(self.state.transitions),
            steps_completed=list(self.state.steps_completed),
        )

    def _fail(self, exc: Exception) -> BuildFailedError:
        """Discard the artifact and wrap *exc* in a history-carrying report."""
        if self.store is not None:
            self.store.discard()
        if self.state.current_phase != Phase.ABORTED:
            self.state.current_phase = Phase.ABORTED
        failed_gate = exc.gate if isinstance(exc, GateAbortedError) else None
        report = BuildReport(
            build_id=self.build_id,
            skill_name=self.store.name if self.store else "",
            status=Phase.ABORTED,
            history=list(self.state.history),
            transitions=list(self.state.transitions),
            steps_completed=list(self.state.steps_completed),
            failed_gate=failed_gate,
            error_kind=type(exc).__name__,
            error_message=str(exc),
        )
        logger.error(
            "build %s aborted: %s (%d gate result(s) recorded)",
            self.build_id, exc, len(report.history),
        )
        return BuildFailedError(report)

    def _cleanup(self) -> None:
        if self._workdir is None:
            return
        if self.config.keep_workdir:
            logger.info("keeping working directory %s", self._workdir)
            return
        shutil.rmtree(self._workdir, ignore_errors=True)


def _with_shebang(script: str) -> str:
    if script.startswith(BASH_SHEBANG + "\n"):
        return script
    return f"{BASH_SHEBANG}\n{script}"


def _strip_frontmatter(body: str) -> str:
    """Drop a frontmatter block the generator may have echoed back."""
    try:
        _, rest = frontmatter.split(body)
    except frontmatter.MalformedMetadataError:
        return body
    return rest


def _feedback(result: GateResult) -> str:
    lines = [
        f"Gate {result.gate.value} attempt {result.attempt} failed ({result.failure_kind}).",
        f"Assertions: {result.pass_count} passed, {result.fail_count} failed.",
    ]
    lines += [f"FAIL: {f.description} -- {f.reason}" for f in result.failures]
    if result.timed_out:
        lines.append("The harness timed out; look for blocking reads or infinite loops.")
    lines.append("--- harness output (tail) ---")
    lines.append(result.raw_output[-_FEEDBACK_TAIL_CHARS:])
    if result.stderr:
        lines.append("--- stderr (tail) ---")
        lines.append(result.stderr[-_FEEDBACK_TAIL_CHARS:])
    return "\n".join(lines)


def _require(value: T | None, what: str) -> T:
    if value is None:
        raise RuntimeError(f"{what} is not available before build() reaches this step")
    return value


def _replace_tree(source: Path, destination: Path) -> None:
    """Copy *source* to *destination*, leaving any old tree intact on failure.

    The copy is made in a hidden sibling directory and renamed into place,
    so *destination* holds either the old tree or the complete new one.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{destination.name}-", dir=destination.parent))
    try:
        fresh = staging / "new"
        shutil.copytree(source, fresh)
        previous = None
        if destination.exists():
            previous = staging / "old"
            os.replace(destination, previous)
        try:
            os.replace(fresh, destination)
        except OSError:
            if previous is not None:
                os.replace(previous, destination)
            raise
    finally:
        shutil.rmtree(staging, ignore_errors=True)
