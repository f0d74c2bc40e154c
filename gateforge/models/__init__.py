"""Gateforge data models: Pydantic v2, frozen except for PipelineState."""

from gateforge.models.artifacts import (
    CANONICAL_PATHS,
    EXAMPLES_MD,
    MAX_FILE_BYTES,
    RUN_SCRIPT,
    SKILL_MD,
    TEST_SCRIPT,
    ArtifactManifest,
    ArtifactSnapshot,
    ManifestEntry,
    SkillMetadata,
)
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
from gateforge.models.pipeline import BuildReport, BuildStep, Phase, PipelineState
from gateforge.models.results import (
    AssertionFailure,
    ExecutionResult,
    GateResult,
    TimedOut,
)

__all__ = [
    # artifacts
    "CANONICAL_PATHS",
    "SKILL_MD",
    "RUN_SCRIPT",
    "TEST_SCRIPT",
    "EXAMPLES_MD",
    "MAX_FILE_BYTES",
    "ArtifactSnapshot",
    "ArtifactManifest",
    "ManifestEntry",
    "SkillMetadata",
    # config
    "BuildConfig",
    # gates
    "Gate",
    "GATE_ORDER",
    "GateState",
    "GateDefinition",
    "GateTransition",
    "VALID_TRANSITIONS",
    "DEFAULT_GATE_DEFINITIONS",
    # pipeline
    "Phase",
    "BuildStep",
    "PipelineState",
    "BuildReport",
    # results
    "ExecutionResult",
    "TimedOut",
    "AssertionFailure",
    "GateResult",
]
