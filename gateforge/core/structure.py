"""Whole-artifact template checks, run once before a skill is published.

The checks collect every violation before reporting, so a single failure
message lists everything wrong with the tree.
"""

from __future__ import annotations

import logging

from gateforge.core import frontmatter, harness
from gateforge.models.artifacts import (
    BASH_SHEBANG,
    CANONICAL_PATHS,
    MAX_FILE_BYTES,
    RUN_SCRIPT,
    SKILL_MD,
    TEST_SCRIPT,
    ArtifactSnapshot,
    SkillMetadata,
    is_valid_skill_name,
)
from gateforge.models.gates import GATE_ORDER

logger = logging.getLogger(__name__)


class StructureViolationError(RuntimeError):
    """Raised when an artifact does not match the fixed template."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__(
            "Artifact structure check failed.\n"
            + "\n".join(f"  - {v}" for v in violations)
        )
        self.violations = list(violations)


def _first_line(data: bytes) -> str:
    return data.split(b"\n", 1)[0].decode("utf-8", errors="replace").rstrip("\r")


def check_structure(snapshot: ArtifactSnapshot) -> list[str]:
    """Return every template violation in *snapshot*. Empty means healthy."""
    violations: list[str] = []
    files = snapshot.files

    if not is_valid_skill_name(snapshot.name):
        violations.append(f"skill name {snapshot.name!r} is not kebab-case (3-50 chars)")

    extra = sorted(set(files) - set(CANONICAL_PATHS))
    missing = [p for p in CANONICAL_PATHS if p not in files]
    if extra:
        violations.append(f"unexpected files: {', '.join(extra)}")
    if missing:
        violations.append(f"missing files: {', '.join(missing)}")

    for path, data in files.items():
        if len(data) > MAX_FILE_BYTES:
            violations.append(f"{path} is {len(data)} bytes (limit {MAX_FILE_BYTES})")

    for script in (RUN_SCRIPT, TEST_SCRIPT):
        if script in files and _first_line(files[script]) != BASH_SHEBANG:
            violations.append(f"{script} must start with '{BASH_SHEBANG}'")

    if TEST_SCRIPT in files:
        test_text = files[TEST_SCRIPT].decode("utf-8", errors="replace")
        absent = harness.missing_functions(test_text)
        if absent:
            violations.append(f"{TEST_SCRIPT} lacks harness functions: {', '.join(absent)}")
        positions = [test_text.find(harness.section_header(g)) for g in GATE_ORDER]
        if -1 in positions:
            gone = [g.value for g, pos in zip(GATE_ORDER, positions) if pos == -1]
            violations.append(f"{TEST_SCRIPT} lacks gate sections: {', '.join(gone)}")
        elif positions != sorted(positions):
            violations.append(f"{TEST_SCRIPT} gate sections are out of order")

    if SKILL_MD in files:
        try:
            metadata = frontmatter.parse(files[SKILL_MD].decode("utf-8"))
        except (frontmatter.MalformedMetadataError, UnicodeDecodeError) as exc:
            violations.append(f"{SKILL_MD}: {exc}")
        else:
            if metadata.name != snapshot.name:
                violations.append(
                    f"{SKILL_MD} name {metadata.name!r} does not match "
                    f"directory {snapshot.name!r}"
                )

    return violations


def enforce_structure(snapshot: ArtifactSnapshot) -> SkillMetadata:
    """Raise ``StructureViolationError`` unless *snapshot* is publishable.

    Returns the parsed SKILL.md metadata.
    """
    violations = check_structure(snapshot)
    if violations:
        error = StructureViolationError(violations)
        logger.error("%s", error)
        raise error
    return frontmatter.parse(snapshot.text(SKILL_MD))
