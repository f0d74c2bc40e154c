"""Skill artifact models: the fixed package template (bit-exact layout)."""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator

SKILL_MD = "SKILL.md"
RUN_SCRIPT = "scripts/run.sh"
TEST_SCRIPT = "scripts/test.sh"
EXAMPLES_MD = "references/examples.md"

# The only paths an artifact may ever contain.
CANONICAL_PATHS: tuple[str, ...] = (SKILL_MD, RUN_SCRIPT, TEST_SCRIPT, EXAMPLES_MD)
EXECUTABLE_PATHS: frozenset[str] = frozenset({RUN_SCRIPT, TEST_SCRIPT})

MAX_FILE_BYTES = 100_000

BASH_SHEBANG = "#!/usr/bin/env bash"

SKILL_NAME_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SKILL_NAME_MIN = 3
SKILL_NAME_MAX = 50

REQUIRED_METADATA_KEYS: tuple[str, ...] = ("name", "description", "version", "license")


def is_valid_skill_name(name: str) -> bool:
    """Kebab-case, 3 to 50 characters."""
    return (
        SKILL_NAME_MIN <= len(name) <= SKILL_NAME_MAX
        and SKILL_NAME_PATTERN.match(name) is not None
    )


class SkillMetadata(BaseModel):
    """SKILL.md frontmatter."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    version: str = "1.0.0"
    license: str = "MIT"

    @field_validator("name")
    @classmethod
    def _kebab_case(cls, value: str) -> str:
        if not is_valid_skill_name(value):
            raise ValueError(
                f"skill name {value!r} must be kebab-case, "
                f"{SKILL_NAME_MIN}-{SKILL_NAME_MAX} characters"
            )
        return value

    @field_validator("description", "version", "license")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not str(value).strip():
            raise ValueError("must not be empty")
        return value


class ArtifactSnapshot(BaseModel):
    """Immutable copy of an artifact's files at a point in time."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    files: Mapping[str, bytes]

    @field_validator("files", mode="after")
    @classmethod
    def _freeze(cls, value: Mapping[str, bytes]) -> Mapping[str, bytes]:
        return MappingProxyType(dict(value))

    @property
    def paths(self) -> list[str]:
        return sorted(self.files)

    def text(self, path: str) -> str:
        return self.files[path].decode("utf-8")


class ManifestEntry(BaseModel):
    """A published file and its content address."""

    model_config = ConfigDict(frozen=True)

    path: str
    content_address: str  # "sha256:<hex>"
    size_bytes: int
    executable: bool = False


class ArtifactManifest(BaseModel):
    """Content-addressed listing of a published skill."""

    model_config = ConfigDict(frozen=True)

    name: str
    entries: list[ManifestEntry]
    manifest_hash: str = ""  # SHA-256 of canonical(sorted entries)
