"""SKILL.md frontmatter: a YAML block between ``---`` fences."""

from __future__ import annotations

import re
from typing import Any

import yaml
from pydantic import ValidationError

from gateforge.models.artifacts import REQUIRED_METADATA_KEYS, SkillMetadata

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


class MalformedMetadataError(ValueError):
    """Raised when SKILL.md frontmatter is missing, unparsable or incomplete."""


def split(document: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter mapping, body) for a SKILL.md document."""
    match = _FRONTMATTER.match(document)
    if not match:
        raise MalformedMetadataError("SKILL.md has no '---' frontmatter block")
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise MalformedMetadataError(f"frontmatter is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedMetadataError("frontmatter must be a mapping")
    return data, document[match.end():]


def parse(document: str) -> SkillMetadata:
    """Parse and validate the frontmatter of *document*."""
    data, _ = split(document)
    missing = [key for key in REQUIRED_METADATA_KEYS if data.get(key) in (None, "")]
    if missing:
        raise MalformedMetadataError(
            f"frontmatter is missing required key(s): {', '.join(missing)}"
        )
    try:
        return SkillMetadata(**{key: str(data[key]) for key in REQUIRED_METADATA_KEYS})
    except ValidationError as exc:
        raise MalformedMetadataError(f"invalid frontmatter: {exc}") from exc


def render(metadata: SkillMetadata, body: str = "") -> str:
    """Serialize *metadata* as a frontmatter block followed by *body*."""
    header = yaml.safe_dump(
        metadata.model_dump(include=set(REQUIRED_METADATA_KEYS)),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    document = f"---\n{header}---\n"
    if body:
        document += "\n" + body.lstrip("\n")
        if not document.endswith("\n"):
            document += "\n"
    return document
