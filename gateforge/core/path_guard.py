"""Path sandboxing for artifact writes.

Every path an ``ArtifactStore`` touches passes through ``validate`` first.
The check is purely lexical: nothing on disk is consulted.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from gateforge.models.artifacts import CANONICAL_PATHS

_WINDOWS_ABSOLUTE = re.compile(r"^(?:[A-Za-z]:|\\\\)")


class InvalidPathError(ValueError):
    """Raised when an artifact path is rejected by the guard."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid artifact path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class PathVerdict(NamedTuple):
    ok: bool
    reason: str = ""


OK = PathVerdict(True)


def validate(path: str) -> PathVerdict:
    """Check *path* against the sandbox rules.

    Rejects empty, absolute and traversing paths, then anything outside
    the four canonical template locations.
    """
    if not isinstance(path, str) or not path:
        return PathVerdict(False, "path is empty")
    if "\x00" in path:
        return PathVerdict(False, "path contains a NUL byte")
    if path.startswith("/") or _WINDOWS_ABSOLUTE.match(path):
        return PathVerdict(False, "path is absolute")
    if "\\" in path:
        return PathVerdict(False, "path contains a backslash")

    segments = path.split("/")
    if ".." in segments:
        return PathVerdict(False, "path contains a parent-directory segment")
    if any(seg in ("", ".") for seg in segments):
        return PathVerdict(False, "path contains an empty or '.' segment")

    if path not in CANONICAL_PATHS:
        return PathVerdict(
            False,
            f"path is not a template location (allowed: {', '.join(CANONICAL_PATHS)})",
        )
    return OK


def enforce(path: str) -> str:
    """Return *path* unchanged or raise ``InvalidPathError``."""
    verdict = validate(path)
    if not verdict.ok:
        raise InvalidPathError(path, verdict.reason)
    return path
