"""In-memory skill artifact store with a fixed structural template.

The store holds the files of exactly one skill under construction. Paths
are confined to the four canonical template locations by ``path_guard``;
every file is size-capped. Nothing touches disk until ``materialize()``,
which writes the tree under ``{root}/{name}/`` with the scripts marked
executable.

There is no delete operation for individual files. ``discard()`` drops the
whole artifact when a build fails.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from gateforge.core import path_guard
from gateforge.core.path_guard import InvalidPathError
from gateforge.models.artifacts import (
    CANONICAL_PATHS,
    EXECUTABLE_PATHS,
    MAX_FILE_BYTES,
    ArtifactSnapshot,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ArtifactStore",
    "ArtifactStoreError",
    "ArtifactNotFoundError",
    "SizeExceededError",
    "InvalidPathError",
    "UnexpectedEntryError",
]


class ArtifactStoreError(RuntimeError):
    """Base class for structural artifact errors."""


class SizeExceededError(ArtifactStoreError):
    """Raised when a write or append would exceed the per-file size cap."""

    def __init__(self, path: str, size: int, limit: int) -> None:
        super().__init__(f"{path}: {size} bytes exceeds the {limit}-byte limit")
        self.path = path
        self.size = size
        self.limit = limit


class ArtifactNotFoundError(ArtifactStoreError):
    """Raised when appending to or reading a path that was never written."""


class UnexpectedEntryError(ArtifactStoreError):
    """Raised when a directory on disk holds entries outside the template."""


def _as_bytes(content: str | bytes) -> bytes:
    if isinstance(content, bytes):
        return content
    return content.encode("utf-8")


class ArtifactStore:
    """Files of one skill, keyed by relative template path.

    Parameters
    ----------
    name:
        The skill's kebab-case name; also the directory name on disk.
    max_bytes:
        Per-file size cap. Never larger than ``MAX_FILE_BYTES``.
    """

    def __init__(self, name: str, *, max_bytes: int = MAX_FILE_BYTES) -> None:
        if max_bytes > MAX_FILE_BYTES:
            raise ValueError(f"max_bytes may not exceed {MAX_FILE_BYTES}")
        self.name = name
        self.max_bytes = max_bytes
        self._files: dict[str, bytes] = {}
        self._discarded = False

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def write(self, path: str, content: str | bytes) -> int:
        """Create or fully replace *path*. Returns the new size in bytes.

        Validation happens before any mutation: a rejected write leaves the
        store exactly as it was.
        """
        self._check_live()
        path_guard.enforce(path)
        data = _as_bytes(content)
        if len(data) > self.max_bytes:
            raise SizeExceededError(path, len(data), self.max_bytes)
        replaced = path in self._files
        self._files[path] = data
        logger.debug(
            "%s: %s %s (%d bytes)",
            self.name, "replaced" if replaced else "wrote", path, len(data),
        )
        return len(data)

    def append(self, path: str, content: str | bytes) -> int:
        """Concatenate *content* onto an existing file. Returns the new size."""
        self._check_live()
        path_guard.enforce(path)
        if path not in self._files:
            raise ArtifactNotFoundError(
                f"{path}: cannot append to a file that was never written"
            )
        data = self._files[path] + _as_bytes(content)
        if len(data) > self.max_bytes:
            raise SizeExceededError(path, len(data), self.max_bytes)
        self._files[path] = data
        logger.debug("%s: appended to %s (%d bytes)", self.name, path, len(data))
        return len(data)

    def discard(self) -> None:
        """Drop every file. The store refuses further writes."""
        self._files.clear()
        self._discarded = True
        logger.info("%s: artifact discarded", self.name)

    def _check_live(self) -> None:
        if self._discarded:
            raise ArtifactStoreError(f"{self.name}: artifact has been discarded")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def read(self, path: str) -> bytes:
        if path not in self._files:
            raise ArtifactNotFoundError(f"{path}: not written")
        return self._files[path]

    def read_text(self, path: str) -> str:
        return self.read(path).decode("utf-8")

    def exists(self, path: str) -> bool:
        return path in self._files

    @property
    def paths(self) -> list[str]:
        return sorted(self._files)

    @property
    def discarded(self) -> bool:
        return self._discarded

    def is_complete(self) -> bool:
        """True when exactly the four canonical files are present."""
        return set(self._files) == set(CANONICAL_PATHS)

    def snapshot(self) -> ArtifactSnapshot:
        """Immutable copy of the current files."""
        return ArtifactSnapshot(name=self.name, files=dict(self._files))

    # ------------------------------------------------------------------
    # Disk
    # ------------------------------------------------------------------

    def materialize(self, root: Path) -> Path:
        """Write the tree to ``{root}/{name}/`` and return that directory.

        Existing template files are overwritten; the scripts get mode 0o755.
        """
        self._check_live()
        skill_dir = Path(root) / self.name
        skill_dir.mkdir(parents=True, exist_ok=True)
        for rel_path, data in self._files.items():
            target = skill_dir / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            if rel_path in EXECUTABLE_PATHS:
                os.chmod(target, 0o755)
        return skill_dir

    @classmethod
    def load(cls, skill_dir: Path, *, max_bytes: int = MAX_FILE_BYTES) -> ArtifactStore:
        """Rebuild a store from a skill directory on disk.

        Every file must sit at a canonical path; any other entry raises
        ``UnexpectedEntryError``.
        """
        skill_dir = Path(skill_dir)
        if not skill_dir.is_dir():
            raise ArtifactNotFoundError(f"{skill_dir}: not a directory")

        store = cls(skill_dir.name, max_bytes=max_bytes)
        unexpected: list[str] = []
        for entry in sorted(skill_dir.rglob("*")):
            rel = entry.relative_to(skill_dir).as_posix()
            if entry.is_dir():
                if not any(p.startswith(rel + "/") for p in CANONICAL_PATHS):
                    unexpected.append(rel + "/")
                continue
            if not path_guard.validate(rel).ok:
                unexpected.append(rel)
                continue
            store.write(rel, entry.read_bytes())

        if unexpected:
            raise UnexpectedEntryError(
                f"{skill_dir}: entries outside the template: {', '.join(unexpected)}"
            )
        return store
