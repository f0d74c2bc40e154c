"""Canonical hashing helpers for the published artifact manifest."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from gateforge.models.artifacts import (
    EXECUTABLE_PATHS,
    ArtifactManifest,
    ArtifactSnapshot,
    ManifestEntry,
)


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_address(data: bytes) -> str:
    """Return "sha256:<hex>" for raw bytes."""
    return f"sha256:{sha256_hex(data)}"


def build_manifest(snapshot: ArtifactSnapshot) -> ArtifactManifest:
    """Content-address every file of *snapshot* and seal the listing."""
    entries = [
        ManifestEntry(
            path=path,
            content_address=content_address(snapshot.files[path]),
            size_bytes=len(snapshot.files[path]),
            executable=path in EXECUTABLE_PATHS,
        )
        for path in snapshot.paths
    ]
    manifest_hash = sha256_hex(
        canonical_json_bytes(
            {
                "name": snapshot.name,
                "entries": [e.model_dump(mode="json") for e in entries],
            }
        )
    )
    return ArtifactManifest(name=snapshot.name, entries=entries, manifest_hash=manifest_hash)
