"""Tests for path_guard: sandboxing of artifact paths."""

from __future__ import annotations

import pytest

from gateforge.core import path_guard
from gateforge.core.path_guard import InvalidPathError
from gateforge.models.artifacts import CANONICAL_PATHS


class TestValidate:
    @pytest.mark.parametrize("path", CANONICAL_PATHS)
    def test_canonical_paths_accepted(self, path: str):
        verdict = path_guard.validate(path)
        assert verdict.ok is True
        assert verdict.reason == ""

    @pytest.mark.parametrize(
        ("path", "reason_fragment"),
        [
            ("", "empty"),
            ("/etc/passwd", "absolute"),
            ("C:/skill/SKILL.md", "absolute"),
            ("../../etc/passwd", "parent-directory"),
            ("scripts/../SKILL.md", "parent-directory"),
            ("scripts\\run.sh", "backslash"),
            ("./SKILL.md", "'.'"),
            ("scripts//run.sh", "empty"),
            ("scripts/other.sh", "template location"),
            ("README.md", "template location"),
            ("skill.md", "template location"),
        ],
    )
    def test_rejections(self, path: str, reason_fragment: str):
        verdict = path_guard.validate(path)
        assert verdict.ok is False
        assert reason_fragment in verdict.reason

    def test_validate_is_pure(self, tmp_path):
        # Nothing on disk is consulted or created.
        before = set(tmp_path.iterdir())
        path_guard.validate("SKILL.md")
        path_guard.validate("../../etc/passwd")
        assert set(tmp_path.iterdir()) == before


class TestEnforce:
    def test_returns_path_when_ok(self):
        assert path_guard.enforce("scripts/run.sh") == "scripts/run.sh"

    def test_raises_with_reason(self):
        with pytest.raises(InvalidPathError) as excinfo:
            path_guard.enforce("../../etc/passwd")
        assert excinfo.value.path == "../../etc/passwd"
        assert "parent-directory" in excinfo.value.reason
