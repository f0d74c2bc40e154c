"""Collaborator protocols for name derivation and content generation.

The controller treats both as black boxes: it hands over a description of
what the current step needs and writes back whatever text it receives.
Any object with the right method satisfies the protocol; an LLM-backed
client, the bundled ``TemplateGenerator``, or a test double.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from gateforge.models.gates import Gate


class ContentTarget(str, Enum):
    """What a generation request asks for."""

    IMPLEMENTATION = "implementation"  # scripts/run.sh, full replacement
    TESTS = "tests"  # one gate's section of scripts/test.sh, appended
    EXAMPLES = "examples"  # references/examples.md
    DOCUMENTATION = "documentation"  # SKILL.md body, below the frontmatter


class SkillIdentity(BaseModel):
    """Result of name derivation."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str


class GenerationRequest(BaseModel):
    """Everything the generator is told about the text it must produce.

    ``feedback`` is non-empty only for revisions after a failed gate run;
    it carries the failing assertions and harness output.
    """

    model_config = ConfigDict(frozen=True)

    skill_name: str
    description: str
    target: ContentTarget
    gate: Gate | None = None
    requirements: str = ""
    existing_content: str = ""
    feedback: str = ""

    @property
    def is_revision(self) -> bool:
        return bool(self.feedback)


@runtime_checkable
class NameDeriver(Protocol):
    """Derives a kebab-case skill name and a description from a prompt."""

    def derive(self, prompt: str) -> SkillIdentity:
        ...


@runtime_checkable
class ContentGenerator(Protocol):
    """Returns replacement or append text for one generation request."""

    def generate(self, request: GenerationRequest) -> str:
        ...
