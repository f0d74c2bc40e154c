"""Content generation collaborators: protocols plus offline template defaults."""

from gateforge.generation.protocols import (
    ContentGenerator,
    ContentTarget,
    GenerationRequest,
    NameDeriver,
    SkillIdentity,
)
from gateforge.generation.template import KeywordNameDeriver, TemplateGenerator

__all__ = [
    "ContentGenerator",
    "ContentTarget",
    "GenerationRequest",
    "NameDeriver",
    "SkillIdentity",
    "KeywordNameDeriver",
    "TemplateGenerator",
]
