"""Gateforge: phased, gate-validated skill builder.

A skill package is authored in three increments. Each increment's tests
(smoke, contract, integration) must pass, by actually running the
generated harness, before the next increment may be written. A build
that does not pass all three gates publishes nothing.
"""

__version__ = "0.1.0"

from gateforge.core.controller import BuildFailedError, PipelineController
from gateforge.generation.template import KeywordNameDeriver, TemplateGenerator
from gateforge.models.config import BuildConfig

__all__ = [
    "PipelineController",
    "BuildFailedError",
    "BuildConfig",
    "KeywordNameDeriver",
    "TemplateGenerator",
    "__version__",
]
