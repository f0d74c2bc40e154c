"""Per-build configuration model."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from gateforge.models.artifacts import MAX_FILE_BYTES
from gateforge.models.gates import Gate

if TYPE_CHECKING:
    from gateforge.config import GateforgeSettings

# The smoke gate's bound is fixed; contract and integration are configurable.
SMOKE_TIMEOUT_SECONDS = 5.0
DEFAULT_GATE_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRY_CEILING = 3


class BuildConfig(BaseModel):
    """Configuration for one build invocation.

    ``retry_ceiling`` is the maximum number of attempts per gate: once a
    gate has failed that many times the build aborts.
    """

    model_config = ConfigDict(frozen=True)

    shell: str = "bash"
    smoke_timeout_seconds: float = Field(default=SMOKE_TIMEOUT_SECONDS, gt=0)
    contract_timeout_seconds: float = Field(default=DEFAULT_GATE_TIMEOUT_SECONDS, gt=0)
    integration_timeout_seconds: float = Field(default=DEFAULT_GATE_TIMEOUT_SECONDS, gt=0)
    retry_ceiling: int = Field(default=DEFAULT_RETRY_CEILING, ge=1)
    max_file_bytes: int = Field(default=MAX_FILE_BYTES, gt=0, le=MAX_FILE_BYTES)
    output_dir: Path = Path("skills")
    work_root: Path | None = None  # system temp dir when None
    keep_workdir: bool = False
    overwrite: bool = False
    version: str = "1.0.0"
    license: str = "MIT"

    def timeout_for(self, gate: Gate) -> float:
        return {
            Gate.SMOKE: self.smoke_timeout_seconds,
            Gate.CONTRACT: self.contract_timeout_seconds,
            Gate.INTEGRATION: self.integration_timeout_seconds,
        }[gate]

    @classmethod
    def from_settings(cls, settings: GateforgeSettings, **overrides: object) -> BuildConfig:
        values: dict[str, object] = {
            "shell": settings.shell,
            "smoke_timeout_seconds": settings.smoke_timeout_seconds,
            "contract_timeout_seconds": settings.contract_timeout_seconds,
            "integration_timeout_seconds": settings.integration_timeout_seconds,
            "retry_ceiling": settings.retry_ceiling,
            "max_file_bytes": settings.max_file_bytes,
            "output_dir": settings.output_dir,
            "work_root": settings.work_root,
            "keep_workdir": settings.keep_workdir,
            "license": settings.default_license,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
