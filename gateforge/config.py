"""Runtime settings: env-driven via pydantic-settings.

Reads from a ``.env`` file and ``GATEFORGE_*`` environment variables.
Each CLI command instantiates ``GateforgeSettings`` when it runs, so the
environment is read per invocation. Per-build values are copied into a
frozen ``BuildConfig`` at build start (see ``BuildConfig.from_settings``).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gateforge.models.artifacts import MAX_FILE_BYTES
from gateforge.models.config import (
    DEFAULT_GATE_TIMEOUT_SECONDS,
    DEFAULT_RETRY_CEILING,
    SMOKE_TIMEOUT_SECONDS,
)


class GateforgeSettings(BaseSettings):
    """Settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export GATEFORGE_LOG_LEVEL=DEBUG
        export GATEFORGE_RETRY_CEILING=5
        export GATEFORGE_CONTRACT_TIMEOUT_SECONDS=60

    Or via .env file::

        GATEFORGE_OUTPUT_DIR=/srv/skills
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GATEFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Script execution
    shell: str = "bash"
    smoke_timeout_seconds: float = Field(default=SMOKE_TIMEOUT_SECONDS, gt=0)
    contract_timeout_seconds: float = Field(default=DEFAULT_GATE_TIMEOUT_SECONDS, gt=0)
    integration_timeout_seconds: float = Field(default=DEFAULT_GATE_TIMEOUT_SECONDS, gt=0)

    # Gate policy
    retry_ceiling: int = Field(default=DEFAULT_RETRY_CEILING, ge=1)

    # Artifact limits and locations
    max_file_bytes: int = Field(default=MAX_FILE_BYTES, gt=0, le=MAX_FILE_BYTES)
    output_dir: Path = Path("skills")
    work_root: Path | None = None
    keep_workdir: bool = False
    default_license: str = "MIT"

