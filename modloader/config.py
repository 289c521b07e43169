"""Loader configuration — env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from .env file and MODLOADER_* environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MANIFEST_URL = (
    "https://raw.githubusercontent.com/arsen3d/module-allowlist/main/allowlist.json"
)


class LoaderConfig(BaseSettings):
    """Module loader configuration with environment variable overrides.

    All settings can be overridden via MODLOADER_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export MODLOADER_LOG_LEVEL=DEBUG
        export MODLOADER_ARCHIVE_DIR=/data/images
        export MODLOADER_RUNTIME_TRANSPORT=cli

    Or via .env file::

        MODLOADER_MANIFEST_URL=https://example.org/allowlist.json
        MODLOADER_MAX_WORKERS=4
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MODLOADER_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Remote sources
    manifest_url: str = DEFAULT_MANIFEST_URL
    template_filename: str = "lilypad_module.json.tmpl"
    template_branch: str = "main"
    http_timeout_seconds: float = 30.0

    # Archive storage
    archive_dir: Path = Path("images")

    # Container runtime
    runtime_transport: Literal["api", "cli"] = "api"
    runtime_timeout_seconds: float = 600.0
    docker_host: str | None = None  # falls back to DOCKER_HOST / local socket
    docker_binary: str = "docker"

    # Sync behaviour
    max_workers: int = 1
    use_ipfs: bool = False

    @property
    def is_sequential(self) -> bool:
        """Whether modules are processed one at a time."""
        return self.max_workers <= 1


# Module-level singleton; import as `from modloader.config import config`
config = LoaderConfig()
