"""
Settings for bootforge.

All fields can be set through ``BOOTFORGE_*`` environment variables (e.g.
``BOOTFORGE_RUNTIME=cli``) or a ``.env`` file in the working directory.

Examples:
    >>> from bootforge.core.settings import BootforgeSettings
    >>> settings = BootforgeSettings(runtime="cli", tmp_dir="/var/tmp/bootforge")
    >>> settings.runtime
    <RuntimeKind.CLI: 'cli'>
"""

from __future__ import annotations

import tempfile
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeKind(str, Enum):
    """Which container invocation strategy to use."""

    API = "api"    # docker SDK over the Engine API
    CLI = "cli"    # ``docker run --rm`` as a child process


class BootforgeSettings(BaseSettings):
    """bootforge configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BOOTFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Runtime ──────────────────────────────────────────────────
    runtime: RuntimeKind = Field(default=RuntimeKind.API)
    docker_host: str | None = Field(
        default=None,
        description="Engine API URL; None defers to DOCKER_HOST handling of docker.from_env()",
    )
    docker_binary: str = Field(default="docker", description="CLI executable name or path")
    docker_timeout: int = Field(default=120, description="Engine API request timeout (seconds)")

    # ── Boot-creator recipe ──────────────────────────────────────
    boot_creator_image: str = Field(default="projectunik/boot-creator")
    host_device_dir: str = Field(default="/dev/")

    # ── Paths ────────────────────────────────────────────────────
    tmp_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "bootforge",
        description="Base directory for staging dirs and result files",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"console", "json"}:
            raise ValueError(f"log_format must be 'console' or 'json', got {value!r}")
        return value


@lru_cache(maxsize=1)
def get_settings() -> BootforgeSettings:
    """Process-wide settings, read from the environment once."""
    return BootforgeSettings()
