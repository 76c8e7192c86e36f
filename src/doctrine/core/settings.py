"""Settings for the doctrine registry.

Configuration is environment-driven (``DOCTRINE_`` prefix, optional ``.env``
file) and validated by pydantic at startup.

Fields
──────
log_level      : Structlog log level
json_logs      : Force JSON (true) or console (false) logs; unset = auto
default_agent  : Audit agent used when a caller supplies none
data_dir       : Directory holding registry snapshots
snapshot_name  : Default snapshot name inside ``data_dir``
seed_on_init   : Seed starter doctrines when a new registry is initialized

Examples:
    >>> from doctrine.core.settings import get_settings
    >>> get_settings().default_agent
    'UltimateBlueprint_Agent'

Tags:
    settings, configuration, pydantic, environment

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AGENT = "UltimateBlueprint_Agent"


class DoctrineSettings(BaseSettings):
    """Doctrine registry settings."""

    model_config = SettingsConfigDict(
        env_prefix="DOCTRINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Audit ────────────────────────────────────────────────────
    default_agent: str = DEFAULT_AGENT

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".doctrine",
        description="Directory holding registry snapshots",
    )
    snapshot_name: str = "registry"
    seed_on_init: bool = True

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("default_agent")
    @classmethod
    def _non_empty_agent(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_agent must not be empty")
        return v


@lru_cache(maxsize=1)
def get_settings() -> DoctrineSettings:
    """Return the process-wide settings (cached)."""
    return DoctrineSettings()


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
