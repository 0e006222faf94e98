# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Environment variables use the FSCACHE_ prefix, e.g. FSCACHE_CACHE_ROOT,
FSCACHE_CACHE_MAX_SIZE, FSCACHE_LOG_LEVEL.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fscache.cache.models import StoreConfig


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file and environment."""

    model_config = SettingsConfigDict(
        env_prefix="FSCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_root: Path = Path("~/.fscache")
    cache_max_size: int = 256 * 1024 * 1024
    inline_threshold: int = 1024

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("cache_max_size", "inline_threshold")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("cache_root")
    @classmethod
    def expand_cache_root(cls, v: Path) -> Path:  # noqa: N805
        return v.expanduser()

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        if self.inline_threshold > self.cache_max_size:
            raise ConfigurationError(
                "INLINE_THRESHOLD must be <= CACHE_MAX_SIZE"
            )
        return self

    # --- Helpers ---

    def store_config(self) -> StoreConfig:
        """Per-call store configuration for the configured cache root."""
        return StoreConfig(cache_root=self.cache_root, max_size=self.cache_max_size)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding callers).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
