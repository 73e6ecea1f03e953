"""Environment-driven settings for calspine.

Settings only feed process-level concerns: logging and the defaults the CLI
offers for its options. A calendar build never reads them; it receives an
explicit ``CalendarConfig``.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads ``CALSPINE_*`` env vars and ``.env`` files
    - **Extra ignore:** Unknown env vars don't cause startup failures
    - **No ambient build state:** Builds take their configuration as an argument

Examples:
    >>> from calspine.core.settings import get_settings
    >>> get_settings().log_level
    'INFO'

Tags:
    settings, configuration, pydantic, environment, calspine
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CalspineSettings(BaseSettings):
    """Process settings read from ``CALSPINE_*`` environment variables.

    Fields
    ──────
    log_level            : structlog level (DEBUG, INFO, WARNING, ERROR)
    log_format           : ``console`` or ``json`` renderer
    default_timezone     : timezone offered by CLI commands
    relative_periods_count : N for the minus/plus relative flags
    max_spine_entries    : hard bound on the enumerated spine
    holiday_file         : JSON holiday file loaded by the CLI, if any
    """

    model_config = SettingsConfigDict(
        env_prefix="CALSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "console"

    # ── CLI defaults ─────────────────────────────────────────────
    default_timezone: str = "UTC"
    relative_periods_count: int = Field(default=12, ge=1)
    max_spine_entries: int = Field(default=2_000_000, ge=1)
    holiday_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"unsupported log level: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"console", "json"}:
            raise ValueError(f"unsupported log format: {value}")
        return value


@lru_cache(maxsize=1)
def get_settings() -> CalspineSettings:
    """Return the cached settings instance."""
    return CalspineSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = ["CalspineSettings", "get_settings", "clear_settings_cache"]
