"""Runtime settings for timespine.

Locating the reports database on disk is somebody else's job; by the time
settings are read, ``database_path`` already holds the resolved location.
The path is used to open read-only handles and to label diagnostics.

Features:
    - **TimespineSettings:** database path, logging knobs, SQLite busy timeout
    - **env_prefix:** ``TIMESPINE_`` environment variables
    - **.env file support:** Automatic loading via pydantic-settings
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> import os
    >>> os.environ["TIMESPINE_DATABASE_PATH"] = "/data/ManicTimeReports.db"
    >>> get_settings().database_path
    PosixPath('/data/ManicTimeReports.db')

Tags:
    settings, configuration, pydantic, environment, timespine
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from timespine.core.errors import ConfigError


class TimespineSettings(BaseSettings):
    """Settings shared by the query core and the CLI.

    Fields
    ──────
    database_path  : Resolved path of the reports database (read-only use)
    busy_timeout_s : SQLite's own busy-handler wait; retries are owned by
                     the busy-retry wrapper, so this defaults to 0
    log_level      : Structlog log level
    log_json       : Force JSON (True) / console (False); None = auto-detect
    service_name   : ``service.name`` field on every log record
    """

    model_config = SettingsConfigDict(
        env_prefix="TIMESPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_path: Path | None = Field(
        default=None,
        description="Resolved path of the reports database",
    )
    busy_timeout_s: float = Field(default=0.0, ge=0.0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "timespine"

    def require_database_path(self) -> Path:
        """Return ``database_path`` or raise :class:`ConfigError` if unset."""
        if self.database_path is None:
            raise ConfigError(
                "No database path configured. Set TIMESPINE_DATABASE_PATH or pass --database."
            )
        return self.database_path


@lru_cache(maxsize=1)
def get_settings() -> TimespineSettings:
    """Return the process-wide settings instance (cached)."""
    return TimespineSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = [
    "TimespineSettings",
    "get_settings",
    "reset_settings",
]
