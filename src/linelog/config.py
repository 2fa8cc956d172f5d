"""
Logging Configuration.

Settings are read from ``LOG_*`` environment variables (and an optional
``.env`` file):

    LOG_FULLPATH            Complete destination; a file path, "stdout" or "stderr"
    LOG_DIR                 Directory for per-channel log files (default /var/log)
    LOG_PREFIX              Prepended to the channel name in the file name
    LOG_LEVEL               Lowest severity that is written
    LOG_MAX_BYTES_PER_LINE  Line budget in bytes, newline included
    LOG_MAX_DEPTH           Deepest context structure rendered
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_LOG_DIR, MAX_BYTES_PER_LINE, MAX_DEPTH_LIMIT, MAX_RECURSION_DEPTH
from .exceptions import InvalidLogDirError
from .levels import Severity


class LoggingSettings(BaseSettings):
    """Destination and formatting limits for channel loggers."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    fullpath: Optional[str] = Field(default=None, description="Complete log destination override")
    dir: Optional[str] = Field(default=None, description="Directory for per-channel log files")
    prefix: str = Field(default="", description="Prefix for per-channel log file names")
    level: Severity = Field(default=Severity.DEBUG, description="Lowest severity that is written")
    max_bytes_per_line: int = Field(default=MAX_BYTES_PER_LINE, gt=16, description="Line budget in bytes")
    max_depth: int = Field(
        default=MAX_RECURSION_DEPTH,
        ge=0,
        le=MAX_DEPTH_LIMIT,
        description="Deepest context structure rendered",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Severity:
        return Severity.parse(value)


def resolve_log_path(log_name: str, settings: Optional[LoggingSettings] = None) -> str:
    """Work out where the ``log_name`` channel writes.

    A non-empty ``LOG_FULLPATH`` wins outright. Otherwise the file is
    ``<LOG_DIR>/<LOG_PREFIX><log_name>.log``, where LOG_DIR must exist.
    """
    settings = settings or LoggingSettings()

    if settings.fullpath:
        return settings.fullpath

    if settings.dir:
        try:
            log_root = str(Path(settings.dir).resolve(strict=True))
        except (OSError, RuntimeError) as exc:
            raise InvalidLogDirError(settings.dir) from exc
    else:
        log_root = DEFAULT_LOG_DIR

    return f"{log_root}/{settings.prefix}{log_name}.log"
