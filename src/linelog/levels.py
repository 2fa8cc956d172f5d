"""
Log severities.

The eight syslog severities, ordered from most to least urgent. Each maps onto
the nearest standard library level so that structlog's level filtering and
stdlib handlers keep working.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .exceptions import UnknownSeverityError


class Severity(str, Enum):
    EMERGENCY = "emergency"
    ALERT = "alert"
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    INFO = "info"
    DEBUG = "debug"

    @property
    def code(self) -> int:
        """Syslog severity code: 0 (emergency) through 7 (debug)."""
        return _CODES[self]

    @property
    def stdlib_level(self) -> int:
        return _STDLIB_LEVELS[self]

    def is_enabled_for(self, threshold: "Severity") -> bool:
        """Whether an event at this severity passes a ``threshold`` filter."""
        return self.code <= threshold.code

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            name = _ALIASES.get(name, name)
            try:
                return cls(name)
            except ValueError:
                pass
        raise UnknownSeverityError(value)


_CODES = {severity: code for code, severity in enumerate(Severity)}

_STDLIB_LEVELS = {
    Severity.EMERGENCY: logging.CRITICAL,
    Severity.ALERT: logging.CRITICAL,
    Severity.CRITICAL: logging.CRITICAL,
    Severity.ERROR: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.NOTICE: logging.INFO,
    Severity.INFO: logging.INFO,
    Severity.DEBUG: logging.DEBUG,
}

# Spellings used by the standard library
_ALIASES = {
    "warn": "warning",
    "fatal": "critical",
}
