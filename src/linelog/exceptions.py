"""
Exception hierarchy for linelog.

Only caller mistakes and configuration problems are raised. Anything that can
go wrong while serializing a value degrades into shorter output instead.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LineLogError(Exception):
    """Root of all linelog errors."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidMessageError(LineLogError, TypeError):
    """Raised when a log message is not a string.

    This is a programming error at the call site, so it is reported before any
    formatting work happens.
    """

    def __init__(self, message: Any) -> None:
        super().__init__(
            "Log message must be of type string",
            details={"type": type(message).__name__},
        )


class UnknownSeverityError(LineLogError, ValueError):
    """Raised when a severity name does not match any known level."""

    def __init__(self, severity: Any) -> None:
        super().__init__(f"Unknown log severity: {severity!r}", details={"severity": severity})
        self.severity = severity


class InvalidLogDirError(LineLogError, ValueError):
    """Raised when LOG_DIR points at a directory that does not exist."""

    def __init__(self, log_dir: str) -> None:
        super().__init__(f"Invalid value for LOG_DIR: {log_dir}", details={"log_dir": log_dir})
        self.log_dir = log_dir
