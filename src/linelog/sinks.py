"""
Log sink abstractions and concrete implementations.

Sinks receive finished lines (newline included) and only decide where they go.
"""

from __future__ import annotations

import logging
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, TextIO

from .constants import STREAM_TARGETS

_logger = logging.getLogger(__name__)


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    @abstractmethod
    def emit(self, line: str) -> None:
        """Write one formatted line."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class StreamSink(BaseSink):
    """Writes lines to a text stream it does not own.

    Args:
        stream: Output stream (default: stderr)
    """

    def __init__(self, stream: Any = None):
        self._stream: TextIO = stream or sys.stderr
        self._lock = threading.Lock()

    def emit(self, line: str) -> None:
        with self._lock:
            self._stream.write(line)
            self._stream.flush()

    def close(self) -> None:
        with self._lock:
            self._stream.flush()


class FileSink(BaseSink):
    """Append-only UTF-8 log file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._file = open(self._path, "a", encoding="utf-8")
        _logger.debug("Opened log file %s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def emit(self, line: str) -> None:
        with self._lock:
            self._file.write(line)
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()


def open_sink(target: str) -> BaseSink:
    """Open the sink named by a resolved log destination."""
    if target in STREAM_TARGETS:
        return StreamSink(getattr(sys, target))
    return FileSink(target)
