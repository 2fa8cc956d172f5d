"""
Standard library logging bridge.

Renders ``logging.LogRecord`` objects in the same line format as channel
loggers, so third-party libraries logging through ``logging`` end up with
tags and bounded lines too:

    install_handler(logging.getLogger(), stream=sys.stderr)
    logging.getLogger("uvicorn").warning("Slow request", extra={"context": payload})
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from .formatter import LineFormatter
from .record import MISSING, Record
from .tags import TagStore, log_tags


class SerializingLogFormatter(logging.Formatter):
    """``logging.Formatter`` producing linelog lines.

    Reads the optional ``context`` and ``tags`` attributes that callers pass
    through ``extra``. A record carrying ``exc_info`` but no context logs the
    exception as its context.
    """

    def __init__(self, line_formatter: Optional[LineFormatter] = None, tags: Optional[TagStore] = None):
        super().__init__()
        self._line_formatter = line_formatter or LineFormatter()
        self._tags = tags if tags is not None else log_tags

    def to_record(self, record: logging.LogRecord) -> Record:
        context: Any = getattr(record, "context", MISSING)
        if context is MISSING and record.exc_info and record.exc_info[1] is not None:
            context = record.exc_info[1]

        call_site_tags = getattr(record, "tags", None)
        if not isinstance(call_site_tags, Mapping):
            call_site_tags = None

        return Record(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            channel=record.name or "root",
            severity=record.levelname.lower(),
            message=record.getMessage(),
            context=context,
            tags=self._tags.merged(call_site_tags),
        )

    def format(self, record: logging.LogRecord) -> str:
        line = self._line_formatter.format(self.to_record(record))
        # Handlers append their own terminator
        return line[:-1] if line.endswith("\n") else line


def install_handler(
    logger: Optional[logging.Logger] = None,
    *,
    stream: Any = None,
    level: int = logging.NOTSET,
    line_formatter: Optional[LineFormatter] = None,
    tags: Optional[TagStore] = None,
) -> logging.Handler:
    """Attach a stream handler using ``SerializingLogFormatter`` to ``logger``.

    Defaults to the root logger writing to stderr.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(SerializingLogFormatter(line_formatter, tags))
    (logger or logging.getLogger()).addHandler(handler)
    return handler
