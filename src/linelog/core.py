"""
Channel loggers and the logger registry.

Each channel (``api``, ``security``, ...) gets one ``ChannelLogger``, built on
first use and reused afterwards:

    from linelog import get_logger, log_tags

    log_tags.add("CampaignId", 123456)
    get_logger("api").info("Campaign loaded", {"budget": 1000}, tags={"UserId": 42})

Log calls run through a structlog processor chain that stamps the event,
merges ambient and call-site tags, and renders the final line; the wrapped
logger hands that line to a sink.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import structlog
from structlog.typing import EventDict, WrappedLogger

from .config import LoggingSettings, resolve_log_path
from .exceptions import InvalidMessageError
from .formatter import LineFormatter
from .levels import Severity
from .record import MISSING, Record
from .sinks import BaseSink, open_sink
from .tags import TagStore, log_tags

_logger = logging.getLogger(__name__)


# =============================================================================
# Structlog Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the event with the current UTC time."""
    event_dict.setdefault("timestamp", datetime.now(timezone.utc))
    return event_dict


def add_severity(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Fall back to the structlog method name when no severity was passed."""
    event_dict.setdefault("severity", method_name)
    return event_dict


class TagMerger:
    """Overlay call-site tags on the ambient tags of a ``TagStore``."""

    def __init__(self, store: TagStore):
        self._store = store

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["tags"] = self._store.merged(event_dict.get("tags"))
        return event_dict


class LineRenderer:
    """Final processor: turn the event dict into a formatted line."""

    def __init__(self, formatter: LineFormatter):
        self._formatter = formatter

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        record = Record(
            timestamp=event_dict["timestamp"],
            channel=event_dict.get("channel", "root"),
            severity=event_dict["severity"],
            message=event_dict.get("event", ""),
            context=event_dict.get("context", MISSING),
            tags=event_dict.get("tags") or {},
        )
        return self._formatter.format(record)


class SinkLogger:
    """structlog-compatible wrapped logger that writes rendered lines to a sink."""

    def __init__(self, sink: BaseSink):
        self._sink = sink

    def msg(self, line: str) -> None:
        self._sink.emit(line)

    log = debug = info = warn = warning = msg
    fatal = failure = err = error = critical = exception = msg


# =============================================================================
# Channel Logger
# =============================================================================


class ChannelLogger:
    """Leveled logging for one channel.

    Every method takes ``(message, context, tags)``. ``message`` must be a
    string. ``context`` may be any value and is appended as JSON; leaving it
    out is different from passing ``None``. ``tags`` maps names to scalars
    and is merged over the ambient tags.
    """

    def __init__(
        self,
        name: str,
        sink: BaseSink,
        *,
        formatter: Optional[LineFormatter] = None,
        tags: Optional[TagStore] = None,
        level: Severity | str = Severity.DEBUG,
    ):
        self.name = name
        self.level = Severity.parse(level)
        self._sink = sink
        self._tags = tags if tags is not None else log_tags
        self._logger = structlog.wrap_logger(
            SinkLogger(sink),
            processors=[
                add_timestamp,
                add_severity,
                TagMerger(self._tags),
                LineRenderer(formatter or LineFormatter()),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(self.level.stdlib_level),
            context_class=dict,
            cache_logger_on_first_use=False,
        ).bind(channel=name)

    @property
    def sink(self) -> BaseSink:
        return self._sink

    @property
    def tags(self) -> TagStore:
        return self._tags

    def is_enabled_for(self, severity: Severity | str) -> bool:
        return Severity.parse(severity).is_enabled_for(self.level)

    def log(
        self,
        severity: Severity | str,
        message: str,
        context: Any = MISSING,
        tags: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Log a message at an arbitrary severity."""
        if not isinstance(message, str):
            raise InvalidMessageError(message)
        severity = Severity.parse(severity)
        if not severity.is_enabled_for(self.level):
            return

        event: Dict[str, Any] = {"severity": severity.value}
        if context is not MISSING:
            event["context"] = context
        if tags:
            event["tags"] = dict(tags)
        self._logger.log(severity.stdlib_level, message, **event)

    def emergency(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.EMERGENCY, message, context, tags)

    def alert(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.ALERT, message, context, tags)

    def critical(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.CRITICAL, message, context, tags)

    def error(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.ERROR, message, context, tags)

    def warning(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.WARNING, message, context, tags)

    def notice(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.NOTICE, message, context, tags)

    def info(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.INFO, message, context, tags)

    def debug(self, message: str, context: Any = MISSING, tags: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.DEBUG, message, context, tags)

    def close(self) -> None:
        self._sink.close()


# =============================================================================
# Registry
# =============================================================================

LoggerFactory = Callable[[str], ChannelLogger]


def create_channel_logger(name: str, settings: Optional[LoggingSettings] = None) -> ChannelLogger:
    """Build a logger for ``name`` from ``LOG_*`` settings."""
    settings = settings or LoggingSettings()
    target = resolve_log_path(name, settings)
    formatter = LineFormatter(max_bytes=settings.max_bytes_per_line, max_depth=settings.max_depth)
    logger = ChannelLogger(name, open_sink(target), formatter=formatter, level=settings.level)
    _logger.debug("Created channel logger %s writing to %s", name, target)
    return logger


class LoggerRegistry:
    """Memoizing factory: one logger per channel name, built on first request."""

    def __init__(self, factory: Optional[LoggerFactory] = None):
        self._factory = factory or create_channel_logger
        self._loggers: Dict[str, ChannelLogger] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> ChannelLogger:
        with self._lock:
            logger = self._loggers.get(name)
            if logger is None:
                logger = self._factory(name)
                self._loggers[name] = logger
            return logger

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._loggers

    def close(self) -> None:
        """Close every logger built so far and forget them."""
        with self._lock:
            loggers = list(self._loggers.values())
            self._loggers.clear()
        for logger in loggers:
            logger.close()


_registry = LoggerRegistry()


def get_logger(name: str) -> ChannelLogger:
    """Get the process-wide logger for channel ``name``."""
    return _registry.get(name)
