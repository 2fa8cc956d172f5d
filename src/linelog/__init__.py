"""
linelog: bounded single-line log serialization.

Formats any value, cyclic or deeply nested, into one UTF-8 log line that
never exceeds a byte budget, for syslog-style collectors with hard line
limits:

- normalizer: arbitrary values to JSON-safe trees
- fitter: deepest rendering that fits the budget
- formatter: the ``[timestamp] [channel:severity] [tag value]: message [context]`` line
- core: channel loggers (structlog) and their registry

Library: structlog for the logging pipeline, orjson for JSON encoding.
"""

from .config import LoggingSettings, resolve_log_path
from .context import bind_client_address, client_context, current_client_address, reset_client_address
from .core import ChannelLogger, LoggerRegistry, create_channel_logger, get_logger
from .exceptions import InvalidLogDirError, InvalidMessageError, LineLogError, UnknownSeverityError
from .fitter import DepthFitter, FitResult
from .formatter import LineFormatter
from .interceptors import SerializingLogFormatter, install_handler
from .levels import Severity
from .normalizer import Normalizer, ValueKind, classify, normalize
from .record import MISSING, Record
from .sinks import BaseSink, FileSink, StreamSink, open_sink
from .tags import TagStore, is_valid_tag, log_tags

__all__ = [
    "BaseSink",
    "ChannelLogger",
    "DepthFitter",
    "FileSink",
    "FitResult",
    "InvalidLogDirError",
    "InvalidMessageError",
    "LineFormatter",
    "LineLogError",
    "LoggerRegistry",
    "LoggingSettings",
    "MISSING",
    "Normalizer",
    "Record",
    "SerializingLogFormatter",
    "Severity",
    "StreamSink",
    "TagStore",
    "UnknownSeverityError",
    "ValueKind",
    "bind_client_address",
    "classify",
    "client_context",
    "create_channel_logger",
    "current_client_address",
    "get_logger",
    "install_handler",
    "is_valid_tag",
    "log_tags",
    "normalize",
    "open_sink",
    "reset_client_address",
    "resolve_log_path",
]
