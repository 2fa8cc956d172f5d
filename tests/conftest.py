import re
import typing as t
from datetime import datetime, timezone

import pytest

from linelog.formatter import LineFormatter
from linelog.record import MISSING, Record

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_LOG_ENV_VARS = (
    "LOG_FULLPATH",
    "LOG_DIR",
    "LOG_PREFIX",
    "LOG_LEVEL",
    "LOG_MAX_BYTES_PER_LINE",
    "LOG_MAX_DEPTH",
)


@pytest.fixture(autouse=True)
def clean_log_env(monkeypatch, tmp_path):
    """
    Removes LOG_* variables and runs each test from an empty directory,
    so neither the caller's environment nor a stray .env file leaks in.
    """
    for name in _LOG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def formatter() -> LineFormatter:
    """Formatter with default limits and no client address lookup."""
    return LineFormatter(client_address=None)


@pytest.fixture
def make_record() -> t.Callable[..., Record]:
    """Builds debug records on the 'test' channel stamped at the epoch."""

    def _make(message: str = "Some message", context: t.Any = MISSING, **overrides: t.Any) -> Record:
        fields: dict[str, t.Any] = {
            "timestamp": EPOCH,
            "channel": "test",
            "severity": "debug",
            "message": message,
            "context": context,
            "tags": {},
        }
        fields.update(overrides)
        return Record(**fields)

    return _make


@pytest.fixture
def format_context(formatter, make_record) -> t.Callable[[t.Any], str]:
    """Formats a value as record context and returns only the serialized context."""

    def _format(value: t.Any) -> str:
        message = "unique-log-message-7f3a"
        line = formatter.format(make_record(message, value))
        match = re.search(rf"{re.escape(message)} \[(?P<context>.*)\]$", line.rstrip("\n"))
        assert match is not None, f"no context found in {line!r}"
        return match.group("context")

    return _format
