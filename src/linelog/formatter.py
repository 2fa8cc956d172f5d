"""
Serializes a log record into a single UTF-8 line.

Lines look like:

    [2014-09-17 01:23:45] [api:info] [client 10.0.0.1] [CampaignId 123]: Some message [{"some":"context"}]

- tags appear as ``[name value]`` metadata before the message
- the context value, when present, is JSON-encoded into the last bracket pair
- the whole line, newline included, never exceeds ``max_bytes``

Brackets inside tag values and the message are backslash-escaped because they
delimit fields. JSON encoding guarantees the line has no literal line breaks.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

import orjson

from .constants import (
    MAX_BYTES_PER_LINE,
    MAX_RECURSION_DEPTH,
    SERIALIZATION_ERROR_PREFIX,
    TIMESTAMP_FORMAT,
    TRUNCATION_SUFFIX,
)
from .context import current_client_address
from .exceptions import InvalidMessageError
from .fitter import DepthFitter, FitResult
from .normalizer import Normalizer
from .record import Record
from .tags import is_valid_tag

ClientAddressProvider = Callable[[], Optional[str]]


def json_dumps(value: Any) -> str:
    """Compact JSON; non-ASCII characters and slashes are left unescaped."""
    return orjson.dumps(value).decode()


def escape_brackets(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def format_timestamp(timestamp: datetime) -> str:
    """Render ``timestamp`` in UTC; naive datetimes are taken to be UTC already."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class LineFormatter:
    def __init__(
        self,
        *,
        max_bytes: int = MAX_BYTES_PER_LINE,
        max_depth: int = MAX_RECURSION_DEPTH,
        truncation_suffix: str = TRUNCATION_SUFFIX,
        client_address: Optional[ClientAddressProvider] = current_client_address,
        normalizer: Optional[Normalizer] = None,
    ) -> None:
        self._fitter = DepthFitter(
            max_depth=max_depth,
            max_bytes=max_bytes,
            truncation_suffix=truncation_suffix,
        )
        self._normalizer = normalizer or Normalizer()
        self._client_address = client_address

    @property
    def max_bytes(self) -> int:
        return self._fitter.max_bytes

    @property
    def max_depth(self) -> int:
        return self._fitter.max_depth

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def format(self, record: Record) -> str:
        """Format ``record`` as one newline-terminated line within the byte budget."""
        return self.fit(record).line

    def format_batch(self, records: Iterable[Record]) -> str:
        return "".join(self.format(record) for record in records)

    def fit(self, record: Record) -> FitResult:
        """Format ``record`` and report the context depth that was used."""
        if not isinstance(record.message, str):
            raise InvalidMessageError(record.message)

        prefix = self._format_prefix(record)
        return self._fitter.fit(lambda depth: self._render(prefix, record, depth))

    def render(self, record: Record, max_depth: int) -> str:
        """Format ``record`` at a fixed context depth, ignoring the byte budget."""
        if not isinstance(record.message, str):
            raise InvalidMessageError(record.message)
        return self._render(self._format_prefix(record), record, max_depth)

    def format_value(
        self, value: Any, *, quote_strings: bool = True, max_depth: int = MAX_RECURSION_DEPTH
    ) -> str:
        """Format any value as UTF-8 text without line breaks.

        With ``quote_strings=False`` a string value is written bare: the JSON
        quotes are removed, escaped double quotes are restored and square
        brackets are escaped. Control characters keep their JSON escapes.
        """
        normalized = self._normalizer.normalize(value, max_depth)
        try:
            result = json_dumps(normalized)
        except orjson.JSONEncodeError as exc:
            # Normalization should make this unreachable
            return f"{SERIALIZATION_ERROR_PREFIX} {exc}"

        if isinstance(normalized, str) and not quote_strings:
            result = result[1:-1].replace('\\"', '"')
            result = escape_brackets(result)
        return result

    # -------------------------------------------------------------------------
    # Line Assembly
    # -------------------------------------------------------------------------

    def _format_prefix(self, record: Record) -> str:
        """Everything up to and including the message; independent of depth."""
        channel = self.format_value(record.channel, quote_strings=False)
        severity = str(getattr(record.severity, "value", record.severity)).lower()
        metadata = [format_timestamp(record.timestamp), f"{channel}:{severity}"]

        address = self._lookup_client_address()
        if address is not None:
            metadata.append(f"client {self.format_value(address, quote_strings=False)}")

        for name, value in (record.tags or {}).items():
            if is_valid_tag(name, value):
                metadata.append(f"{name} {self.format_value(value, quote_strings=False)}")

        metadata_text = " ".join(f"[{item}]" for item in metadata)
        message = self.format_value(record.message, quote_strings=False)
        return f"{metadata_text}: {message}"

    def _render(self, prefix: str, record: Record, max_depth: int) -> str:
        if not record.has_context:
            return f"{prefix}\n"
        context = self.format_value(record.context, quote_strings=True, max_depth=max_depth)
        return f"{prefix} [{context}]\n"

    def _lookup_client_address(self) -> Optional[str]:
        if self._client_address is None:
            return None
        try:
            return self._client_address()
        except Exception:
            return None  # best effort
