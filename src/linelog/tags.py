"""
Ambient log tags.

A ``TagStore`` holds key/value metadata that is attached to every line logged
through the loggers sharing it:

    log_tags.add("CampaignId", 123456)
    logger.info("Campaign loaded")
    # [2014-09-17 01:23:45] [api:info] [CampaignId 123456]: Campaign loaded

Tags stay until removed. The store accepts any name and value; tags that are
not renderable are dropped when a line is formatted.
"""

from __future__ import annotations

import re
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

_TAG_NAME = re.compile(r"[A-Za-z0-9_-]+")

_TAG_VALUE_TYPES = (str, bytes, bool, int, float)


def is_valid_tag(name: Any, value: Any) -> bool:
    """Whether a tag can be rendered as ``[name value]``."""
    valid_name = isinstance(name, str) and _TAG_NAME.fullmatch(name) is not None
    valid_value = value is None or isinstance(value, _TAG_VALUE_TYPES)
    return valid_name and valid_value


class TagStore:
    """Thread-safe mapping of tag names to values."""

    def __init__(self, tags: Optional[Mapping[str, Any]] = None) -> None:
        self._lock = threading.Lock()
        self._tags: Dict[str, Any] = dict(tags or {})

    def add(self, name: str, value: Any) -> None:
        """Add a tag, overwriting any previous value (which keeps its position)."""
        with self._lock:
            self._tags[name] = value

    def remove(self, name: str) -> None:
        with self._lock:
            self._tags.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._tags.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the current tags, in insertion order."""
        with self._lock:
            return dict(self._tags)

    def merged(self, tags: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Ambient tags overlaid with call-site ``tags``; the call site wins."""
        merged = self.snapshot()
        if tags:
            merged.update(tags)
        return merged

    @contextmanager
    def scoped(self, tags: Mapping[str, Any]) -> Iterator["TagStore"]:
        """Apply ``tags`` for the duration of a block, then restore prior values."""
        missing = object()
        with self._lock:
            previous = {name: self._tags.get(name, missing) for name in tags}
            self._tags.update(tags)
        try:
            yield self
        finally:
            with self._lock:
                for name, value in previous.items():
                    if value is missing:
                        self._tags.pop(name, None)
                    else:
                        self._tags[name] = value

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tags

    def __len__(self) -> int:
        with self._lock:
            return len(self._tags)


# Process-wide store used by loggers that are not given one explicitly
log_tags = TagStore()
