"""
The unit of formatting: one log event before it becomes a line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


class _Missing:
    """Marks an absent context value, which is different from ``None``."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Record:
    timestamp: datetime
    channel: str
    severity: str
    message: str
    context: Any = MISSING
    tags: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_context(self) -> bool:
        return self.context is not MISSING
