"""
Depth fitting.

Finds the deepest rendering of a log line that fits a byte budget. Rendering
at full depth fits almost every record, so that is tried first; otherwise the
depth is binary-searched, and only when even depth 0 overflows is the line cut.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .constants import MAX_BYTES_PER_LINE, MAX_RECURSION_DEPTH, TRUNCATION_SUFFIX

Renderer = Callable[[int], str]


def byte_length(line: str) -> int:
    return len(line.encode("utf-8"))


@dataclass(frozen=True)
class FitResult:
    """Outcome of fitting one line.

    ``depth`` is the depth the line was rendered at, or ``None`` when nothing
    fit and the depth-0 rendering had to be truncated.
    """

    line: str
    depth: Optional[int]
    truncated: bool = False


class DepthFitter:
    def __init__(
        self,
        *,
        max_depth: int = MAX_RECURSION_DEPTH,
        max_bytes: int = MAX_BYTES_PER_LINE,
        truncation_suffix: str = TRUNCATION_SUFFIX,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {max_depth}")
        if max_bytes <= byte_length(truncation_suffix):
            raise ValueError(f"max_bytes must exceed the truncation suffix length, got {max_bytes}")
        self.max_depth = max_depth
        self.max_bytes = max_bytes
        self.truncation_suffix = truncation_suffix

    def fits(self, line: str) -> bool:
        return byte_length(line) <= self.max_bytes

    def fit(self, render: Renderer) -> FitResult:
        """Render through ``render(depth)`` at the largest depth that fits."""
        line = render(self.max_depth)
        if self.fits(line):
            return FitResult(line, self.max_depth)

        best: Optional[FitResult] = None
        low, high = 0, self.max_depth - 1
        while high >= low:
            depth = (low + high + 1) // 2
            candidate = render(depth)
            if self.fits(candidate):
                # Keep looking for a deeper rendering that still fits
                best = FitResult(candidate, depth)
                low = depth + 1
            else:
                high = depth - 1
        if best is not None:
            return best

        # Even the shallowest rendering is too long. This usually means a data
        # blob was logged as the message instead of as context.
        return FitResult(self.truncate(render(0)), None, truncated=True)

    def truncate(self, line: str) -> str:
        """Cut ``line`` to the budget and mark it with the truncation suffix."""
        limit = self.max_bytes - byte_length(self.truncation_suffix)
        # A multi-byte character split at the cut is dropped
        head = line.encode("utf-8")[:limit].decode("utf-8", "ignore")
        return head.rstrip() + self.truncation_suffix
