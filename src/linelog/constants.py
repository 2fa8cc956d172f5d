"""
Shared constants for line serialization.

Keeps the wire-format limits in one place so the formatter, the depth fitter
and the settings defaults stay aligned.
"""

from __future__ import annotations


# =============================================================================
# Size Limits
# =============================================================================

# Deepest structure rendered on the optimistic first pass
MAX_RECURSION_DEPTH = 32

# Keeps rendered context within orjson's nesting limit
MAX_DEPTH_LIMIT = 128

# rsyslog accepts 8000 bytes per line; the observed limit is 7996
MAX_BYTES_PER_LINE = 7900

# Appended when even a depth-0 rendering overflows the line budget
TRUNCATION_SUFFIX = " (...)\n"


# =============================================================================
# Wire Format
# =============================================================================

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

CLOSURE_MARKER = "(closure)"

SERIALIZATION_ERROR_PREFIX = "Error serializing log message: JSON error"


# =============================================================================
# Destinations
# =============================================================================

DEFAULT_LOG_DIR = "/var/log"

# LOG_FULLPATH values that select a process stream instead of a file
STREAM_TARGETS = ("stdout", "stderr")
