"""
Value normalization.

Turns an arbitrary Python value graph into a tree that orjson can always
encode:

- cycles are broken with a self-reference marker
- NaN and the infinities become sentinel strings
- text is coerced to valid UTF-8
- anything deeper than the requested depth collapses into a short placeholder

Values are classified into a ``ValueKind`` first and every kind has exactly
one handling rule. The value being normalized is never mutated; cycle
detection keeps the ids of the composites on the current path in a set that
lives for a single ``normalize()`` call.
"""

from __future__ import annotations

import functools
import inspect
import math
import traceback
from collections.abc import Mapping, Sequence, Set
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from types import ModuleType
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import orjson

from .constants import CLOSURE_MARKER, MAX_RECURSION_DEPTH

NormalizedValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

# orjson only encodes integers in this range
_MIN_INT = -(2**63)
_MAX_INT = 2**64 - 1

# Leaves that carry fields or look like collections but read best as text
_OPAQUE_TYPES = (
    date,
    time,
    timedelta,
    Decimal,
    Fraction,
    UUID,
    Enum,
    PurePath,
    complex,
    range,
    memoryview,
    type,
    ModuleType,
)


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    CLOSURE = "closure"
    ERROR = "error"
    CUSTOM = "custom"
    OBJECT = "object"
    OPAQUE = "opaque"


_COLLECTION_KINDS = frozenset({ValueKind.SEQUENCE, ValueKind.MAPPING})
_OBJECT_KINDS = frozenset({ValueKind.CLOSURE, ValueKind.ERROR, ValueKind.CUSTOM, ValueKind.OBJECT})


def classify(value: Any) -> ValueKind:
    """Map a value onto the variant that decides how it is normalized."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, (str, bytes, bytearray)):
        return ValueKind.TEXT
    if isinstance(value, BaseException):
        return ValueKind.ERROR
    if isinstance(value, _OPAQUE_TYPES):
        return ValueKind.OPAQUE
    if inspect.isroutine(value) or isinstance(value, functools.partial):
        return ValueKind.CLOSURE
    if callable(getattr(type(value), "__json__", None)):
        return ValueKind.CUSTOM
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (Sequence, Set)):
        return ValueKind.SEQUENCE
    try:
        has_fields = public_fields(value) is not None
    except Exception:
        has_fields = False
    return ValueKind.OBJECT if has_fields else ValueKind.OPAQUE


# =============================================================================
# Leaf Helpers
# =============================================================================


def coerce_text(value: Union[str, bytes, bytearray]) -> str:
    """Return ``value`` as a string that encodes cleanly to UTF-8.

    Bytes that are not valid UTF-8 are read as Latin-1, which accepts every
    byte sequence, so this never fails.
    """
    if isinstance(value, str):
        try:
            value.encode("utf-8")
            return str.__str__(value)
        except UnicodeEncodeError:
            # Lone surrogates: recover the original bytes where possible
            try:
                raw = value.encode("utf-8", "surrogateescape")
            except UnicodeEncodeError:
                raw = value.encode("utf-8", "surrogatepass")
    else:
        raw = bytes(value)

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def unrepresentable(value: Any) -> str:
    return f"({coerce_text(type(value).__name__)} unrepresentable)"


def safe_text(value: Any) -> str:
    """``str(value)`` as clean UTF-8, or a marker when ``__str__`` fails."""
    try:
        text = str(value)
    except Exception:
        return unrepresentable(value)
    return coerce_text(text)


def normalize_scalar(value: Any, kind: Optional[ValueKind] = None) -> NormalizedValue:
    """Normalize a non-composite value."""
    kind = kind or classify(value)
    if kind is ValueKind.NULL or kind is ValueKind.BOOLEAN:
        return value
    if kind is ValueKind.INTEGER:
        if _MIN_INT <= value <= _MAX_INT:
            return int(value)
        try:
            return str(int(value))
        except ValueError:
            # Past the interpreter's int-to-str digit limit
            return f"(int {value.bit_length()} bits)"
    if kind is ValueKind.FLOAT:
        # JSON has no NaN or infinities
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return float(value)
    if kind is ValueKind.TEXT:
        return coerce_text(value)
    return safe_text(value)


def normalize_key(key: Any) -> str:
    """Normalize a mapping key to text, spelling JSON scalars the JSON way."""
    if isinstance(key, (str, bytes, bytearray)):
        return coerce_text(key)
    if key is None or isinstance(key, (bool, int, float)):
        scalar = normalize_scalar(key)
        if isinstance(scalar, str):
            return scalar
        return orjson.dumps(scalar).decode()
    return safe_text(key)


def public_fields(value: Any) -> Optional[Dict[str, Any]]:
    """Public instance fields of ``value``.

    Reads ``__dict__`` and every ``__slots__`` entry along the MRO, skipping
    names that start with an underscore. Returns ``None`` when the value has no
    per-instance storage at all.
    """
    fields: Dict[str, Any] = {}
    has_storage = False

    instance_dict = getattr(value, "__dict__", None)
    if isinstance(instance_dict, Mapping):
        has_storage = True
        for name, field_value in instance_dict.items():
            if isinstance(name, str) and not name.startswith("_"):
                fields[name] = field_value

    for cls in type(value).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            has_storage = True
            if name.startswith("_") or name in fields:
                continue
            try:
                fields[name] = getattr(value, name)
            except AttributeError:
                continue  # declared but never assigned

    return fields if has_storage else None


def encoded_length(value: NormalizedValue) -> int:
    return len(orjson.dumps(value))


# =============================================================================
# Normalizer
# =============================================================================


class Normalizer:
    """Converts values into JSON-safe trees.

    Instances hold no per-call state and can be shared between threads.
    """

    def normalize(self, value: Any, max_depth: int = MAX_RECURSION_DEPTH) -> NormalizedValue:
        """Normalize ``value``, rendering at most ``max_depth`` levels of nesting."""
        return self._normalize(value, max_depth, set())

    def _normalize(self, value: Any, max_depth: int, visiting: set[int]) -> NormalizedValue:
        kind = classify(value)
        if kind in _COLLECTION_KINDS:
            return self._normalize_collection(value, kind, max_depth, visiting)
        if kind in _OBJECT_KINDS:
            return self._normalize_object(value, kind, max_depth, visiting)

        normalized = normalize_scalar(value, kind)
        if max_depth <= 0:
            # Summarize at the depth limit, but only when the summary is shorter
            summary = f"({type(value).__name__})"
            if encoded_length(summary) < encoded_length(normalized):
                return summary
        return normalized

    def _normalize_collection(
        self, value: Any, kind: ValueKind, max_depth: int, visiting: set[int]
    ) -> NormalizedValue:
        type_name = coerce_text(type(value).__name__)
        if max_depth <= 0:
            return f"({type_name} ...)"

        identity = id(value)
        if identity in visiting:
            return f"({type_name} self-reference)"

        visiting.add(identity)
        try:
            if kind is ValueKind.MAPPING:
                return {
                    normalize_key(key): self._normalize(item, max_depth - 1, visiting)
                    for key, item in value.items()
                }
            return [self._normalize(item, max_depth - 1, visiting) for item in value]
        except Exception:
            # User-defined containers can fail while being iterated
            return f"({type_name} unrepresentable)"
        finally:
            visiting.discard(identity)

    def _normalize_object(
        self, value: Any, kind: ValueKind, max_depth: int, visiting: set[int]
    ) -> NormalizedValue:
        if kind is ValueKind.CLOSURE:
            return CLOSURE_MARKER

        class_name = coerce_text(type(value).__name__)
        if max_depth <= 0:
            return f"({class_name} ...)"

        identity = id(value)
        if identity in visiting:
            return f"({class_name} self-reference)"

        visiting.add(identity)
        try:
            # The representation takes the object's place in the tree, so it is
            # normalized at the same depth rather than one level deeper.
            try:
                representation = self._represent(value, kind, class_name)
            except Exception:
                return f"({class_name} unrepresentable)"
            return self._normalize(representation, max_depth, visiting)
        finally:
            visiting.discard(identity)

    def _represent(self, value: Any, kind: ValueKind, class_name: str) -> Any:
        if kind is ValueKind.ERROR:
            return self._represent_error(value, class_name)

        if kind is ValueKind.CUSTOM:
            representation = value.__json__()
            # An object returned from __json__ could define __json__ itself
            if classify(representation) in (ValueKind.CUSTOM, ValueKind.OBJECT, ValueKind.ERROR):
                representation = public_fields(representation) or {}
            return representation

        representation = public_fields(value) or {}
        representation["class"] = class_name
        return representation

    @staticmethod
    def _represent_error(error: BaseException, class_name: str) -> Dict[str, Any]:
        cause = error.__cause__
        if cause is None and not error.__suppress_context__:
            cause = error.__context__

        code = getattr(error, "code", None)
        if code is None:
            code = getattr(error, "errno", None)

        # Read frames directly: source line lookup would stat every file
        trace = [
            {"file": frame.f_code.co_filename, "line": lineno, "function": frame.f_code.co_name}
            for frame, lineno in traceback.walk_tb(error.__traceback__)
        ]

        return {
            "cause": cause,
            "code": code,
            "message": safe_text(error),
            "trace": trace,
            "class": class_name,
        }


_default_normalizer = Normalizer()


def normalize(value: Any, max_depth: int = MAX_RECURSION_DEPTH) -> NormalizedValue:
    """Normalize ``value`` with a shared ``Normalizer``."""
    return _default_normalizer.normalize(value, max_depth)
