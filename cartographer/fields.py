"""Typed access to nested fields of decoded manifests.

Manifests arrive as plain ``dict``/``list`` trees. Every analyzer needs to
reach into them without repeating shape checks, so lookups here return a
``Lookup(value, found, error)`` triple instead of raising:

- a missing key anywhere on the path gives ``found=False, error=None``
- walking through something that is not a mapping, or a leaf of the wrong
  type for the typed helpers, gives ``found=False`` and an ``error`` message
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple


class Lookup(NamedTuple):
    value: Any
    found: bool
    error: str | None = None


_MISSING = Lookup(None, False, None)


def _dotted(path: tuple[str, ...]) -> str:
    return "." + ".".join(path)


def nested_field(obj: Any, *path: str) -> Lookup:
    """Return the value at ``path`` inside ``obj``."""
    current = obj
    for i, key in enumerate(path):
        if not isinstance(current, Mapping):
            return Lookup(
                None,
                False,
                f"{_dotted(path[:i])} is {type(current).__name__}, expected a mapping",
            )
        if key not in current:
            return _MISSING
        current = current[key]
    return Lookup(current, True, None)


def _typed(obj: Any, path: tuple[str, ...], expected: type, label: str) -> Lookup:
    result = nested_field(obj, *path)
    if not result.found:
        return result
    if result.value is None:
        # An explicit null is treated like an absent field.
        return _MISSING
    if not isinstance(result.value, expected):
        return Lookup(
            None,
            False,
            f"{_dotted(path)} is {type(result.value).__name__}, expected {label}",
        )
    return result


def nested_map(obj: Any, *path: str) -> Lookup:
    return _typed(obj, path, Mapping, "a mapping")


def nested_slice(obj: Any, *path: str) -> Lookup:
    return _typed(obj, path, list, "a list")


def nested_string(obj: Any, *path: str) -> Lookup:
    return _typed(obj, path, str, "a string")


def string_map(value: Any) -> dict[str, str]:
    """Convert a mapping to ``dict[str, str]``, dropping non-string values."""
    if not isinstance(value, Mapping):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def name_of(value: Any, key: str = "name") -> str:
    """Return ``value[key]`` when ``value`` is a mapping holding a non-empty string."""
    if not isinstance(value, Mapping):
        return ""
    name = value.get(key)
    return name if isinstance(name, str) else ""
