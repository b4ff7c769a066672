"""Dot-path resolution over structural tree values.

Paths are "."-separated segments, e.g. "metadata.labels.owner" or "a.0.b":
- Object node: segment is a key; a missing key resolves to None
- Array node: segment must be a non-negative in-bounds index, else None
- Scalar node with segments remaining: None

Empty segments are dropped ("a..b" is "a.b"); an empty path resolves to
the whole value. Resolution never raises.
"""

from __future__ import annotations

__all__ = [
    "exists",
    "parse_index",
    "resolve",
    "resolve_as",
    "split_path",
]

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from grc_policy.context.tree import TreeValue, is_array, is_object

T = TypeVar("T")


def split_path(path: str | None) -> list[str]:
    """Split a dot-path into its non-empty segments."""
    if path is None or not path.strip():
        return []
    return [segment for segment in path.split(".") if segment]


def parse_index(segment: str) -> int | None:
    """Parse a segment as a non-negative array index.

    Returns:
        The index, or None if the segment is not a plain decimal number.
    """
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


def _step(node: Any, segment: str) -> tuple[bool, Any]:
    """Move one segment down the tree.

    Returns:
        (found, child) - found is False when the segment cannot be followed.
    """
    if is_object(node):
        if segment not in node:
            return False, None
        return True, node[segment]

    if is_array(node):
        index = parse_index(segment)
        if index is None or index >= len(node):
            return False, None
        return True, node[index]

    return False, None


def resolve(value: TreeValue, path: str | None) -> TreeValue:
    """Resolve a dot-path against a tree value.

    Args:
        value: Tree to navigate.
        path: Dot-path; empty means the whole value.

    Returns:
        The addressed value, or None if any segment cannot be followed.
    """
    current: Any = value
    for segment in split_path(path):
        found, current = _step(current, segment)
        if not found:
            return None
    return current


def exists(value: TreeValue, path: str | None) -> bool:
    """Check whether a dot-path resolves to a non-null value."""
    return resolve(value, path) is not None


@lru_cache(maxsize=64)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def resolve_as(value: TreeValue, path: str | None, target: type[T], default: T | None = None) -> T | None:
    """Resolve a dot-path and coerce the result into a target type.

    Coercion uses pydantic's lax mode, so "5" becomes 5 and "true" becomes
    True. Failures are swallowed.

    Args:
        value: Tree to navigate.
        path: Dot-path to resolve.
        target: Type to coerce into.
        default: Returned when the path is missing or coercion fails.

    Returns:
        Coerced value, or default.
    """
    resolved = resolve(value, path)
    if resolved is None:
        return default
    try:
        return _adapter(target).validate_python(resolved)
    except (ValidationError, TypeError, ValueError):
        return default
