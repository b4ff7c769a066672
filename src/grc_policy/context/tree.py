"""Structural tree values - the only shape the engine navigates.

Application payloads (entities, DTOs, pydantic models, dataclasses, plain
mappings) are converted once, at the boundary, into a JSON-like tree:

    TreeValue = dict[str, TreeValue] | list[TreeValue] | str | int | float | bool | None

Path resolution and mutation operate purely on this shape, so a rule sees
the same structure no matter which type the caller started from.
"""

from __future__ import annotations

__all__ = [
    "TreeValue",
    "is_array",
    "is_object",
    "to_tree",
]

from typing import Any, TypeAlias, TypeGuard

from pydantic_core import PydanticSerializationError, to_jsonable_python

TreeValue: TypeAlias = "dict[str, TreeValue] | list[TreeValue] | str | int | float | bool | None"


def to_tree(value: Any) -> TreeValue:
    """Convert an arbitrary application payload into a TreeValue.

    Uses pydantic's structural serializer, so pydantic models, dataclasses,
    enums, datetimes, UUIDs, sets and tuples all become plain JSON values.
    The result never shares mutable containers with the input.

    Args:
        value: Payload to convert.

    Returns:
        JSON-compatible tree.

    Raises:
        ValueError: If the payload contains values with no JSON representation.
    """
    try:
        return to_jsonable_python(value, by_alias=True)
    except PydanticSerializationError as e:
        raise ValueError(f"Resource payload is not JSON-serializable: {e}") from e


def is_object(node: Any) -> TypeGuard[dict[str, Any]]:
    """Check whether a tree node is an object (mapping)."""
    return isinstance(node, dict)


def is_array(node: Any) -> TypeGuard[list[Any]]:
    """Check whether a tree node is an array (list)."""
    return isinstance(node, list)
