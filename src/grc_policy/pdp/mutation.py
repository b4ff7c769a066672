"""Mutation application - patch a copy of a resource payload.

Supported operations:
- set    : assign a value at an object key (create or overwrite)
- remove : delete an object key (no-op if absent)
- add    : object parent - same as set
           array parent  - insert at a numeric index, or append otherwise

Navigation follows the path resolver's rules, except that missing (or null)
intermediate object keys are created as empty objects. Navigating through a
missing array index or a scalar is an error.

Insert index policy for "add" on arrays: 0 <= index <= len(array) inserts
(len(array) appends); anything else is rejected with MutationApplicationError.

The input value is never modified; every call returns a new tree.
"""

from __future__ import annotations

__all__ = [
    "MUTATION_OPS",
    "apply_mutation",
    "apply_mutations",
]

import copy
from collections.abc import Iterable
from typing import Any

from grc_policy.context.tree import TreeValue, is_array, is_object
from grc_policy.exceptions import MutationApplicationError
from grc_policy.pdp.paths import parse_index, split_path
from grc_policy.pdp.policy import Mutation

MUTATION_OPS: frozenset[str] = frozenset({"set", "remove", "add"})


def _parse_signed_index(segment: str) -> int | None:
    """Parse a segment as an integer, allowing a leading sign."""
    sign = 1
    digits = segment
    if segment[:1] in ("-", "+"):
        sign = -1 if segment[0] == "-" else 1
        digits = segment[1:]
    index = parse_index(digits) if digits else None
    return None if index is None else sign * index


def _navigate_to_parent(root: Any, segments: list[str], mutation: Mutation) -> Any:
    """Walk to the node that holds the final segment, creating objects as needed.

    Raises:
        MutationApplicationError: On a missing array index or a scalar in the way.
    """
    current = root
    for segment in segments:
        if is_object(current):
            child = current.get(segment)
            if child is None:
                child = {}
                current[segment] = child
            current = child
        elif is_array(current):
            index = parse_index(segment)
            if index is None or index >= len(current):
                raise MutationApplicationError(
                    f"Invalid array index '{segment}' in path '{mutation.path}'",
                    op=mutation.op,
                    path=mutation.path,
                )
            current = current[index]
        else:
            raise MutationApplicationError(
                f"Cannot navigate path '{mutation.path}': '{segment}' is under a scalar",
                op=mutation.op,
                path=mutation.path,
            )
    return current


def _insert(array: list[Any], name: str, value: Any, mutation: Mutation) -> None:
    index = _parse_signed_index(name)
    if index is None:
        array.append(value)
        return
    if not 0 <= index <= len(array):
        raise MutationApplicationError(
            f"Insert index {index} out of range for array of length {len(array)} at '{mutation.path}'",
            op=mutation.op,
            path=mutation.path,
        )
    array.insert(index, value)


def apply_mutation(value: TreeValue, mutation: Mutation) -> TreeValue:
    """Apply one mutation to a copy of a tree value.

    Args:
        value: Tree to patch (left untouched).
        mutation: Operation, dot-path and value.

    Returns:
        New tree reflecting the change.

    Raises:
        MutationApplicationError: On unsupported ops, empty paths or navigation failures.
    """
    op = mutation.op.strip().lower()
    if op not in MUTATION_OPS:
        raise MutationApplicationError(
            f"Unknown mutation operation: {mutation.op}",
            op=mutation.op,
            path=mutation.path,
        )

    segments = split_path(mutation.path)
    if not segments:
        raise MutationApplicationError("Invalid mutation path", op=mutation.op, path=mutation.path)

    result = copy.deepcopy(value)
    parent = _navigate_to_parent(result, segments[:-1], mutation)
    name = segments[-1]
    new_value = copy.deepcopy(mutation.value)

    if is_object(parent):
        if op == "remove":
            parent.pop(name, None)
        else:
            parent[name] = new_value
    elif is_array(parent):
        if op == "add":
            _insert(parent, name, new_value, mutation)
        # set/remove only address object keys; arrays are left unchanged
    else:
        raise MutationApplicationError(
            f"Cannot apply '{mutation.op}' at '{mutation.path}': parent is not an object or array",
            op=mutation.op,
            path=mutation.path,
        )

    return result


def apply_mutations(value: TreeValue, mutations: Iterable[Mutation]) -> tuple[TreeValue, list[str]]:
    """Apply mutations in order, collecting failures instead of stopping.

    A failed mutation leaves the working value as it was before that mutation.

    Args:
        value: Starting tree.
        mutations: Mutations to apply in order.

    Returns:
        (final tree, violation messages)
    """
    violations: list[str] = []
    current = value
    for mutation in mutations:
        try:
            current = apply_mutation(current, mutation)
        except MutationApplicationError as e:
            violations.append(f"Mutation failed: {mutation.op} on {mutation.path}: {e}")
    return current, violations
