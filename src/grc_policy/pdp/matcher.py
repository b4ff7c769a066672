"""Matching for policy rules and exceptions.

This module provides:
- match_request: Does a match block apply to the request?
  - resource type: exact, or "*"/"Any" for everything
  - environment: exact, or "*"
  - principal: exact id (if set) AND any-of roles (if non-empty)
- evaluate_condition(s): Predicates over the resource payload (AND logic)

Condition operators:
- exists / equals / notEquals / in / notIn / matches / notMatches
Operator names are case-insensitive. equals/notEquals and in/notIn coerce a
string payload value to the scalar type of the compared condition value
("5" equals 5 and is in [5]; "true" equals true). Anything that cannot be
evaluated (unsupported operator, invalid regex, non-list value for in/notIn)
is false.
"""

from __future__ import annotations

__all__ = [
    "CONDITION_OPS",
    "evaluate_condition",
    "evaluate_conditions",
    "match_request",
    "structurally_equal",
]

import logging
import re
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import Any

from grc_policy.constants import RESOURCE_TYPE_WILDCARDS, WILDCARD
from grc_policy.context.request import ActionRequest
from grc_policy.context.tree import TreeValue
from grc_policy.exceptions import ConditionEvaluationError
from grc_policy.pdp.paths import resolve, resolve_as
from grc_policy.pdp.policy import Condition, MatchConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Request matching
# =============================================================================


def match_request(match: MatchConfig, request: ActionRequest) -> bool:
    """Check whether a match block applies to a request.

    Args:
        match: Match block from a rule or exception.
        request: The action request.

    Returns:
        True if resource type, environment and principal all match.
    """
    resource_type = match.resource_type
    if resource_type not in RESOURCE_TYPE_WILDCARDS and resource_type != request.resource_type:
        return False

    if match.environment != WILDCARD and match.environment != request.environment:
        return False

    principal = match.principal
    if principal is not None:
        if principal.id and principal.id != request.principal_id:
            return False
        if principal.roles and not any(role in request.principal_roles for role in principal.roles):
            return False

    return True


# =============================================================================
# Structural comparison
# =============================================================================


def structurally_equal(left: Any, right: Any) -> bool:
    """Compare two tree values structurally.

    Unlike ==, booleans never equal numbers (True != 1), at any depth.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(structurally_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(structurally_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (dict, list, tuple)) or isinstance(right, (dict, list, tuple)):
        return False
    return left == right


def _coerced(resolved: TreeValue, resource: TreeValue, path: str, expected: Any) -> TreeValue:
    """Coerce a string payload value to the scalar type of the condition value."""
    if isinstance(resolved, str) and isinstance(expected, (bool, int, float)):
        coerced = resolve_as(resource, path, type(expected))
        if coerced is not None:
            return coerced
    return resolved


def _members(expected: Any) -> Sequence[Any]:
    if isinstance(expected, (list, tuple, set, frozenset)):
        return list(expected)
    raise ConditionEvaluationError(f"Expected a list of values, got {type(expected).__name__}")


def _contains(members: Sequence[Any], resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    """Membership with the same per-member coercion as equals."""
    return any(
        structurally_equal(_coerced(resolved, resource, condition.path, member), member)
        for member in members
    )


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConditionEvaluationError(f"Invalid regex '{pattern}': {e}") from e


def _pattern(expected: Any) -> re.Pattern[str]:
    if not isinstance(expected, str):
        raise ConditionEvaluationError(f"Expected a regex string, got {type(expected).__name__}")
    return _compile(expected)


# =============================================================================
# Condition operators
# =============================================================================

_Operator = Callable[[TreeValue, Condition, TreeValue], bool]


def _op_exists(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    return resolved is not None


def _op_equals(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    value = _coerced(resolved, resource, condition.path, condition.value)
    return structurally_equal(value, condition.value)


def _op_not_equals(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    return not _op_equals(resolved, condition, resource)


def _op_in(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    return _contains(_members(condition.value), resolved, condition, resource)


def _op_not_in(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    return not _contains(_members(condition.value), resolved, condition, resource)


def _op_matches(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    pattern = _pattern(condition.value)
    return isinstance(resolved, str) and pattern.search(resolved) is not None


def _op_not_matches(resolved: TreeValue, condition: Condition, resource: TreeValue) -> bool:
    # Missing and non-string values never "match", so they satisfy notMatches
    pattern = _pattern(condition.value)
    return not isinstance(resolved, str) or pattern.search(resolved) is None


_OPERATORS: dict[str, _Operator] = {
    "exists": _op_exists,
    "equals": _op_equals,
    "notequals": _op_not_equals,
    "in": _op_in,
    "notin": _op_not_in,
    "matches": _op_matches,
    "notmatches": _op_not_matches,
}

CONDITION_OPS: frozenset[str] = frozenset(_OPERATORS)


def evaluate_condition(condition: Condition, resource: TreeValue) -> bool:
    """Evaluate one condition against a resource payload.

    Args:
        condition: Condition to evaluate.
        resource: Resource tree the condition path points into.

    Returns:
        True if the condition holds. Evaluation errors yield False.
    """
    try:
        operator = _OPERATORS.get(condition.op.strip().lower())
        if operator is None:
            raise ConditionEvaluationError(f"Unsupported condition operator: {condition.op}")
        return operator(resolve(resource, condition.path), condition, resource)
    except ConditionEvaluationError as e:
        logger.debug("Condition %s on '%s' evaluated to false: %s", condition.op, condition.path, e)
        return False


def evaluate_conditions(conditions: Sequence[Condition], resource: TreeValue) -> bool:
    """Evaluate conditions with AND logic; an empty list always holds."""
    return all(evaluate_condition(condition, resource) for condition in conditions)
