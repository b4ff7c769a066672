"""Logging helper utilities."""

from __future__ import annotations

__all__ = ["serialize_audit_event"]

from typing import Any

from pydantic import BaseModel


def serialize_audit_event(event: BaseModel, *, json_mode: bool = False) -> dict[str, Any]:
    """Serialize a Pydantic event model for audit logging.

    - Excludes the 'time' field (added by ISO8601Formatter at log time)
    - Excludes None values for cleaner logs

    Args:
        event: Pydantic model instance (e.g., DecisionEvent).
        json_mode: If True, use mode="json" so enums and datetimes become
                   JSON-compatible values.

    Returns:
        dict: Serialized event data ready for logging.

    Example:
        >>> event = DecisionEvent(action="create", effect="deny", ...)
        >>> serialize_audit_event(event, json_mode=True)
        {"action": "create", "effect": "deny", ...}
    """
    if json_mode:
        return event.model_dump(mode="json", exclude={"time"}, exclude_none=True)
    return event.model_dump(exclude={"time"}, exclude_none=True)
