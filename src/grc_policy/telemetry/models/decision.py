"""Pydantic model for decision audit events (audit/decisions.jsonl).

The 'time' field is Optional[str] = None because ISO8601Formatter adds the
timestamp when the record is written. Events are created without one.
"""

from __future__ import annotations

__all__ = ["DecisionEvent"]

from pydantic import BaseModel, ConfigDict, Field

from grc_policy.pdp.decision import Effect


class DecisionEvent(BaseModel):
    """One policy decision, as written to the audit trail.

    Attributes:
        time: ISO 8601 timestamp, added by the formatter.
        event: Event type marker.
        action: Operation being performed.
        resource_type: Entity type.
        environment: Deployment environment.
        tenant_id: Tenant the action ran under.
        principal_id: Acting user.
        effect: Final effect.
        matched_rule_id: Rule that produced the final effect (None = default).
        matched_rule_ids: Every rule whose match block held.
        violations: Non-fatal mutation failures.
        mutated: Whether a mutate rule rewrote the payload.
        policy_name: Evaluated policy.
        policy_version: Evaluated policy version.
    """

    time: str | None = Field(
        None,
        description="ISO 8601 timestamp, added during serialization",
    )

    event: str = "policy_decision"

    # --- request ---
    action: str
    resource_type: str
    environment: str
    tenant_id: str | None = None
    principal_id: str | None = None

    # --- outcome ---
    effect: Effect
    matched_rule_id: str | None = None
    matched_rule_ids: list[str] = Field(default_factory=list)
    violations: list[str] | None = None
    mutated: bool = False

    # --- policy ---
    policy_name: str | None = None
    policy_version: str | None = None

    model_config = ConfigDict(extra="forbid")
