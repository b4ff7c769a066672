"""Policy document models.

This module defines the versioned policy document evaluated by the enforcer.
Documents are authored as YAML with camelCase keys; unknown keys are ignored
at every level so newer documents still load on older engines.

Document structure:
    PolicyDocument
    ├── apiVersion / kind
    ├── metadata: PolicyMetadata (name, version, createdAt - informational)
    └── spec: PolicySpec
        ├── mode: "enforce" (only mode that raises on deny)
        ├── defaultEffect: "allow" | "deny" (no candidate produced)
        ├── execution: ExecutionConfig (order, shortCircuit, conflictStrategy)
        ├── target: TargetConfig (informational scoping)
        ├── rules: List[PolicyRule]
        │   └── PolicyRule
        │       ├── id / priority / enabled
        │       ├── match: MatchConfig (resource type, environment, principal)
        │       ├── when: List[Condition] (AND logic, empty = always)
        │       ├── effect: allow | deny | audit | mutate
        │       └── mutations: List[Mutation] (mutate only)
        └── exceptions: List[PolicyException]
            └── rule ids skipped while the exception is active

Design principles:
1. Rules are evaluated by ascending priority, ties keep document order
2. Exceptions remove rules from consideration, never change them
3. Documents are frozen once parsed - the cache only ever holds complete documents
"""

from __future__ import annotations

__all__ = [
    "AuditConfig",
    "AuditSink",
    "Condition",
    "ExecutionConfig",
    "MatchConfig",
    "Mutation",
    "PolicyDocument",
    "PolicyException",
    "PolicyMetadata",
    "PolicyRule",
    "PolicySpec",
    "PrincipalMatch",
    "Remediation",
    "ResourceMatch",
    "TargetConfig",
]

from datetime import date, datetime, timezone
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from grc_policy.constants import ENFORCE_MODE, WILDCARD
from grc_policy.pdp.decision import Effect


class _PolicyModel(BaseModel):
    """Shared config: camelCase keys, snake_case accepted, extras ignored, frozen."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


def _date_to_datetime(value: Any) -> Any:
    """YAML loads bare dates (2025-01-01) as date objects; widen them to midnight."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


def _as_utc(value: datetime | None) -> datetime | None:
    """Interpret naive timestamps as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# Metadata
# =============================================================================


class PolicyMetadata(_PolicyModel):
    """Informational metadata about a policy document."""

    name: str
    namespace: str = "default"
    version: str = "1"
    created_at: datetime | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)

    @field_validator("created_at", mode="before")
    @classmethod
    def widen_created_at(cls, v: Any) -> Any:
        return _date_to_datetime(v)

    @field_validator("created_at", mode="after")
    @classmethod
    def normalize_created_at(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


# =============================================================================
# Matching
# =============================================================================


class ResourceMatch(_PolicyModel):
    """Resource part of a match block.

    Attributes:
        type: Resource type name, or "*" / "Any" for every type.
        name: Informational; not evaluated.
        labels: Informational; not evaluated.
    """

    type: str = WILDCARD
    name: str = WILDCARD
    labels: dict[str, str] = Field(default_factory=dict)


class PrincipalMatch(_PolicyModel):
    """Principal part of a match block.

    Attributes:
        id: Exact principal id, if set.
        roles: Matches when the principal has ANY of these roles.
    """

    id: str | None = None
    roles: list[str] = Field(default_factory=list)


class MatchConfig(_PolicyModel):
    """Which requests a rule or exception applies to.

    Any mismatch means the rule is skipped (it never "matched").
    """

    resource: ResourceMatch = Field(default_factory=ResourceMatch)
    environment: str = WILDCARD
    principal: PrincipalMatch | None = None

    @property
    def resource_type(self) -> str:
        """Resource type this block matches."""
        return self.resource.type


# =============================================================================
# Conditions and mutations
# =============================================================================


class Condition(_PolicyModel):
    """A predicate over the request's resource payload.

    Supported ops: exists, equals, notEquals, in, notIn, matches, notMatches.
    Unsupported ops are accepted at parse time and evaluate to false.
    """

    op: str
    path: str
    value: Any = None


class Mutation(_PolicyModel):
    """A patch operation applied when a mutate rule fires.

    Supported ops: set, remove, add. Unsupported ops are accepted at parse
    time and recorded as violations when applied.
    """

    op: str
    path: str
    value: Any = None


class Remediation(_PolicyModel):
    """Guidance shown to the user when a rule denies."""

    hint: str | None = None
    url: str | None = None


# =============================================================================
# Rules and exceptions
# =============================================================================


class PolicyRule(_PolicyModel):
    """A single match / condition / effect unit.

    Attributes:
        id: Unique within the document.
        priority: Lower values are evaluated earlier.
        description: Human-readable description.
        enabled: Disabled rules are never evaluated.
        match: Request scoping.
        when: Conditions, all of which must hold.
        effect: Outcome when matched and conditions hold.
        message: Message carried by the decision.
        severity: Informational.
        mutations: Applied in order when effect is mutate.
        remediation: Remediation guidance for deny decisions.
    """

    id: str = Field(min_length=1)
    priority: int = 0
    description: str = ""
    enabled: bool = True
    match: MatchConfig = Field(default_factory=MatchConfig)
    when: list[Condition] = Field(default_factory=list)
    effect: Effect
    message: str = ""
    severity: str = "medium"
    mutations: list[Mutation] = Field(default_factory=list)
    remediation: Remediation | None = None

    @field_validator("effect", mode="before")
    @classmethod
    def lowercase_effect(cls, v: Any) -> Any:
        """Effects are case-insensitive in authored documents."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class PolicyException(_PolicyModel):
    """A time-bounded override that removes rules from consideration.

    Attributes:
        id: Exception identifier.
        rule_ids: Rules skipped while the exception is active.
        reason: Why the exception exists.
        expires_at: Inactive once this instant has passed (None = never expires).
        match: Requests the exception applies to.
    """

    id: str
    rule_ids: frozenset[str] = Field(default_factory=frozenset)
    reason: str = ""
    expires_at: datetime | None = None
    match: MatchConfig = Field(default_factory=MatchConfig)

    @field_validator("expires_at", mode="before")
    @classmethod
    def widen_expires_at(cls, v: Any) -> Any:
        return _date_to_datetime(v)

    @field_validator("expires_at", mode="after")
    @classmethod
    def normalize_expires_at(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        """Check whether the exception has expired at the given instant (naive = UTC)."""
        return self.expires_at is not None and self.expires_at <= _as_utc(now)


# =============================================================================
# Spec
# =============================================================================


class ExecutionConfig(_PolicyModel):
    """How rules are walked and how competing decisions are resolved.

    Attributes:
        order: Informational; rules are always walked in priority order.
        short_circuit: Stop after the first allow/deny decision.
        conflict_strategy: denyOverrides | allowOverrides | highestPriorityWins;
            anything else means the last decision wins.
    """

    order: str = "sequential"
    short_circuit: bool = False
    conflict_strategy: str = ""


class TargetConfig(_PolicyModel):
    """Declared scope of the policy (informational)."""

    resource_types: list[str] = Field(default_factory=list)
    environments: list[str] = Field(default_factory=list)


class AuditSink(_PolicyModel):
    """Declared audit destination (informational)."""

    type: str
    path: str | None = None
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class AuditConfig(_PolicyModel):
    """Declared audit settings (informational)."""

    log_decisions: bool = True
    retention_days: int = 365
    sinks: list[AuditSink] = Field(default_factory=list)


class PolicySpec(_PolicyModel):
    """Behavioral part of a policy document."""

    mode: str = ENFORCE_MODE
    default_effect: Effect = Effect.ALLOW
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    target: TargetConfig = Field(default_factory=TargetConfig)
    rules: list[PolicyRule] = Field(default_factory=list)
    exceptions: list[PolicyException] = Field(default_factory=list)
    audit: AuditConfig | None = None

    @field_validator("default_effect", mode="before")
    @classmethod
    def lowercase_default_effect(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("default_effect", mode="after")
    @classmethod
    def terminal_default_effect(cls, v: Effect) -> Effect:
        """Only allow and deny make sense when nothing matched."""
        if v not in (Effect.ALLOW, Effect.DENY):
            raise ValueError(f"defaultEffect must be 'allow' or 'deny', got '{v.value}'")
        return v

    @field_validator("mode", mode="before")
    @classmethod
    def lowercase_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def unique_rule_ids(self) -> Self:
        """Reject documents where two rules share an id."""
        ids = [rule.id for rule in self.rules]
        if len(ids) != len(set(ids)):
            duplicates = sorted({rule_id for rule_id in ids if ids.count(rule_id) > 1})
            raise ValueError(f"Duplicate rule IDs: {duplicates}")
        return self

    @property
    def is_enforcing(self) -> bool:
        """Whether denies should be raised to the caller."""
        return self.mode == ENFORCE_MODE


class PolicyDocument(_PolicyModel):
    """A complete, versioned policy document."""

    api_version: str = "v1"
    kind: str = "Policy"
    metadata: PolicyMetadata
    spec: PolicySpec

    @property
    def name(self) -> str:
        """Policy name from metadata."""
        return self.metadata.name

    @property
    def version(self) -> str:
        """Policy version from metadata."""
        return self.metadata.version

    @property
    def rule_count(self) -> int:
        """Number of rules in the document."""
        return len(self.spec.rules)
