"""Effects and decisions produced by policy evaluation.

Effect is what a rule (or the policy default) says should happen.
Decision is the single, final outcome the enforcer hands back to callers.
"""

from __future__ import annotations

__all__ = [
    "CandidateDecision",
    "Decision",
    "Effect",
]

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Effect(str, Enum):
    """Outcome of a rule or of the whole decision.

    Inherits from str for easy serialization and comparison.

    Attributes:
        ALLOW: Action may proceed.
        DENY: Action must be aborted.
        AUDIT: Action may proceed; the match is recorded.
        MUTATE: Action may proceed with a rewritten resource payload.
    """

    ALLOW = "allow"
    DENY = "deny"
    AUDIT = "audit"
    MUTATE = "mutate"

    @property
    def is_terminal(self) -> bool:
        """Whether this effect stops evaluation when short-circuiting."""
        return self in (Effect.ALLOW, Effect.DENY)


@dataclass(slots=True)
class CandidateDecision:
    """Decision produced by one rule during a single evaluation pass.

    Attributes:
        effect: The rule's effect.
        rule_id: The rule that produced it.
        message: The rule's message.
        mutated_resource: Working resource after this rule's mutations (mutate only).
    """

    effect: Effect
    rule_id: str | None = None
    message: str | None = None
    mutated_resource: Any = None


class Decision(BaseModel):
    """Final outcome of evaluating a request against a policy.

    Attributes:
        effect: Resolved effect.
        matched_rule_id: Rule that produced the final effect (None = default effect).
        message: Message of the winning rule.
        remediation_hint: Winning rule's remediation hint (deny decisions only).
        mutated_resource: Rewritten payload; present only if a mutate rule fired.
        mutated: Whether a mutate rule fired (mutated_resource may legitimately be None).
        matched_rule_ids: Every rule whose match block held, win or lose.
        violations: Non-fatal mutation failures.
        policy_name: Name of the evaluated policy.
        policy_version: Version of the evaluated policy.
    """

    effect: Effect
    matched_rule_id: str | None = None
    message: str | None = None
    remediation_hint: str | None = None
    mutated_resource: Any = None
    mutated: bool = False
    matched_rule_ids: tuple[str, ...] = ()
    violations: tuple[str, ...] = ()
    policy_name: str | None = None
    policy_version: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_denied(self) -> bool:
        """Whether the caller must abort the action."""
        return self.effect == Effect.DENY

    @classmethod
    def default(
        cls,
        effect: Effect,
        *,
        policy_name: str | None = None,
        policy_version: str | None = None,
    ) -> Decision:
        """Decision used when no rule produced a candidate."""
        return cls(effect=effect, policy_name=policy_name, policy_version=policy_version)

