"""Policy enforcer - evaluate ActionRequests against policy documents.

This module provides the PolicyEnforcer class that evaluates requests
against a policy to produce a single ALLOW/DENY/AUDIT/MUTATE decision.

Evaluation flow (single deterministic pass):
1. Collect active exceptions (not expired, match block matches the request)
2. Enabled rules, stably sorted by priority (ties keep document order)
3. For each rule:
   a. Skip entirely if an active exception lists it
   b. Skip if its match block does not apply
   c. Record it as matched
   d. Skip if any condition fails (AND logic)
   e. Add a candidate decision
   f. Mutate rules: apply mutations to the working resource (failures -> violations)
   g. Short-circuit after an allow/deny when configured
4. Resolve conflicts between candidates (default effect if none)
5. Deny from a rule: attach the rule's remediation hint

Conflict strategies:
- denyOverrides:       first deny, else the last candidate
- allowOverrides:      first allow, else the last candidate
- highestPriorityWins: first candidate (candidates are in priority order)
- anything else:       last candidate

Design principles:
1. evaluate() is a pure function of (policy, request, now) - no I/O, no locking
2. Exceptions remove rules from consideration, never change their meaning
3. Internal failures are absorbed; only PolicyViolation reaches the caller
4. A missing policy allows the action (fail-open at the store level)
"""

from __future__ import annotations

__all__ = [
    "PolicyEnforcer",
    "active_exceptions",
    "ordered_rules",
    "resolve_conflict",
]

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from grc_policy.context.request import ActionRequest
from grc_policy.exceptions import PolicyViolation
from grc_policy.pdp.decision import CandidateDecision, Decision, Effect
from grc_policy.pdp.matcher import evaluate_conditions, match_request
from grc_policy.pdp.mutation import apply_mutations
from grc_policy.pdp.policy import PolicyDocument, PolicyException, PolicyRule

if TYPE_CHECKING:
    from grc_policy.store.policy_store import PolicyStore
    from grc_policy.telemetry.audit.decision_logger import AuditLogger

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def active_exceptions(
    policy: PolicyDocument,
    request: ActionRequest,
    now: datetime,
) -> list[PolicyException]:
    """Get exceptions that are unexpired and apply to the request."""
    return [
        exception
        for exception in policy.spec.exceptions
        if not exception.is_expired(now) and match_request(exception.match, request)
    ]


def ordered_rules(policy: PolicyDocument) -> list[PolicyRule]:
    """Get enabled rules in evaluation order.

    sorted() is stable, so rules with equal priority keep document order.
    """
    return sorted((rule for rule in policy.spec.rules if rule.enabled), key=lambda rule: rule.priority)


def resolve_conflict(
    strategy: str,
    candidates: Sequence[CandidateDecision],
    default_effect: Effect,
) -> CandidateDecision:
    """Pick the winning candidate according to the conflict strategy.

    Args:
        strategy: Conflict strategy name (case-insensitive).
        candidates: Candidate decisions in evaluation order.
        default_effect: Effect used when there are no candidates.

    Returns:
        The winning candidate, or a rule-less candidate carrying the default effect.
    """
    if not candidates:
        return CandidateDecision(effect=default_effect)

    normalized = strategy.strip().lower()
    if normalized == "denyoverrides":
        return next((c for c in candidates if c.effect == Effect.DENY), candidates[-1])
    if normalized == "allowoverrides":
        return next((c for c in candidates if c.effect == Effect.ALLOW), candidates[-1])
    if normalized == "highestprioritywins":
        return candidates[0]
    return candidates[-1]


class PolicyEnforcer:
    """Policy decision engine.

    evaluate() is synchronous and CPU-bound, safe to call concurrently.
    enforce() loads the configured policy from the store (the only awaited
    step), evaluates, audits, and raises PolicyViolation on deny.

    Attributes:
        policy_name: Logical name of the policy loaded by enforce().
    """

    def __init__(
        self,
        store: "PolicyStore",
        audit_logger: "AuditLogger",
        policy_name: str,
        *,
        clock: Clock | None = None,
        load_timeout: float | None = None,
    ) -> None:
        """Initialize the enforcer.

        Args:
            store: Policy store shared by the process.
            audit_logger: Records every decision made by enforce().
            policy_name: Policy loaded by enforce().
            clock: Source of "now" for exception expiry (UTC).
            load_timeout: Seconds to wait for the store before treating the
                policy as missing. None waits indefinitely.
        """
        self._store = store
        self._audit_logger = audit_logger
        self.policy_name = policy_name
        self._clock = clock or _utc_now
        self._load_timeout = load_timeout

    def evaluate(
        self,
        policy: PolicyDocument,
        request: ActionRequest,
        *,
        now: datetime | None = None,
    ) -> Decision:
        """Evaluate a request against a policy.

        Args:
            policy: Parsed policy document.
            request: The action request.
            now: Instant used for exception expiry; defaults to the clock.
                Naive values are interpreted as UTC.

        Returns:
            The final decision.
        """
        now = now or self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        exceptions = active_exceptions(policy, request, now)
        excepted_ids = frozenset().union(*(exception.rule_ids for exception in exceptions))

        matched_rule_ids: list[str] = []
        violations: list[str] = []
        candidates: list[CandidateDecision] = []
        working_resource = request.resource
        mutated = False

        for rule in ordered_rules(policy):
            if rule.id in excepted_ids:
                logger.debug("Rule %s skipped due to exception", rule.id)
                continue

            if not match_request(rule.match, request):
                continue

            matched_rule_ids.append(rule.id)

            if not evaluate_conditions(rule.when, working_resource):
                continue

            candidate = CandidateDecision(effect=rule.effect, rule_id=rule.id, message=rule.message)
            candidates.append(candidate)

            if rule.effect == Effect.MUTATE and rule.mutations:
                working_resource, failures = apply_mutations(working_resource, rule.mutations)
                for failure in failures:
                    logger.error("Rule %s: %s", rule.id, failure)
                violations.extend(failures)
                candidate.mutated_resource = working_resource
                mutated = True

            if policy.spec.execution.short_circuit and rule.effect.is_terminal:
                break

        winner = resolve_conflict(
            policy.spec.execution.conflict_strategy,
            candidates,
            policy.spec.default_effect,
        )

        remediation_hint: str | None = None
        if winner.effect == Effect.DENY and winner.rule_id is not None:
            rule = next(r for r in policy.spec.rules if r.id == winner.rule_id)
            remediation_hint = rule.remediation.hint if rule.remediation else None

        return Decision(
            effect=winner.effect,
            matched_rule_id=winner.rule_id,
            message=winner.message,
            remediation_hint=remediation_hint,
            mutated_resource=working_resource if mutated else None,
            mutated=mutated,
            matched_rule_ids=tuple(matched_rule_ids),
            violations=tuple(violations),
            policy_name=policy.name,
            policy_version=policy.version,
        )

    async def load_policy(self) -> PolicyDocument | None:
        """Load the configured policy, treating a timeout as a missing policy."""
        try:
            if self._load_timeout is None:
                return await self._store.load(self.policy_name)
            return await asyncio.wait_for(self._store.load(self.policy_name), self._load_timeout)
        except TimeoutError:
            logger.warning(
                "Timed out after %.1fs loading policy %s", self._load_timeout, self.policy_name
            )
            return None

    async def enforce(self, request: ActionRequest, *, now: datetime | None = None) -> Decision:
        """Evaluate a request against the configured policy and enforce the result.

        Args:
            request: The action request.
            now: Instant used for exception expiry; defaults to the clock.

        Returns:
            The decision. Callers must persist decision.mutated_resource
            instead of the original payload when decision.mutated is True.

        Raises:
            PolicyViolation: If the final effect is deny and the policy is enforcing.
        """
        policy = await self.load_policy()
        if policy is None:
            logger.warning("Policy %s not found, defaulting to allow", self.policy_name)
            return Decision.default(Effect.ALLOW, policy_name=self.policy_name)

        decision = self.evaluate(policy, request, now=now)
        self._audit_logger.log_decision(request, decision, list(decision.matched_rule_ids))

        if decision.effect == Effect.DENY:
            if not policy.spec.is_enforcing:
                logger.warning(
                    "Policy %s in %s mode: would deny %s %s (rule %s)",
                    policy.name,
                    policy.spec.mode,
                    request.action,
                    request.resource_type,
                    decision.matched_rule_id,
                )
                return decision
            raise PolicyViolation(
                decision.matched_rule_id,
                decision.message,
                decision.remediation_hint,
                list(decision.violations),
            )

        if decision.mutated:
            logger.info(
                "Mutations applied to %s by policy %s", request.resource_type, policy.name
            )

        return decision
