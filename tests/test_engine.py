"""Unit tests for PolicyEnforcer.evaluate() and conflict resolution.

evaluate() is synchronous and pure, so these tests need no store or event loop.
Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from datetime import datetime, timedelta

import pytest

from grc_policy.pdp import CandidateDecision, Effect, PolicyEnforcer, resolve_conflict
from grc_policy.pdp.engine import active_exceptions, ordered_rules
from grc_policy.store import InMemoryPolicySource, PolicyStore
from grc_policy.telemetry.audit import AuditLogger


def labelled(**labels):
    return {"title": "Test Evidence", "metadata": {"labels": dict(labels)}}


def rule(rule_id: str, effect: str, priority: int = 0, **extra) -> dict:
    return {"id": rule_id, "effect": effect, "priority": priority, **extra}


@pytest.fixture
def enforcer(now) -> PolicyEnforcer:
    """Enforcer with a fixed clock; evaluate() never touches its store."""
    return PolicyEnforcer(
        PolicyStore(InMemoryPolicySource()),
        AuditLogger(),
        "test-policy",
        clock=lambda: now,
    )


# ============================================================================
# Tests: Conflict resolution
# ============================================================================


class TestResolveConflict:
    """Tests for resolve_conflict()."""

    @pytest.fixture
    def allow_then_deny(self) -> list[CandidateDecision]:
        return [
            CandidateDecision(effect=Effect.ALLOW, rule_id="A"),
            CandidateDecision(effect=Effect.DENY, rule_id="D"),
        ]

    def test_deny_overrides(self, allow_then_deny):
        """Given [allow, deny] and denyOverrides, deny wins."""
        assert resolve_conflict("denyOverrides", allow_then_deny, Effect.ALLOW).effect == Effect.DENY

    def test_allow_overrides(self, allow_then_deny):
        """Given [allow, deny] and allowOverrides, allow wins."""
        assert resolve_conflict("allowOverrides", allow_then_deny, Effect.DENY).effect == Effect.ALLOW

    def test_highest_priority_wins(self, allow_then_deny):
        """Given highestPriorityWins, the first candidate wins."""
        assert resolve_conflict("highestPriorityWins", allow_then_deny, Effect.DENY).rule_id == "A"

    @pytest.mark.parametrize("strategy", ["", "firstMatch", "unknown"])
    def test_other_strategies_take_last(self, allow_then_deny, strategy):
        """Given any other strategy, the last candidate wins."""
        assert resolve_conflict(strategy, allow_then_deny, Effect.ALLOW).rule_id == "D"

    def test_strategy_is_case_insensitive(self, allow_then_deny):
        """Given mixed case, the strategy is still recognized."""
        assert resolve_conflict("DENYOVERRIDES", allow_then_deny, Effect.ALLOW).rule_id == "D"

    def test_deny_overrides_without_deny_takes_last(self):
        """Given denyOverrides and no deny, the last candidate wins."""
        candidates = [
            CandidateDecision(effect=Effect.AUDIT, rule_id="A1"),
            CandidateDecision(effect=Effect.MUTATE, rule_id="M1"),
        ]

        assert resolve_conflict("denyOverrides", candidates, Effect.ALLOW).rule_id == "M1"

    def test_no_candidates_uses_default(self):
        """Given no candidates, a rule-less default decision is returned."""
        winner = resolve_conflict("denyOverrides", [], Effect.DENY)

        assert winner.effect == Effect.DENY
        assert winner.rule_id is None


# ============================================================================
# Tests: Rule ordering and exceptions
# ============================================================================


class TestOrdering:
    """Tests for ordered_rules()."""

    def test_sorted_by_priority_with_stable_ties(self, make_policy):
        """Given mixed priorities, sorts ascending and keeps document order for ties."""
        # Arrange
        policy = make_policy(
            [rule("B", "allow", 20), rule("A", "allow", 10), rule("C", "allow", 20), rule("Z", "allow", 5)]
        )

        # Act & Assert
        assert [r.id for r in ordered_rules(policy)] == ["Z", "A", "B", "C"]

    def test_disabled_rules_are_dropped(self, make_policy):
        """Given a disabled rule, it is not evaluated."""
        policy = make_policy([rule("A", "deny", enabled=False), rule("B", "allow")])

        assert [r.id for r in ordered_rules(policy)] == ["B"]


class TestActiveExceptions:
    """Tests for active_exceptions()."""

    def test_filters_by_match_and_expiry(self, baseline_policy, make_request, now):
        """Given the dev sandbox exception, it only applies in dev before expiry."""
        assert [e.id for e in active_exceptions(baseline_policy, make_request(environment="dev"), now)] == [
            "TEMP_EXC_DEV_SANDBOX"
        ]
        assert active_exceptions(baseline_policy, make_request(environment="prod"), now) == []
        assert active_exceptions(baseline_policy, make_request(environment="dev"), now + timedelta(days=3650)) == []

    def test_naive_instant_is_treated_as_utc(self, baseline_policy, make_request, now):
        """Given a naive instant, expiry is checked without raising."""
        naive = now.replace(tzinfo=None)

        assert [e.id for e in active_exceptions(baseline_policy, make_request(environment="dev"), naive)] == [
            "TEMP_EXC_DEV_SANDBOX"
        ]


# ============================================================================
# Tests: evaluate()
# ============================================================================


class TestEvaluate:
    """Tests for the evaluation pass."""

    def test_priority_order_short_circuits_on_lowest(self, enforcer, make_policy, make_request):
        """Given priorities 30/10/20 and shortCircuit, the priority-10 deny wins."""
        # Arrange
        policy = make_policy(
            [
                rule("RULE_PRIORITY_30", "allow", 30, message="Priority 30"),
                rule("RULE_PRIORITY_10", "deny", 10, message="Priority 10"),
                rule("RULE_PRIORITY_20", "allow", 20, message="Priority 20"),
            ],
            short_circuit=True,
        )

        # Act
        decision = enforcer.evaluate(policy, make_request(environment="dev"))

        # Assert
        assert decision.effect == Effect.DENY
        assert decision.matched_rule_id == "RULE_PRIORITY_10"
        assert decision.matched_rule_ids == ("RULE_PRIORITY_10",)

    def test_determinism(self, enforcer, baseline_policy, make_request, now):
        """Given fixed inputs, 100 evaluations produce identical decisions."""
        # Arrange
        request = make_request(labelled(owner="x"), environment="staging")

        # Act
        decisions = [enforcer.evaluate(baseline_policy, request, now=now) for _ in range(100)]

        # Assert
        assert all(d == decisions[0] for d in decisions)
        assert decisions[0].matched_rule_id == "REQUIRE_DATA_CLASSIFICATION"

    def test_default_effect_when_nothing_fires(self, enforcer, make_policy, make_request):
        """Given no firing rule, the default effect applies with no rule id."""
        # Arrange
        policy = make_policy(
            [rule("R", "allow", when=[{"op": "exists", "path": "missing"}])],
            default_effect="deny",
        )

        # Act
        decision = enforcer.evaluate(policy, make_request({"title": "x"}))

        # Assert
        assert decision.effect == Effect.DENY
        assert decision.matched_rule_id is None
        assert decision.remediation_hint is None
        assert decision.matched_rule_ids == ("R",)

    def test_matched_rule_ids_include_losers(self, enforcer, make_policy, make_request):
        """Given several firing rules, all are listed while one wins."""
        # Arrange
        policy = make_policy(
            [rule("A", "audit", 1), rule("B", "deny", 2), rule("C", "allow", 3)],
            conflict_strategy="denyOverrides",
        )

        # Act
        decision = enforcer.evaluate(policy, make_request())

        # Assert
        assert decision.effect == Effect.DENY
        assert decision.matched_rule_id == "B"
        assert decision.matched_rule_ids == ("A", "B", "C")

    def test_non_matching_rules_are_not_listed(self, enforcer, make_policy, make_request):
        """Given rules for other types or environments, they are not recorded."""
        policy = make_policy(
            [
                rule("RISK_ONLY", "deny", match={"resource": {"type": "Risk"}}),
                rule("PROD_ONLY", "deny", match={"environment": "prod"}),
            ]
        )

        decision = enforcer.evaluate(policy, make_request(environment="dev"))

        assert decision.effect == Effect.ALLOW
        assert decision.matched_rule_ids == ()

    def test_remediation_hint_on_rule_deny(self, enforcer, baseline_policy, make_request, now):
        """Given a deny from a rule, its remediation hint is attached."""
        decision = enforcer.evaluate(baseline_policy, make_request(labelled(owner="team-x")), now=now)

        assert decision.remediation_hint == "Set metadata.labels.dataClassification to one of the allowed values."
        assert "dataClassification" in decision.message

    def test_no_remediation_hint_on_allow(self, enforcer, make_policy, make_request):
        """Given an allow from a rule with remediation, no hint is attached."""
        policy = make_policy([rule("A", "allow", remediation={"hint": "unused"})])

        assert enforcer.evaluate(policy, make_request()).remediation_hint is None

    def test_policy_identity_is_recorded(self, enforcer, make_policy, make_request):
        """Given a policy, the decision names it."""
        decision = enforcer.evaluate(make_policy([]), make_request())

        assert decision.policy_name == "test-policy"
        assert decision.policy_version == "7"


class TestEvaluateBaseline:
    """Baseline policy scenarios."""

    def test_missing_classification_denied(self, enforcer, baseline_policy, make_request, now):
        """Given no dataClassification label, denied by REQUIRE_DATA_CLASSIFICATION."""
        decision = enforcer.evaluate(baseline_policy, make_request(labelled(owner="test-user")), now=now)

        assert decision.effect == Effect.DENY
        assert decision.matched_rule_id == "REQUIRE_DATA_CLASSIFICATION"

    def test_missing_owner_denied(self, enforcer, baseline_policy, make_request, now):
        """Given a classification but no owner, denied by REQUIRE_OWNER."""
        decision = enforcer.evaluate(
            baseline_policy, make_request(labelled(dataClassification="internal")), now=now
        )

        assert decision.matched_rule_id == "REQUIRE_OWNER"
        assert "owner" in decision.message

    def test_compliant_resource_allowed(self, enforcer, baseline_policy, make_request, now):
        """Given classification and owner, allowed by default."""
        decision = enforcer.evaluate(
            baseline_policy, make_request(labelled(dataClassification="internal", owner="team-x")), now=now
        )

        assert decision.effect == Effect.ALLOW
        assert decision.matched_rule_id is None

    def test_restricted_in_prod_needs_approval(self, enforcer, baseline_policy, make_request, now):
        """Given restricted data in prod without approval, denied."""
        resource = labelled(dataClassification="restricted", owner="team-x")

        decision = enforcer.evaluate(baseline_policy, make_request(resource), now=now)

        assert decision.matched_rule_id == "PROD_RESTRICTED_MUST_HAVE_APPROVAL"
        assert "approvedForProd" in decision.message

    def test_restricted_in_prod_with_approval_allowed(self, enforcer, baseline_policy, make_request, now):
        """Given restricted data in prod with approvedForProd=true, allowed."""
        resource = labelled(dataClassification="restricted", owner="team-x", approvedForProd="true")

        assert enforcer.evaluate(baseline_policy, make_request(resource), now=now).effect == Effect.ALLOW

    def test_exception_bypasses_rule_in_dev(self, enforcer, baseline_policy, make_request, now):
        """Given an active exception, the excepted rule is skipped and not listed."""
        # Arrange
        resource = labelled(dataClassification="restricted", owner="team-x")

        # Act
        decision = enforcer.evaluate(baseline_policy, make_request(resource, environment="dev"), now=now)

        # Assert
        assert decision.effect == Effect.ALLOW
        assert "PROD_RESTRICTED_MUST_HAVE_APPROVAL" not in decision.matched_rule_ids

    def test_expired_exception_is_inactive(self, enforcer, make_policy, make_request, now):
        """Given an exception that has expired, the rule fires normally."""
        # Arrange
        policy = make_policy(
            [rule("R", "deny")],
            exceptions=[{"id": "E", "ruleIds": ["R"], "expiresAt": (now - timedelta(days=1)).isoformat()}],
        )

        # Act
        decision = enforcer.evaluate(policy, make_request(), now=now)

        # Assert
        assert decision.effect == Effect.DENY
        assert decision.matched_rule_id == "R"

    def test_exception_bypass_falls_through_to_next_rule(self, enforcer, make_policy, make_request, now):
        """Given an excepted deny, the next applicable rule decides."""
        policy = make_policy(
            [rule("R", "deny", 1, match={"environment": "prod"}), rule("NEXT", "audit", 2)],
            exceptions=[{"id": "E", "ruleIds": ["R"], "match": {"environment": "prod"}}],
        )

        decision = enforcer.evaluate(policy, make_request(environment="prod"), now=now)

        assert decision.effect == Effect.AUDIT
        assert decision.matched_rule_ids == ("NEXT",)

    def test_clock_is_used_without_now(self, make_policy, make_request, now):
        """Given no explicit now, the enforcer clock decides exception expiry."""
        # Arrange
        policy = make_policy(
            [rule("R", "deny")],
            exceptions=[{"id": "E", "ruleIds": ["R"], "expiresAt": (now + timedelta(days=1)).isoformat()}],
        )

        def enforcer_at(instant):
            return PolicyEnforcer(
                PolicyStore(InMemoryPolicySource()), AuditLogger(), "test-policy", clock=lambda: instant
            )

        # Act
        before = enforcer_at(now).evaluate(policy, make_request())
        after = enforcer_at(now + timedelta(days=2)).evaluate(policy, make_request())

        # Assert
        assert before.effect == Effect.ALLOW
        assert after.effect == Effect.DENY

    def test_naive_now_is_treated_as_utc(self, enforcer, make_policy, make_request):
        """Given a naive now, exception expiry compares it as UTC."""
        # Arrange
        policy = make_policy(
            [rule("R", "deny")],
            exceptions=[{"id": "E", "ruleIds": ["R"], "expiresAt": "2030-01-01T00:00:00Z"}],
        )

        # Act
        before = enforcer.evaluate(policy, make_request(), now=datetime(2025, 1, 1))
        at_expiry = enforcer.evaluate(policy, make_request(), now=datetime(2030, 1, 1))

        # Assert
        assert before.effect == Effect.ALLOW
        assert at_expiry.effect == Effect.DENY


class TestEvaluateMutations:
    """Tests for mutate rules."""

    def test_mutations_are_applied(self, enforcer, make_policy, make_request):
        """Given a mutate rule, the decision carries the rewritten resource."""
        # Arrange
        policy = make_policy(
            [
                rule(
                    "DEFAULT_OWNER",
                    "mutate",
                    mutations=[{"op": "set", "path": "metadata.labels.owner", "value": "grc-team"}],
                )
            ]
        )
        request = make_request({"title": "x"})

        # Act
        decision = enforcer.evaluate(policy, request)

        # Assert
        assert decision.effect == Effect.MUTATE
        assert decision.mutated is True
        assert decision.mutated_resource == {"title": "x", "metadata": {"labels": {"owner": "grc-team"}}}
        assert request.resource == {"title": "x"}

    def test_no_mutated_resource_without_mutate(self, enforcer, make_policy, make_request):
        """Given no mutate rule fired, mutated_resource is absent."""
        decision = enforcer.evaluate(make_policy([rule("A", "allow")]), make_request({"title": "x"}))

        assert decision.mutated is False
        assert decision.mutated_resource is None

    def test_later_conditions_see_mutated_resource(self, enforcer, make_policy, make_request):
        """Given a mutate rule, later rules evaluate against the mutated payload."""
        # Arrange
        policy = make_policy(
            [
                rule(
                    "CLASSIFY",
                    "mutate",
                    1,
                    mutations=[{"op": "set", "path": "classification", "value": "internal"}],
                ),
                rule("AUDIT_INTERNAL", "audit", 2, when=[{"op": "equals", "path": "classification", "value": "internal"}]),
            ]
        )

        # Act
        decision = enforcer.evaluate(policy, make_request({}))

        # Assert
        assert decision.matched_rule_ids == ("CLASSIFY", "AUDIT_INTERNAL")
        assert decision.matched_rule_id == "AUDIT_INTERNAL"
        assert decision.mutated_resource == {"classification": "internal"}

    def test_mutate_rules_chain(self, enforcer, make_policy, make_request):
        """Given two mutate rules, both sets of mutations accumulate."""
        policy = make_policy(
            [
                rule("M1", "mutate", 1, mutations=[{"op": "set", "path": "a", "value": 1}]),
                rule("M2", "mutate", 2, mutations=[{"op": "set", "path": "b", "value": 2}]),
            ]
        )

        decision = enforcer.evaluate(policy, make_request({}))

        assert decision.mutated_resource == {"a": 1, "b": 2}

    def test_mutation_failures_become_violations(self, enforcer, make_policy, make_request):
        """Given a failing mutation, it is recorded and evaluation continues."""
        # Arrange
        policy = make_policy(
            [
                rule(
                    "BROKEN",
                    "mutate",
                    mutations=[
                        {"op": "set", "path": "title.sub", "value": 1},
                        {"op": "set", "path": "fixed", "value": True},
                    ],
                )
            ]
        )

        # Act
        decision = enforcer.evaluate(policy, make_request({"title": "scalar"}))

        # Assert
        assert decision.effect == Effect.MUTATE
        assert len(decision.violations) == 1
        assert decision.violations[0].startswith("Mutation failed: set on title.sub")
        assert decision.mutated_resource == {"title": "scalar", "fixed": True}

    def test_short_circuit_ignores_mutate(self, enforcer, make_policy, make_request):
        """Given shortCircuit, mutate and audit rules do not stop evaluation."""
        policy = make_policy(
            [
                rule("M", "mutate", 1, mutations=[{"op": "set", "path": "a", "value": 1}]),
                rule("D", "deny", 2),
                rule("NEVER", "allow", 3),
            ],
            short_circuit=True,
        )

        decision = enforcer.evaluate(policy, make_request({}))

        assert decision.matched_rule_ids == ("M", "D")
        assert decision.effect == Effect.DENY
        assert decision.mutated is True
