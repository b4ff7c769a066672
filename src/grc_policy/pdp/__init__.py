"""Policy Decision Point (PDP) - Policy evaluation engine.

This module evaluates ActionRequests against policy documents to produce
decisions. Evaluation is stateless and synchronous; the only I/O in the
pipeline is PolicyStore.load() on a cache miss.

Structure:
    decision.py       - Effect enum, Decision model
    policy.py         - Policy document models (PolicyDocument, PolicyRule, ...)
    paths.py          - Dot-path resolution over tree values
    mutation.py       - Mutation application (set/remove/add)
    matcher.py        - Match blocks and condition operators
    engine.py         - PolicyEnforcer (evaluate / enforce)

Policy parsing is in utils/policy/policy_helpers.py.
"""

from grc_policy.pdp.decision import CandidateDecision, Decision, Effect
from grc_policy.pdp.engine import PolicyEnforcer, resolve_conflict
from grc_policy.pdp.mutation import apply_mutation, apply_mutations
from grc_policy.pdp.paths import exists, resolve, resolve_as
from grc_policy.pdp.policy import (
    Condition,
    ExecutionConfig,
    MatchConfig,
    Mutation,
    PolicyDocument,
    PolicyException,
    PolicyMetadata,
    PolicyRule,
    PolicySpec,
    PrincipalMatch,
    Remediation,
    ResourceMatch,
    TargetConfig,
)

__all__ = [
    # Decision
    "CandidateDecision",
    "Decision",
    "Effect",
    # Engine
    "PolicyEnforcer",
    "resolve_conflict",
    # Paths and mutations
    "apply_mutation",
    "apply_mutations",
    "exists",
    "resolve",
    "resolve_as",
    # Policy models
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
