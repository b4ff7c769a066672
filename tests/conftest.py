"""Shared fixtures for grc-policy tests."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

import pytest

from grc_policy.context import ActionRequest
from grc_policy.pdp import PolicyDocument


# ============================================================================
# Constants
# ============================================================================

# Fixed evaluation instant; exception expiry in fixtures is relative to it
NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

BASELINE_POLICY: dict[str, Any] = {
    "apiVersion": "grc.policy/v1",
    "kind": "Policy",
    "metadata": {
        "name": "grc-baseline",
        "namespace": "default",
        "version": "1.0.0",
        "createdAt": "2025-01-01T00:00:00Z",
    },
    "spec": {
        "mode": "enforce",
        "defaultEffect": "allow",
        "execution": {
            "order": "sequential",
            "shortCircuit": True,
            "conflictStrategy": "denyOverrides",
        },
        "target": {"resourceTypes": ["Any"], "environments": ["dev", "staging", "prod"]},
        "rules": [
            {
                "id": "REQUIRE_DATA_CLASSIFICATION",
                "priority": 10,
                "enabled": True,
                "match": {"resource": {"type": "Any"}, "environment": "*"},
                "when": [
                    {
                        "op": "notMatches",
                        "path": "metadata.labels.dataClassification",
                        "value": "^(public|internal|confidential|restricted)$",
                    }
                ],
                "effect": "deny",
                "severity": "high",
                "message": "Missing/invalid metadata.labels.dataClassification. "
                "Allowed: public|internal|confidential|restricted.",
                "remediation": {
                    "hint": "Set metadata.labels.dataClassification to one of the allowed values."
                },
            },
            {
                "id": "REQUIRE_OWNER",
                "priority": 20,
                "enabled": True,
                "match": {"resource": {"type": "Any"}, "environment": "*"},
                "when": [{"op": "notMatches", "path": "metadata.labels.owner", "value": "^.{2,256}$"}],
                "effect": "deny",
                "message": "Missing/invalid metadata.labels.owner.",
                "remediation": {"hint": "Set metadata.labels.owner to a team or individual identifier."},
            },
            {
                "id": "PROD_RESTRICTED_MUST_HAVE_APPROVAL",
                "priority": 30,
                "enabled": True,
                "match": {"resource": {"type": "Any"}, "environment": "prod"},
                "when": [
                    {"op": "equals", "path": "metadata.labels.dataClassification", "value": "restricted"},
                    {"op": "notEquals", "path": "metadata.labels.approvedForProd", "value": "true"},
                ],
                "effect": "deny",
                "severity": "critical",
                "message": "Restricted data in prod requires metadata.labels.approvedForProd=true.",
                "remediation": {"hint": "Run the approval workflow and set approvedForProd=true."},
            },
        ],
        "exceptions": [
            {
                "id": "TEMP_EXC_DEV_SANDBOX",
                "ruleIds": ["PROD_RESTRICTED_MUST_HAVE_APPROVAL"],
                "reason": "Dev sandbox does not require prod approval controls.",
                "expiresAt": "2027-01-15T00:00:00Z",
                "match": {"resource": {"type": "Any"}, "environment": "dev"},
            }
        ],
    },
}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation instant."""
    return NOW


@pytest.fixture
def baseline_data() -> dict[str, Any]:
    """Raw baseline policy document (camelCase, as authored)."""
    return copy.deepcopy(BASELINE_POLICY)


@pytest.fixture
def baseline_policy(baseline_data: dict[str, Any]) -> PolicyDocument:
    """Parsed baseline policy."""
    return PolicyDocument.model_validate(baseline_data)


@pytest.fixture
def make_policy():
    """Factory fixture to build policy documents from rule dicts.

    Returns a function that wraps rules and exceptions in a minimal document.
    """

    def _make(
        rules: list[dict[str, Any]],
        *,
        exceptions: list[dict[str, Any]] | None = None,
        default_effect: str = "allow",
        short_circuit: bool = False,
        conflict_strategy: str = "",
        mode: str = "enforce",
    ) -> PolicyDocument:
        return PolicyDocument.model_validate(
            {
                "metadata": {"name": "test-policy", "version": "7"},
                "spec": {
                    "mode": mode,
                    "defaultEffect": default_effect,
                    "execution": {"shortCircuit": short_circuit, "conflictStrategy": conflict_strategy},
                    "rules": rules,
                    "exceptions": exceptions or [],
                },
            }
        )

    return _make


@pytest.fixture
def make_request():
    """Factory fixture to create ActionRequests for testing."""

    def _make(
        resource: Any = None,
        *,
        action: str = "create",
        environment: str = "prod",
        resource_type: str = "Evidence",
        principal_id: str | None = "user-123",
        principal_roles: tuple[str, ...] = ("EvidenceOfficer",),
        tenant_id: str | None = "tenant-1",
    ) -> ActionRequest:
        return ActionRequest(
            action=action,
            environment=environment,
            resource_type=resource_type,
            resource=resource if resource is not None else {},
            tenant_id=tenant_id,
            principal_id=principal_id,
            principal_roles=principal_roles,
        )

    return _make

