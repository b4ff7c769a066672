"""Custom exceptions for grc-policy.

This module contains all custom exceptions used throughout the package.
Exceptions are organized into two categories:

Boundary Errors (surfaced to the calling application):
    - PolicyViolation: Final resolved effect was deny

Internal Errors (absorbed by the engine, never raised to callers):
    - PolicyEngineError: Base for engine-internal failures
    - PolicyNotFoundError: Backing source has no document for a name
    - PolicyParseError: Document could not be decoded or validated
    - ConditionEvaluationError: Condition could not be evaluated (-> false)
    - MutationApplicationError: Mutation could not be applied (-> violation)

Usage:
    from grc_policy.exceptions import PolicyViolation
"""

from __future__ import annotations

__all__ = [
    "ConditionEvaluationError",
    "ConfigurationError",
    "MutationApplicationError",
    "PolicyEngineError",
    "PolicyNotFoundError",
    "PolicyParseError",
    "PolicyViolation",
]

from typing import Any

from grc_policy.constants import (
    DEFAULT_REMEDIATION_HINT,
    DEFAULT_VIOLATION_MESSAGE,
    UNKNOWN_RULE_ID,
)

# =============================================================================
# Boundary Errors (caller translates into a user-facing error)
# =============================================================================

# Error code the calling web/API layer can map to an HTTP 4xx response
POLICY_VIOLATION_CODE = "Grc:PolicyViolation"


class PolicyViolation(Exception):
    """Raised when an action is denied by policy.

    This is the only error that crosses the engine boundary. The calling
    application is expected to abort the operation and translate this into
    a user-facing error.

    Attributes:
        code: Stable error code for API responses.
        rule_id: Rule that produced the deny, or "UNKNOWN" for the default effect.
        message: Human-readable denial reason.
        remediation_hint: What the user can do to comply.
        violations: Non-fatal mutation failures recorded during evaluation.
    """

    code: str = POLICY_VIOLATION_CODE

    def __init__(
        self,
        rule_id: str | None,
        message: str | None = None,
        remediation_hint: str | None = None,
        violations: list[str] | None = None,
    ) -> None:
        """Initialize PolicyViolation.

        Args:
            rule_id: Rule that produced the deny (None for default effect).
            message: Denial reason from the rule.
            remediation_hint: Remediation hint from the rule.
            violations: Mutation failures recorded during evaluation.
        """
        self.rule_id = rule_id or UNKNOWN_RULE_ID
        self.message = message or DEFAULT_VIOLATION_MESSAGE
        self.remediation_hint = remediation_hint or DEFAULT_REMEDIATION_HINT
        self.violations = list(violations or [])
        super().__init__(self.message)

    def to_error_data(self) -> dict[str, Any]:
        """Build structured data for an API error response."""
        data: dict[str, Any] = {
            "code": self.code,
            "rule_id": self.rule_id,
            "message": self.message,
            "remediation_hint": self.remediation_hint,
        }
        if self.violations:
            data["violations"] = self.violations
        return data

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        parts = [f"PolicyViolation(rule_id={self.rule_id!r}, message={self.message!r}"]
        if self.violations:
            parts.append(f", violations={self.violations!r}")
        parts.append(")")
        return "".join(parts)

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return f"[{self.rule_id}] {self.message}"


# =============================================================================
# Internal Errors (converted to log entries or violations by the engine)
# =============================================================================


class PolicyEngineError(Exception):
    """Base exception for engine-internal failures.

    None of these cross the engine boundary: the store turns load failures
    into "no policy", conditions turn into false, mutations into violations.
    """


class PolicyNotFoundError(PolicyEngineError):
    """No policy document exists for the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Policy not found: {name}")


class PolicyParseError(PolicyEngineError):
    """Policy document is malformed (invalid YAML/JSON or schema)."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        super().__init__(message)


class ConditionEvaluationError(PolicyEngineError):
    """A condition could not be evaluated.

    Raised for unsupported operators and invalid condition values.
    The matcher converts it to a false condition result.
    """


class MutationApplicationError(PolicyEngineError):
    """A mutation could not be applied to a resource.

    Raised when navigation fails (missing array index, scalar where a
    container is expected) or the operation is not supported.

    Attributes:
        op: The mutation operation.
        path: The mutation path.
    """

    def __init__(self, message: str, *, op: str | None = None, path: str | None = None) -> None:
        self.op = op
        self.path = path
        super().__init__(message)


class ConfigurationError(Exception):
    """Engine configuration is invalid or incomplete.

    Raised when:
    - Config file does not exist
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    """
