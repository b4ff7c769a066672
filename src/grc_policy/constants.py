"""Application-wide constants for grc-policy.

Constants that define engine behavior.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    # Policy sources
    "DEFAULT_POLICY_NAME",
    "DEFAULT_POLICIES_DIR",
    "POLICY_FILE_SUFFIXES",
    "JSON_POLICY_SUFFIXES",
    # Matching
    "WILDCARD",
    "RESOURCE_TYPE_WILDCARDS",
    # Environment resolution
    "ENVIRONMENT_ENV_VAR",
    "DEFAULT_ENVIRONMENT",
    # Enforcement
    "ENFORCE_MODE",
    "DEFAULT_LOAD_TIMEOUT_SECONDS",
    "UNKNOWN_RULE_ID",
    "DEFAULT_VIOLATION_MESSAGE",
    "DEFAULT_REMEDIATION_HINT",
    # Logging
    "PACKAGE_LOGGER_NAME",
    "AUDIT_LOGGER_NAME",
    "DEFAULT_AUDIT_FILE",
]

APP_NAME = "grc-policy"

# =============================================================================
# Policy sources
# =============================================================================

DEFAULT_POLICY_NAME = "grc-baseline.yml"
DEFAULT_POLICIES_DIR = "etc/policies"

# Tried in order when a policy name is given without a suffix
POLICY_FILE_SUFFIXES: tuple[str, ...] = (".yml", ".yaml", ".json")
JSON_POLICY_SUFFIXES: frozenset[str] = frozenset({".json"})

# =============================================================================
# Matching
# =============================================================================

WILDCARD = "*"
# "Any" is what the baseline policies use for resource types
RESOURCE_TYPE_WILDCARDS: frozenset[str] = frozenset({WILDCARD, "Any"})

# =============================================================================
# Environment resolution
# =============================================================================

ENVIRONMENT_ENV_VAR = "GRC_ENVIRONMENT"
DEFAULT_ENVIRONMENT = "dev"

# =============================================================================
# Enforcement
# =============================================================================

# Only this mode raises on deny; other modes evaluate and audit only
ENFORCE_MODE = "enforce"

DEFAULT_LOAD_TIMEOUT_SECONDS = 10.0

UNKNOWN_RULE_ID = "UNKNOWN"
DEFAULT_VIOLATION_MESSAGE = "Policy violation"
DEFAULT_REMEDIATION_HINT = "Contact your administrator"

# =============================================================================
# Logging
# =============================================================================

# Parent of every module logger (logging.getLogger(__name__))
PACKAGE_LOGGER_NAME = "grc_policy"

# Audit trail; does not propagate to the package logger
AUDIT_LOGGER_NAME = "grc-policy.audit.decisions"
DEFAULT_AUDIT_FILE = "decisions.jsonl"
