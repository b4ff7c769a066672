"""grc-policy: declarative policy enforcement for GRC actions.

Given an ActionRequest (who, what, where, on which resource), the engine
decides whether the action is allowed, denied, audited, or allowed with a
rewritten payload, based on a versioned YAML policy document.

Example:
    config = EngineConfig.load_from_file(Path("grc-policy.json"))
    enforcer = build_enforcer(config)
    request = build_action_request("create", "Evidence", evidence, config=config)
    try:
        decision = await enforcer.enforce(request)
    except PolicyViolation as e:
        ...
"""

__version__ = "0.1.0"

from grc_policy.config import EngineConfig, build_enforcer, resolve_environment
from grc_policy.context import ActionRequest, build_action_request
from grc_policy.exceptions import PolicyViolation
from grc_policy.pdp import Decision, Effect, PolicyDocument, PolicyEnforcer
from grc_policy.store import FilePolicySource, InMemoryPolicySource, PolicyStore
from grc_policy.telemetry.audit import AuditLogger

__all__ = [
    "__version__",
    "ActionRequest",
    "AuditLogger",
    "Decision",
    "Effect",
    "EngineConfig",
    "FilePolicySource",
    "InMemoryPolicySource",
    "PolicyDocument",
    "PolicyEnforcer",
    "PolicyStore",
    "PolicyViolation",
    "build_action_request",
    "build_enforcer",
    "resolve_environment",
]
