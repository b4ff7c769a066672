"""Decision logging for policy enforcement.

This module records every decision made by PolicyEnforcer.enforce().
Logs are written to <log_dir>/audit/decisions.jsonl.

Decision logs are ALWAYS enabled (not controlled by log_level). Logging
never raises: if the audit logger fails, the event goes to the system
logger and enforcement continues.
"""

from __future__ import annotations

__all__ = [
    "AuditLogger",
    "create_decision_logger",
]

import logging
from collections.abc import Sequence
from pathlib import Path

from grc_policy.constants import AUDIT_LOGGER_NAME
from grc_policy.context.request import ActionRequest
from grc_policy.pdp.decision import Decision
from grc_policy.telemetry.models.decision import DecisionEvent
from grc_policy.utils.logging.logger_setup import setup_jsonl_logger
from grc_policy.utils.logging.logging_helpers import serialize_audit_event


def create_decision_logger(log_path: Path) -> logging.Logger:
    """Create logger for decision events.

    Args:
        log_path: Path to decisions.jsonl file.

    Returns:
        Configured logger instance.
    """
    return setup_jsonl_logger(AUDIT_LOGGER_NAME, log_path, log_level=logging.INFO)


class AuditLogger:
    """Logs policy decision events to decisions.jsonl.

    If the primary logger fails, the event is logged to the system logger
    and the failure is swallowed so evaluation is never blocked.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        system_logger: logging.Logger | None = None,
    ) -> None:
        """Initialize decision audit logger.

        Args:
            logger: Primary logger for decision events. Defaults to the
                "grc-policy.audit.decisions" logger with whatever handlers
                the host application attached.
            system_logger: Fallback logger for audit failures.
        """
        self._logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)
        self._system_logger = system_logger or logging.getLogger(__name__)

    def log_decision(
        self,
        request: ActionRequest,
        decision: Decision,
        matched_rule_ids: Sequence[str],
    ) -> None:
        """Log a policy decision.

        Args:
            request: The evaluated request.
            decision: The final decision.
            matched_rule_ids: Rules whose match block held.
        """
        try:
            event = DecisionEvent(
                action=request.action,
                resource_type=request.resource_type,
                environment=request.environment,
                tenant_id=request.tenant_id,
                principal_id=request.principal_id,
                effect=decision.effect,
                matched_rule_id=decision.matched_rule_id,
                matched_rule_ids=list(matched_rule_ids),
                violations=list(decision.violations) or None,
                mutated=decision.mutated,
                policy_name=decision.policy_name,
                policy_version=decision.policy_version,
            )
            self._logger.info(serialize_audit_event(event, json_mode=True))
        except Exception as e:
            self._system_logger.error(
                "Failed to write decision audit event (%s %s -> %s): %s",
                request.action,
                request.resource_type,
                decision.effect.value,
                e,
            )
