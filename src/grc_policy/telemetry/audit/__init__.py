"""Audit logging - decision trail."""

from grc_policy.telemetry.audit.decision_logger import AuditLogger, create_decision_logger

__all__ = [
    "AuditLogger",
    "create_decision_logger",
]
