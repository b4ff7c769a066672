"""Telemetry - audit logging and event models.

Structure:
    audit/decision_logger.py  - AuditLogger, create_decision_logger
    models/decision.py        - DecisionEvent
"""

__all__: list[str] = []
