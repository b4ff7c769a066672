"""Telemetry event models."""

from grc_policy.telemetry.models.decision import DecisionEvent

__all__ = ["DecisionEvent"]
