"""Logging utilities - JSONL formatting and logger setup."""

from grc_policy.utils.logging.iso_formatter import ISO8601Formatter
from grc_policy.utils.logging.logger_setup import configure_logging, setup_jsonl_logger
from grc_policy.utils.logging.logging_helpers import serialize_audit_event

__all__ = [
    "ISO8601Formatter",
    "configure_logging",
    "serialize_audit_event",
    "setup_jsonl_logger",
]
