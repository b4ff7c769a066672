"""JSONL log formatting shared by the decision trail and the system log.

Two record shapes reach this formatter:
- Audit records: the message is a dict built from DecisionEvent; its fields
  are written as-is after the timestamp.
- Diagnostics from grc_policy.* module loggers: %-style messages, rendered
  with their args and tagged with level and logger name. Tracebacks from
  logger.exception() are kept in an "exception" field.
"""

from __future__ import annotations

__all__ = ["ISO8601Formatter"]

import json
import logging
from datetime import datetime, timezone
from typing import Any


class ISO8601Formatter(logging.Formatter):
    """Writes one JSON object per record, starting with a UTC "time" field.

    Format: YYYY-MM-DDTHH:MM:SS.sssZ
    Example: 2026-01-15T12:00:00.000Z
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        log_data: dict[str, Any]
        if isinstance(record.msg, dict):
            log_data = record.msg
        else:
            log_data = {
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if record.exc_info:
                log_data["exception"] = self.formatException(record.exc_info)

        # Values such as datetimes or enums fall back to str()
        return json.dumps({"time": timestamp, **log_data}, default=str)
