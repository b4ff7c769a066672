"""Logger setup utilities.

setup_jsonl_logger creates a named, non-propagating logger that writes JSONL
with ISO 8601 timestamps to a file. configure_logging sets up the
human-readable process log used by the engine's module loggers.
"""

from __future__ import annotations

__all__ = [
    "configure_logging",
    "setup_jsonl_logger",
]

import logging
import sys
from pathlib import Path

from grc_policy.constants import PACKAGE_LOGGER_NAME
from grc_policy.utils.logging.iso_formatter import ISO8601Formatter

_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _ensure_log_directory(log_file: Path) -> None:
    """Create the log directory.

    Raises:
        PermissionError: If unable to create the directory due to permissions.
        OSError: If directory creation fails for other reasons.
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(f"Cannot create log directory {log_file.parent}: {e}") from e
    except OSError as e:
        raise OSError(f"Failed to create log directory {log_file.parent}: {e}") from e


def setup_jsonl_logger(
    logger_name: str,
    log_file: Path,
    log_level: int = logging.INFO,
) -> logging.Logger:
    """Set up a logger that writes JSONL with ISO 8601 timestamps.

    Args:
        logger_name: Name for the logger (e.g., "grc-policy.audit.decisions")
        log_file: Path to the log file
        log_level: Logging level (default: INFO)

    Returns:
        logging.Logger: Configured logger instance

    Raises:
        PermissionError: If unable to create log directory due to permissions
        OSError: If directory creation fails for other reasons
    """
    _ensure_log_directory(log_file)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    logger.propagate = False  # Audit records stay out of the process log

    # Close and remove existing handlers to avoid duplicates on reconfiguration
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    return logger


def configure_logging(log_level: str | int = "INFO", log_file: Path | None = None) -> logging.Logger:
    """Configure the engine's process logger ("grc_policy").

    Module loggers (grc_policy.pdp.engine, grc_policy.store.policy_store, ...)
    propagate here. Output goes to stderr, or to log_file as JSONL.

    Args:
        log_level: Level name or number.
        log_file: Optional JSONL file instead of stderr.

    Returns:
        logging.Logger: The configured package logger.
    """
    level = logging.getLevelName(log_level.upper()) if isinstance(log_level, str) else log_level
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    handler: logging.Handler
    if log_file is not None:
        _ensure_log_directory(log_file)
        handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        handler.setFormatter(ISO8601Formatter())
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)

    return logger
