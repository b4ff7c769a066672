"""Shared file utilities for grc-policy.

Provides common utilities used by config loading and the CLI:
- require_file_exists: FileNotFoundError with a consistent message
- load_validated_json: JSON parsing + Pydantic validation with readable errors
- load_validated_document: Same for YAML or JSON files
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from grc_policy.constants import JSON_POLICY_SUFFIXES

# Type variable for Pydantic models
T = TypeVar("T", bound=BaseModel)

__all__ = [
    "load_validated_document",
    "load_validated_json",
    "require_file_exists",
]


def require_file_exists(file_path: Path, file_type: str = "file") -> None:
    """Raise FileNotFoundError with helpful message if file doesn't exist.

    Args:
        file_path: Path to check.
        file_type: Description for error message (e.g., "configuration", "request").

    Raises:
        FileNotFoundError: If file doesn't exist.
    """
    if file_path.exists():
        return
    raise FileNotFoundError(f"{file_type.capitalize()} file not found at {file_path}.")


def _validate(data: Any, model_class: type[T], file_path: Path, file_type: str) -> T:
    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ValueError(f"Invalid {file_type} file {file_path}:\n" + "\n".join(errors)) from e


def load_validated_json(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
) -> T:
    """Load JSON file and validate against Pydantic model.

    Args:
        file_path: Path to JSON file.
        model_class: Pydantic model class to validate against.
        file_type: Description for error messages (e.g., "config", "request").

    Returns:
        Validated Pydantic model instance.

    Raises:
        ValueError: If JSON is invalid or validation fails.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e

    return _validate(data, model_class, file_path, file_type)


def load_validated_document(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
) -> T:
    """Load a YAML or JSON file (by suffix) and validate against a Pydantic model.

    Raises:
        ValueError: If the file is unreadable, malformed, or fails validation.
    """
    if file_path.suffix.lower() in JSON_POLICY_SUFFIXES:
        return load_validated_json(file_path, model_class, file_type)

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e

    return _validate(data, model_class, file_path, file_type)
