"""Policy document parsing and file helpers.

This module turns raw policy content (YAML/JSON text or bytes, or decoded mappings)
into validated PolicyDocument instances.

Features:
- YAML (safe loader) for .yml/.yaml and unknown suffixes, json for .json
- Detailed validation error messages
- Logical policy names derived from file paths
- SHA256 checksum for change detection
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path, PurePath
from typing import Any

import yaml
from pydantic import ValidationError

from grc_policy.constants import JSON_POLICY_SUFFIXES, POLICY_FILE_SUFFIXES
from grc_policy.exceptions import PolicyParseError
from grc_policy.pdp.policy import PolicyDocument

__all__ = [
    "compute_policy_checksum",
    "format_for_path",
    "format_validation_errors",
    "load_policy_file",
    "parse_policy_document",
    "policy_name_from_path",
]


def policy_name_from_path(path: str | PurePath) -> str:
    """Derive the logical policy name used as the cache key.

    Directory parts and known policy suffixes are dropped:
    "etc/policies/grc-baseline.yml" -> "grc-baseline".

    Args:
        path: Policy name or path.

    Returns:
        Logical policy name.
    """
    pure = PurePath(path)
    if pure.suffix.lower() in POLICY_FILE_SUFFIXES:
        return pure.stem
    return pure.name


def format_validation_errors(error: ValidationError) -> str:
    """Render pydantic validation errors as an indented list."""
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)


def _decode(content: str, fmt: str, source: str) -> Any:
    if fmt == "json":
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise PolicyParseError(f"Invalid JSON in policy {source}: {e}", source=source) from e
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyParseError(f"Invalid YAML in policy {source}: {e}", source=source) from e


def parse_policy_document(
    raw: str | bytes | Mapping[str, Any],
    *,
    fmt: str = "yaml",
    source: str = "<memory>",
) -> PolicyDocument:
    """Parse raw policy content into a validated PolicyDocument.

    Args:
        raw: YAML/JSON text, bytes, or an already decoded mapping.
        fmt: "yaml" or "json"; ignored for mappings.
        source: Where the content came from, for error messages.

    Returns:
        Validated, frozen PolicyDocument.

    Raises:
        PolicyParseError: If the content cannot be decoded or fails validation.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PolicyParseError(f"Policy {source} is not valid UTF-8: {e}", source=source) from e

    data = _decode(raw, fmt, source) if isinstance(raw, str) else raw

    if not isinstance(data, Mapping):
        raise PolicyParseError(
            f"Policy {source} must be a mapping at the top level, got {type(data).__name__}",
            source=source,
        )

    try:
        return PolicyDocument.model_validate(dict(data))
    except ValidationError as e:
        raise PolicyParseError(
            f"Invalid policy document in {source}:\n{format_validation_errors(e)}",
            source=source,
        ) from e


def format_for_path(path: PurePath) -> str:
    """Pick the decoder for a policy file from its suffix."""
    return "json" if path.suffix.lower() in JSON_POLICY_SUFFIXES else "yaml"


def load_policy_file(path: Path) -> PolicyDocument:
    """Load and validate a policy document from a file.

    Args:
        path: Policy file (.yml, .yaml or .json).

    Returns:
        Validated PolicyDocument.

    Raises:
        FileNotFoundError: If the file does not exist.
        PolicyParseError: If the file is malformed.
        OSError: If the file cannot be read.
    """
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found at {path}.")

    return parse_policy_document(path.read_bytes(), fmt=format_for_path(path), source=str(path))


def compute_policy_checksum(path: Path) -> str:
    """Compute SHA256 checksum of policy file content.

    Returns:
        str: Checksum in format "sha256:<hex_digest>".

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256(path.read_bytes()).hexdigest()
    return f"sha256:{digest}"
