"""Policy utilities for grc-policy.

Provides helper functions for parsing and loading policy documents.
"""

from grc_policy.utils.policy.policy_helpers import (
    compute_policy_checksum,
    format_for_path,
    format_validation_errors,
    load_policy_file,
    parse_policy_document,
    policy_name_from_path,
)

__all__ = [
    "compute_policy_checksum",
    "format_for_path",
    "format_validation_errors",
    "load_policy_file",
    "parse_policy_document",
    "policy_name_from_path",
]
