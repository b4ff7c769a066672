"""Command-line interface for grc-policy."""

from grc_policy.cli.main import cli, main

__all__ = ["cli", "main"]
