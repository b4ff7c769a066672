"""Main CLI entry point for grc-policy.

Defines the CLI group and registers all subcommands.

Commands:
    evaluate  - Evaluate a request file against a policy
    show      - Display a policy's rules and exceptions
    validate  - Validate a policy document

Subcommand help:
    grc-policy COMMAND -h      Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import sys

import click

from grc_policy import __version__
from grc_policy.constants import APP_NAME

from .commands.policy import evaluate, show, validate


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Examples:
  grc-policy validate etc/policies/grc-baseline.yml
  grc-policy show etc/policies/grc-baseline.yml --json
  grc-policy evaluate etc/policies/grc-baseline.yml --request request.yml

Exit codes (evaluate):
  0   allow, audit or mutate
  2   deny
  1   invalid policy or request
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Print engine diagnostics to stderr at this level",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, log_level: str | None) -> None:
    """grc-policy: Declarative policy enforcement for GRC actions."""
    if version:
        click.echo(f"{APP_NAME} {__version__}")
        sys.exit(0)
    if log_level:
        from grc_policy.utils.logging import configure_logging

        configure_logging(log_level)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(evaluate)
cli.add_command(show)
cli.add_command(validate)


def main() -> None:
    """CLI entry point."""
    cli()
