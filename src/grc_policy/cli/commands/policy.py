"""Policy commands for the grc-policy CLI.

Provides offline validation, inspection and evaluation of policy documents.
"""

from __future__ import annotations

__all__ = ["evaluate", "show", "validate"]

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import click

from grc_policy.context.request import ActionRequest
from grc_policy.exceptions import PolicyParseError
from grc_policy.pdp.engine import PolicyEnforcer
from grc_policy.pdp.matcher import CONDITION_OPS
from grc_policy.pdp.mutation import MUTATION_OPS
from grc_policy.pdp.policy import MatchConfig, PolicyDocument
from grc_policy.store import InMemoryPolicySource, PolicyStore
from grc_policy.telemetry.audit.decision_logger import AuditLogger
from grc_policy.utils.file_helpers import load_validated_document
from grc_policy.utils.policy import compute_policy_checksum, load_policy_file, policy_name_from_path

from ..styling import (
    style_dim,
    style_effect,
    style_error,
    style_header,
    style_label,
    style_rule_state,
    style_severity,
    style_success,
    style_warning,
)

# Exit code for a deny decision (1 is reserved for invalid input)
EXIT_DENIED = 2

_POLICY_PATH = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load_or_exit(path: Path) -> PolicyDocument:
    try:
        return load_policy_file(path)
    except (FileNotFoundError, PolicyParseError) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)


def _describe_match(match: MatchConfig) -> str:
    parts = [f"type={match.resource_type}", f"env={match.environment}"]
    if match.principal is not None:
        if match.principal.id:
            parts.append(f"principal={match.principal.id}")
        if match.principal.roles:
            parts.append(f"roles={'|'.join(match.principal.roles)}")
    return ", ".join(parts)


def _lint(policy: PolicyDocument) -> list[str]:
    """Collect problems that parse cleanly but make rules inert at runtime."""
    warnings = []
    if not policy.spec.is_enforcing:
        warnings.append(f"Mode '{policy.spec.mode}' never blocks actions (dry run)")
    for rule in policy.spec.rules:
        for condition in rule.when:
            if condition.op.strip().lower() not in CONDITION_OPS:
                warnings.append(f"Rule {rule.id}: unsupported condition op '{condition.op}' is always false")
        for mutation in rule.mutations:
            if mutation.op.strip().lower() not in MUTATION_OPS:
                warnings.append(f"Rule {rule.id}: unsupported mutation op '{mutation.op}' will fail")
    return warnings


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        click.echo(style_error(f"Invalid --now value (expected ISO 8601): {value}"), err=True)
        sys.exit(1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@click.command("validate")
@click.argument("path", type=_POLICY_PATH)
def validate(path: Path) -> None:
    """Validate a policy document.

    Checks the document for:
    - Valid YAML/JSON syntax
    - Schema validation (rules, effects, conditions, exceptions)
    - Unique rule ids

    Exit codes:
        0: Policy is valid
        1: Policy is invalid or not found
    """
    policy = _load_or_exit(path)
    rule_count = policy.rule_count
    exception_count = len(policy.spec.exceptions)
    click.echo(style_success(f"Policy valid: {path}"))
    click.echo(f"  {policy.name} (version {policy.version})")
    click.echo(f"  {rule_count} rule{'s' if rule_count != 1 else ''} defined")
    click.echo(f"  {exception_count} exception{'s' if exception_count != 1 else ''} defined")
    click.echo(f"  Default effect: {policy.spec.default_effect.value}")
    for warning in _lint(policy):
        click.echo(style_warning(warning))


@click.command("show")
@click.argument("path", type=_POLICY_PATH)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(path: Path, as_json: bool) -> None:
    """Display a policy document.

    Shows rules in evaluation order with their match blocks, followed by
    exceptions and execution settings.
    """
    policy = _load_or_exit(path)

    if as_json:
        data = policy.model_dump(mode="json", by_alias=True, exclude_none=True)
        data["_metadata"] = {
            "file": str(path),
            "name": policy_name_from_path(path),
            "checksum": compute_policy_checksum(path),
            "rules_count": policy.rule_count,
        }
        click.echo(json.dumps(data, indent=2))
        return

    execution = policy.spec.execution
    click.echo("\n" + style_label("Policy") + f" {policy.name} (version {policy.version})")
    click.echo(f"File: {path}")
    click.echo(f"Mode: {policy.spec.mode}")
    click.echo(f"Default effect: {policy.spec.default_effect.value}")
    click.echo(
        f"Execution: shortCircuit={str(execution.short_circuit).lower()}, "
        f"conflictStrategy={execution.conflict_strategy or '(last wins)'}"
    )
    click.echo()

    click.echo(style_header("Rules"))
    if not policy.spec.rules:
        click.echo(style_dim("  (no rules defined)"))
    for rule in sorted(policy.spec.rules, key=lambda r: r.priority):
        click.echo(
            f"  [{rule.priority}] {rule.id} {style_effect(rule.effect)} "
            f"{style_severity(rule.severity)}{style_rule_state(rule.enabled)}"
        )
        click.echo(f"    match: {_describe_match(rule.match)}")
        for condition in rule.when:
            click.echo(f"    when: {condition.op} {condition.path} {json.dumps(condition.value)}")
        if rule.message:
            click.echo(f"    {rule.message}")

    click.echo()
    click.echo(style_header("Exceptions"))
    if not policy.spec.exceptions:
        click.echo(style_dim("  (no exceptions defined)"))
    for exception in policy.spec.exceptions:
        expires = exception.expires_at.isoformat() if exception.expires_at else "never"
        rule_ids = ", ".join(sorted(exception.rule_ids))
        click.echo(f"  {exception.id}: skips {rule_ids} (expires {expires})")
        click.echo(f"    match: {_describe_match(exception.match)}")


@click.command("evaluate")
@click.argument("path", type=_POLICY_PATH)
@click.option(
    "--request",
    "-r",
    "request_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="ActionRequest as YAML or JSON",
)
@click.option("--now", "now_str", default=None, help="Evaluation instant (ISO 8601, default: now)")
def evaluate(path: Path, request_path: Path, now_str: str | None) -> None:
    """Evaluate a request against a policy and print the decision as JSON.

    The request file holds the ActionRequest fields: action, environment,
    resource_type, resource, tenant_id, principal_id, principal_roles.

    Exit codes:
        0: allow, audit or mutate
        1: Policy or request is invalid
        2: deny
    """
    now = _parse_now(now_str)
    policy = _load_or_exit(path)

    try:
        request = load_validated_document(request_path, ActionRequest, file_type="request")
    except ValueError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    enforcer = PolicyEnforcer(
        PolicyStore(InMemoryPolicySource()),
        AuditLogger(),
        policy_name_from_path(path),
    )
    decision = enforcer.evaluate(policy, request, now=now)
    click.echo(json.dumps(decision.model_dump(mode="json"), indent=2))

    if decision.is_denied:
        sys.exit(EXIT_DENIED)
