"""CLI output styling for policy reports.

Colour scheme:
- Effects: allow green, deny red, audit yellow, mutate magenta
- Severities: critical/high red, medium yellow, low dim
- Section headers and labels cyan bold; results prefixed with a check or cross
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_effect",
    "style_error",
    "style_header",
    "style_label",
    "style_rule_state",
    "style_severity",
    "style_success",
    "style_warning",
]

import click

from grc_policy.pdp.decision import Effect

_EFFECT_COLORS = {
    Effect.ALLOW: "green",
    Effect.DENY: "red",
    Effect.AUDIT: "yellow",
    Effect.MUTATE: "magenta",
}

_SEVERITY_COLORS = {
    "critical": "red",
    "high": "red",
    "medium": "yellow",
}


def style_header(title: str) -> str:
    """Section header, e.g. "--- Rules ---"."""
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_label(label: str) -> str:
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_success(message: str) -> str:
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    """Red message with a cross; callers echo it to stderr."""
    return click.style(f"✗ {message}", fg="red")


def style_warning(message: str) -> str:
    return click.style(f"Warning: {message}", fg="yellow", bold=True)


def style_dim(message: str) -> str:
    return click.style(message, dim=True)


def style_effect(effect: Effect) -> str:
    """Effect name in upper case, coloured by outcome.

    Example:
        >>> click.echo(style_effect(Effect.DENY))
        DENY
    """
    return click.style(effect.value.upper(), fg=_EFFECT_COLORS.get(effect, "white"), bold=True)


def style_severity(severity: str) -> str:
    """Rule severity in brackets; unknown and low severities are dimmed.

    Example:
        >>> click.echo(style_severity("critical"))
        [critical]
    """
    normalized = severity.strip().lower()
    color = _SEVERITY_COLORS.get(normalized)
    if color is None:
        return style_dim(f"[{normalized}]")
    return click.style(f"[{normalized}]", fg=color)


def style_rule_state(enabled: bool) -> str:
    """Suffix for rules that are switched off (empty for enabled rules)."""
    return "" if enabled else style_dim(" (disabled)")
