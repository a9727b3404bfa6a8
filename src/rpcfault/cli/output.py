"""Rich output formatting for the rpcfault CLI.

Centralizes the console instance, colour schemes and table builders so
every command renders classifications the same way.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

from rpcfault.core.errors import ClassifiedException, ErrorKind, RetryRule, StatusCode

# =============================================================================
# Shared console instance
# =============================================================================

console = Console()

# Warnings and errors go to stderr so --json output stays parseable.
err_console = Console(stderr=True)


# =============================================================================
# Color schemes
# =============================================================================


KIND_COLORS: dict[ErrorKind, str] = {
    ErrorKind.TRANSIENT: "green",
    ErrorKind.ABORTED_WITH_BACKOFF: "yellow",
    ErrorKind.RESOURCE_EXPIRED: "magenta",
    ErrorKind.CANCELLED: "dim",
    ErrorKind.GENERIC: "red",
}


def format_retryable(retryable: bool) -> str:
    return "[green]yes[/green]" if retryable else "[red]no[/red]"


def format_delay(millis: int) -> str:
    if millis < 0:
        return "[dim]absent[/dim]"
    return f"{millis} ms"


# =============================================================================
# Table builders
# =============================================================================


def build_classification_table(result: ClassifiedException) -> Table:
    """Render one classification as a two-column table."""
    table = Table(title="Classification", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    color = KIND_COLORS.get(result.kind, "white")
    table.add_row("Variant", result.variant.value)
    table.add_row("Kind", f"[{color}]{result.kind.value}[/{color}]")
    table.add_row("Code", result.code.name)
    table.add_row("Retryable", format_retryable(result.retryable))
    table.add_row("Retry delay", format_delay(result.retry_delay_millis))
    table.add_row("Message", result.message)
    if result.resource_name:
        table.add_row("Resource", result.resource_name)
    return table


def describe_rules(code: StatusCode, rules: tuple[RetryRule, ...]) -> list[str]:
    """List the retry conditions the rule table holds for one code."""
    conditions = []
    for rule in rules:
        if rule.code != code:
            continue
        verdict = "retryable" if rule.retryable else "not retryable"
        if rule.description_contains is None:
            conditions.append(verdict)
        else:
            conditions.append(f"{verdict} if description contains {rule.description_contains!r}")
    return conditions


def code_rows(rules: tuple[RetryRule, ...]) -> list[dict[str, Any]]:
    """One row per status code with its default retry verdict and conditions."""
    rows = []
    for code in StatusCode:
        unconditional = [r for r in rules if r.code == code and r.description_contains is None]
        rows.append({
            "code": code.name,
            "value": code.value,
            "retryable": unconditional[0].retryable if unconditional else False,
            "conditions": describe_rules(code, rules),
        })
    return rows


def build_codes_table(rows: list[dict[str, Any]]) -> Table:
    """Render the status code retry table."""
    table = Table(title="Status Codes")
    table.add_column("Value", justify="right")
    table.add_column("Code", style="bold")
    table.add_column("Retryable")
    table.add_column("Conditions")
    for row in rows:
        table.add_row(
            str(row["value"]),
            row["code"],
            format_retryable(row["retryable"]),
            "; ".join(row["conditions"]) or "[dim]default[/dim]",
        )
    return table
