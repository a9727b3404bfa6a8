"""Codes command for the rpcfault CLI."""

from __future__ import annotations

import json

import typer

from rpcfault.core.errors import StatusClassifier

from ..output import build_codes_table, code_rows, console


def codes(
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the table as JSON",
    ),
) -> None:
    """List status codes with their default retry verdicts."""
    rows = code_rows(StatusClassifier().rules)
    if json_output:
        typer.echo(json.dumps(rows, indent=2))
        return
    console.print(build_codes_table(rows))
