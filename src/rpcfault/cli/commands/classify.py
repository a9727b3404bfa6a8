"""Classify command for the rpcfault CLI.

Runs one failure through the exception factory exactly as a client would,
which makes it easy to check how a status/description/delay combination
from a production log is treated.
"""

from __future__ import annotations

import json

import typer

from rpcfault.core.errors import encode_retry_info
from rpcfault.core.logging import get_logger

from ..helpers import get_factory, parse_status_code
from ..output import build_classification_table, console, err_console

_logger = get_logger("cli.classify")


def classify(
    code: str = typer.Argument(
        ...,
        help="Status code by name (ABORTED) or number (10)",
    ),
    description: str = typer.Argument(
        "",
        help="Status description or API error message",
    ),
    retry_seconds: int | None = typer.Option(
        None,
        "--retry-seconds",
        help="Attach a retry side channel with this many seconds",
    ),
    retry_nanos: int = typer.Option(
        0,
        "--retry-nanos",
        min=0,
        max=999_999_999,
        help="Nanoseconds part of the attached retry delay",
    ),
    api: bool = typer.Option(
        False,
        "--api",
        help="Treat the failure as an API-level error (no side channel)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the classification as JSON",
    ),
) -> None:
    """Classify a single remote-call failure."""
    status = parse_status_code(code)
    if status is None:
        err_console.print(f"[red]Unknown status code:[/red] {code}")
        raise typer.Exit(1)

    side_channel = None
    if retry_seconds is not None or retry_nanos:
        side_channel = encode_retry_info(retry_seconds or 0, retry_nanos)

    factory = get_factory()
    if api:
        if side_channel is not None:
            err_console.print("[yellow]API-level failures carry no retry delay; ignoring it[/yellow]")
        result = factory.from_api_failure(status, description)
    else:
        result = factory.from_transport_failure(status, description, side_channel)

    _logger.info("failure_classified", **result.to_dict())

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return
    console.print(build_classification_table(result))
