"""rpcfault CLI.

The CLI is built with Typer; global options (logging, config file) are
handled by the app callback and the commands live in ``commands/``.

Package structure:
    cli/
    ├── __init__.py           # This file - app assembly
    ├── helpers.py            # Shared state and utilities
    ├── output.py             # Rich formatting
    └── commands/
        ├── classify.py       # classify command
        └── codes.py          # codes command
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from rpcfault import __version__

from .commands import classify, codes
from .helpers import (
    configure_global_logging,
    load_config,
    set_log_file,
    set_log_format,
    set_log_level,
)
from .output import console, err_console

app = typer.Typer(
    name="rpcfault",
    help="Classify remote-call failures into retry-aware exceptions",
    add_completion=False,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"rpcfault v{__version__}")
        raise typer.Exit()


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="RPCFAULT_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="RPCFAULT_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="RPCFAULT_LOG_FORMAT",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML configuration file",
            envvar="RPCFAULT_CONFIG",
        ),
    ] = None,
) -> None:
    """rpcfault - classify remote-call failures."""
    if config is not None:
        load_config(config, err_console)
    configure_global_logging(err_console)


app.command()(classify)
app.command()(codes)


__all__ = ["app"]
