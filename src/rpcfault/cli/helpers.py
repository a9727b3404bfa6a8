"""Shared utilities for rpcfault CLI commands.

This module contains helpers used across CLI command modules:
- Logging configuration state set by the global options
- Config file loading and factory construction
- Status code parsing for command arguments
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from rpcfault.core.config import LogConfig, RpcfaultConfig
from rpcfault.core.errors import ExceptionFactory, StatusCode
from rpcfault.core.logging import configure_from_config


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """CLI logging options; None means "not given on the command line"."""

    level: str | None = None
    file: Path | None = None
    format: str | None = None
    configured: bool = False


@dataclass
class CliState:
    """Everything the global callback hands to the commands."""

    logging: CliLoggingConfig = field(default_factory=CliLoggingConfig)
    config: RpcfaultConfig = field(default_factory=RpcfaultConfig)


_state = CliState()


def get_state() -> CliState:
    return _state


def set_log_level(level: str) -> None:
    _state.logging.level = level.upper()


def set_log_file(path: Path | None) -> None:
    """Set the log file; without an explicit --log-format it is written as JSON."""
    _state.logging.file = path
    if path and _state.logging.format is None:
        _state.logging.format = "json"


def set_log_format(fmt: str) -> None:
    _state.logging.format = fmt.lower()


def reset_cli_state() -> None:
    """Reset CLI state (primarily for testing)."""
    global _state
    _state = CliState()


def load_config(path: Path, console: Console) -> None:
    """Load a YAML config file into the CLI state.

    Raises:
        typer.Exit: If the file cannot be parsed or fails validation.
    """
    try:
        _state.config = RpcfaultConfig.from_yaml(path)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def configure_global_logging(console: Console) -> None:
    """Configure logging from the config file and global CLI options.

    Options given on the command line take precedence over the file, and
    CLI runs default to WARNING so log lines do not mix with output.
    Only configures once per session.

    Raises:
        typer.Exit: If logging configuration fails.
    """
    if _state.logging.configured:
        return

    settings = _state.config.logging.model_dump()
    if "logging" not in _state.config.model_fields_set:
        settings["level"] = "WARNING"
    if _state.logging.level is not None:
        settings["level"] = _state.logging.level
    if _state.logging.format is not None:
        settings["format"] = _state.logging.format
    if _state.logging.file is not None:
        settings["file_path"] = _state.logging.file

    try:
        configure_from_config(LogConfig.model_validate(settings))
        _state.logging.configured = True
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def get_factory() -> ExceptionFactory:
    """Build an ExceptionFactory from the loaded configuration."""
    return ExceptionFactory(config=_state.config.factory)


def parse_status_code(text: str) -> StatusCode | None:
    """Parse a status code argument given by name or number.

    Unlike ``StatusCode.coerce`` this rejects unknown input instead of
    mapping it to UNKNOWN, so typos are reported to the user.
    """
    value = text.strip()
    if value.isdigit():
        number = int(value)
        return StatusCode(number) if number in StatusCode._value2member_map_ else None
    return StatusCode.__members__.get(value.upper())
