"""Configuration models for rpcfault.

Defines Pydantic models for the exception factory and for structured
logging, and loads them from YAML:

```yaml
factory:
  retry_info_metadata_key: google.rpc.retryinfo-bin
logging:
  level: DEBUG
  format: json
```
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rpcfault.core.constants import RETRY_INFO_METADATA_KEY


class FactoryConfig(BaseModel):
    """Configuration for ExceptionFactory.

    Frozen: a factory's configuration cannot change after construction, so
    a single factory can be shared between threads without locking.
    """

    model_config = ConfigDict(frozen=True)

    retry_info_metadata_key: str = Field(
        default=RETRY_INFO_METADATA_KEY,
        min_length=1,
        description="Trailing-metadata key carrying the binary RetryInfo side channel",
    )

    @field_validator("retry_info_metadata_key")
    @classmethod
    def _normalize_key(cls, v: str) -> str:
        """Metadata keys are case-insensitive on the wire; store them lower-cased."""
        key = v.strip().lower()
        if not key:
            raise ValueError("retry_info_metadata_key must not be blank")
        return key


class LogConfig(BaseModel):
    """Configuration for structured logging.

    Controls log level, output format, and file rotation settings.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for log file output (required if format='both')",
    )
    max_file_size_mb: int = Field(
        default=50,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )
    include_timestamps: bool = Field(
        default=True,
        description="Include ISO8601 UTC timestamps in log entries",
    )

    @model_validator(mode="after")
    def _check_file_path_required(self) -> LogConfig:
        """Validate that file_path is set when format requires file output."""
        if self.format == "both" and self.file_path is None:
            raise ValueError(
                f"file_path is required when format='{self.format}'"
            )
        return self


class RpcfaultConfig(BaseModel):
    """Top-level configuration file model."""

    factory: FactoryConfig = Field(default_factory=FactoryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> RpcfaultConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> RpcfaultConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})
