"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (TERRAPLANE__SECTION__KEY)
3. Workspace YAML (.terraplane/config.yaml)
4. Global YAML (~/.config/terraplane/config.yaml)
5. Built-in defaults (this file)

Examples:
    TERRAPLANE__LOGGING__LEVEL=DEBUG
    TERRAPLANE__WATCH__DEBOUNCE_SEC=1.0
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        TERRAPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every indexed document.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexingConfig(BaseModel):
    """Document indexing configuration.

    Env vars:
        TERRAPLANE__INDEXING__ENABLED: Disable to skip the initial crawl and watcher
        TERRAPLANE__INDEXING__EXCLUDE: JSON list of glob patterns, e.g. '["**/.terraform/**"]'
    """

    enabled: bool = Field(
        default=True,
        description="Index the workspace on startup and keep it fresh while watching.",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns of documents that are never indexed. "
        "Matched against the full path and the file name.",
    )
    extensions: list[str] = Field(
        default_factory=lambda: [".tf", ".tfvars"],
        description="File suffixes treated as Terraform documents.",
    )

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        for ext in v:
            if not ext.startswith("."):
                raise ValueError(f"Extension must start with '.': {ext}")
        return [ext.lower() for ext in v]


class WatchConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        TERRAPLANE__WATCH__DEBOUNCE_SEC: Polling/debounce interval
        TERRAPLANE__WATCH__MAX_QUEUE_SIZE: Max queued change batches before dropping
    """

    debounce_sec: float = Field(
        default=0.5,
        description="Polling interval. Changes within one interval are batched.",
    )
    max_queue_size: int = Field(
        default=1000,
        description="Max queued change batches. Excess batches are dropped (logged).",
    )

    @field_validator("debounce_sec")
    @classmethod
    def validate_debounce(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"debounce_sec must be positive, got {v}")
        return v


class TerraplaneConfig(BaseModel):
    """Root configuration for Terraplane."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
