"""Core module exports."""

from terraplane.core.errors import (
    ConfigError,
    ErrorCode,
    IndexingError,
    TerraplaneError,
)
from terraplane.core.logging import configure_logging

__all__ = [
    # Errors
    "ErrorCode",
    "TerraplaneError",
    "ConfigError",
    "IndexingError",
    # Logging
    "configure_logging",
]
