"""Config module exports."""

from terraplane.config.loader import load_config
from terraplane.config.models import (
    IndexingConfig,
    LoggingConfig,
    LogOutputConfig,
    TerraplaneConfig,
    WatchConfig,
)

__all__ = [
    "load_config",
    "TerraplaneConfig",
    "IndexingConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "WatchConfig",
]
