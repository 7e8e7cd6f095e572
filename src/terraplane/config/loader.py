"""Configuration loading with pydantic-settings.

Sources, highest precedence first:
1. Direct kwargs
2. Environment variables (TERRAPLANE__SECTION__KEY)
3. Workspace config (.terraplane/config.yaml)
4. Global config (~/.config/terraplane/config.yaml)
5. Built-in defaults
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from terraplane.config.models import (
    IndexingConfig,
    LoggingConfig,
    TerraplaneConfig,
    WatchConfig,
)
from terraplane.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/terraplane/config.yaml").expanduser()
WORKSPACE_CONFIG_DIR = ".terraplane"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class TerraplaneSettings(BaseSettings):
        """Root config. Env vars: TERRAPLANE__LOGGING__LEVEL, TERRAPLANE__INDEXING__EXCLUDE, etc."""

        model_config = SettingsConfigDict(
            env_prefix="TERRAPLANE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        indexing: IndexingConfig = IndexingConfig()
        watch: WatchConfig = WatchConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return TerraplaneSettings


def load_config(workspace_root: Path | None = None, **kwargs: Any) -> TerraplaneConfig:
    """Load config: defaults < global yaml < workspace yaml < env vars < kwargs.

    Args:
        workspace_root: Workspace directory holding .terraplane/config.yaml.
                        Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    workspace_root = workspace_root or Path.cwd()

    yaml_config = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(workspace_root / WORKSPACE_CONFIG_DIR / "config.yaml"),
    )

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return TerraplaneConfig.model_validate(settings.model_dump())
