"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CODECITY__SECTION__KEY)
3. Config YAML (explicit path, or .codecity/config.yaml under the cwd)
4. Global YAML (~/.config/codecity/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from codecity.config.models import (
    CodeCityConfig,
    DatabaseConfig,
    LoggingConfig,
    ServerConfig,
    TreeConfig,
)
from codecity.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/codecity/config.yaml").expanduser()
LOCAL_CONFIG_PATH = Path(".codecity") / "config.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level YAML value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into base; nested sections merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = (
            _deep_merge(current, value)
            if isinstance(current, dict) and isinstance(value, dict)
            else value
        )
    return merged


class _YamlSource(PydanticBaseSettingsSource):
    """Merged global and project YAML, lowest-precedence settings source."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        section = self._yaml_config.get(field_name)
        return section, field_name, section is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Build a settings class bound to one YAML mapping.

    A fresh class per call keeps concurrent loads from sharing YAML state.
    """

    class CodeCitySettings(BaseSettings):
        """Root config. Env vars: CODECITY__LOGGING__LEVEL, CODECITY__SERVER__PORT, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CODECITY__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        server: ServerConfig = ServerConfig()
        database: DatabaseConfig = DatabaseConfig()
        tree: TreeConfig = TreeConfig()

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

    return CodeCitySettings


def load_config(config_path: Path | None = None, **kwargs: Any) -> CodeCityConfig:
    """Load config: defaults < global yaml < config yaml < env vars < kwargs.

    Args:
        config_path: Explicit YAML config file. Must exist when given.
                     Defaults to .codecity/config.yaml under the working
                     directory (optional).
        **kwargs: Override values (highest precedence), keyed by section.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML syntax or
            validation errors.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError.file_not_found(str(config_path))

    yaml_config = _load_yaml(config_path or Path.cwd() / LOCAL_CONFIG_PATH)

    global_config = _load_yaml(GLOBAL_CONFIG_PATH)
    if global_config:
        yaml_config = _deep_merge(global_config, yaml_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return CodeCityConfig.model_validate(settings.model_dump())


def resolve_database_path(config: CodeCityConfig, base_dir: Path | None = None) -> Path:
    """Resolve the configured snapshot database path against base_dir (default: cwd)."""
    path = Path(config.database.path).expanduser()
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    return path
