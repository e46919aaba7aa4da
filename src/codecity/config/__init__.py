"""Config module exports."""

from codecity.config.loader import load_config, resolve_database_path
from codecity.config.models import (
    CodeCityConfig,
    DatabaseConfig,
    LoggingConfig,
    LogOutputConfig,
    ServerConfig,
    TreeConfig,
)

__all__ = [
    "load_config",
    "resolve_database_path",
    "CodeCityConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ServerConfig",
    "TreeConfig",
]
