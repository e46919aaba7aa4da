"""Core module exports."""

from codecity.core.errors import (
    CodeCityError,
    ConfigError,
    ErrorCode,
    InternalError,
    SnapshotError,
    TreeError,
)
from codecity.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "CodeCityError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "SnapshotError",
    "TreeError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
