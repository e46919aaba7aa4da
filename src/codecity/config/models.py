"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODECITY__SECTION__KEY)
3. Config YAML (.codecity/config.yaml or an explicit path)
4. Global YAML (~/.config/codecity/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODECITY__<SECTION>__<KEY>=<VALUE>

Examples:
    CODECITY__LOGGING__LEVEL=DEBUG
    CODECITY__SERVER__PORT=8080
    CODECITY__DATABASE__PATH=/var/lib/codecity/snapshots.db
    CODECITY__TREE__PATH_DELIMITER=/
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from codecity.config.constants import (
    GENERATED_ID_HIGH_WATER,
    GENERATED_ID_RESERVED,
    PORT_MAX,
    PORT_MIN,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

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
        CODECITY__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every cache hit and walker merge.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """HTTP server configuration.

    Env vars:
        CODECITY__SERVER__HOST: Bind address (default: 127.0.0.1)
        CODECITY__SERVER__PORT: Port number (default: 7655)
    """

    host: str = Field(
        default="127.0.0.1",
        description="Bind address. Use 0.0.0.0 for network access (no authentication).",
    )
    port: int = Field(
        default=7655,
        description="Server port.",
    )
    shutdown_timeout_sec: float = Field(
        default=5.0,
        description="Graceful shutdown timeout before force exit.",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (PORT_MIN <= v <= PORT_MAX):
            raise ValueError(f"Port must be {PORT_MIN}-{PORT_MAX}, got {v}")
        return v


class DatabaseConfig(BaseModel):
    """Snapshot database configuration.

    Env vars:
        CODECITY__DATABASE__PATH: SQLite snapshot store location
        CODECITY__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
    """

    path: str = Field(
        default=".codecity/snapshots.db",
        description="SQLite file holding projects, snapshots and measures. "
        "Relative paths resolve against the working directory.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements (very verbose).",
    )

    @field_validator("busy_timeout_ms")
    @classmethod
    def validate_busy_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"busy_timeout_ms must be >= 0, got {v}")
        return v


class TreeConfig(BaseModel):
    """Tree construction configuration.

    Env vars:
        CODECITY__TREE__PATH_DELIMITER: Separator between path segments
        CODECITY__TREE__OPTIMIZE: Collapse single-child directories
        CODECITY__TREE__GENERATED_ID_HIGH_WATER: Exclusive upper bound of generated ids
        CODECITY__TREE__GENERATED_ID_RESERVED: Size of the reserved generated-id range
    """

    path_delimiter: str = Field(
        default="/",
        description="Separator between path segments of snapshot records.",
    )
    optimize: bool = Field(
        default=True,
        description="Collapse single-child directories and prune empty ones after building.",
    )
    generated_id_high_water: int = Field(
        default=GENERATED_ID_HIGH_WATER,
        description="Generated ids count down from just below this value.",
    )
    generated_id_reserved: int = Field(
        default=GENERATED_ID_RESERVED,
        description="Ids in [high_water - reserved, high_water) are never issued to real "
        "snapshot elements. RISK: Too small exhausts the sequence on long-running daemons.",
    )

    @field_validator("path_delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        if not v:
            raise ValueError("path_delimiter must not be empty")
        return v

    @model_validator(mode="after")
    def validate_id_range(self) -> "TreeConfig":
        if self.generated_id_reserved <= 0:
            raise ValueError("generated_id_reserved must be positive")
        if self.generated_id_reserved >= self.generated_id_high_water:
            raise ValueError("generated_id_reserved must be below generated_id_high_water")
        return self


class CodeCityConfig(BaseModel):
    """Root configuration for CodeCity.

    All settings can be configured via:
    1. Environment variables: CODECITY__SECTION__KEY
    2. YAML config files (explicit, repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)
