"""CodeCity error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Tree
- 4xxx: Snapshot store
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2003

    # Tree (3xxx)
    TREE_NOT_FOUND = 3001
    NODE_NOT_FOUND = 3002
    INTERFACE_LEAF_NOT_FOUND = 3003
    TREE_BUILD_FAILURE = 3004
    INVALID_REQUEST = 3005

    # Snapshot store (4xxx)
    SNAPSHOT_QUERY_FAILED = 4001
    METRIC_NOT_FOUND = 4002
    SNAPSHOT_INVALID_DOCUMENT = 4003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    ID_SEQUENCE_EXHAUSTED = 9002


@dataclass(frozen=True, slots=True)
class CodeCityError(Exception):
    """Base error with structured context for API responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TREE_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeCityError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class TreeError(CodeCityError):
    """Tree construction and lookup errors.

    NOT_FOUND codes cover unknown tree keys and failed node searches.
    Build failures are retryable: the cache never keeps a failed build.
    """

    @classmethod
    def tree_not_found(cls, key: str) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_NOT_FOUND,
            message=f"No tree structure for key '{key}'",
            details={"key": key},
        )

    @classmethod
    def node_not_found(cls, key: str, node_id: int) -> "TreeError":
        return cls(
            code=ErrorCode.NODE_NOT_FOUND,
            message=f"Node {node_id} not found in tree '{key}'",
            details={"key": key, "node_id": node_id},
        )

    @classmethod
    def interface_leaf_not_found(cls, key: str, label: str) -> "TreeError":
        return cls(
            code=ErrorCode.INTERFACE_LEAF_NOT_FOUND,
            message=f"Interface leaf '{label}' not found in tree '{key}'",
            details={"key": key, "label": label},
        )

    @classmethod
    def build_failure(cls, reason: str, **details: Any) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_BUILD_FAILURE,
            message=f"Failed to build tree structure: {reason}",
            retryable=True,
            details=details,
        )

    @classmethod
    def invalid_request(cls, field: str, value: Any, reason: str) -> "TreeError":
        return cls(
            code=ErrorCode.INVALID_REQUEST,
            message=f"Invalid request field '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @property
    def is_not_found(self) -> bool:
        return self.code in (
            ErrorCode.TREE_NOT_FOUND,
            ErrorCode.NODE_NOT_FOUND,
            ErrorCode.INTERFACE_LEAF_NOT_FOUND,
        )


class SnapshotError(CodeCityError):
    """Snapshot store (metric retrieval) errors."""

    @classmethod
    def query_failed(cls, operation: str, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_QUERY_FAILED,
            message=f"Snapshot query '{operation}' failed: {reason}",
            retryable=True,
            details={"operation": operation, "reason": reason},
        )

    @classmethod
    def metric_not_found(cls, name: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.METRIC_NOT_FOUND,
            message=f"Unknown metric: {name}",
            details={"name": name},
        )

    @classmethod
    def invalid_document(cls, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_INVALID_DOCUMENT,
            message=f"Invalid snapshot document: {reason}",
            details={"reason": reason},
        )


class InternalError(CodeCityError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )

    @classmethod
    def id_sequence_exhausted(cls, floor: int) -> "InternalError":
        return cls(
            code=ErrorCode.ID_SEQUENCE_EXHAUSTED,
            message=f"Generated id sequence exhausted (floor {floor})",
            details={"floor": floor},
        )
