"""Terraplane error types.

Codes are grouped by the layer that raises them:
- 2xxx: loading configuration
- 3xxx: parsing and indexing documents

Malformed references and unknown documents are not errors; queries return
nothing for them.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    INDEX_GRAMMAR_UNAVAILABLE = 3001
    INDEX_DOCUMENT_UNREADABLE = 3002


@dataclass(frozen=True, slots=True)
class TerraplaneError(Exception):
    """Base error; ``details`` carries the structured context for logs."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Flat form used as structlog context."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(TerraplaneError):
    """A config file or value that cannot be used."""

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


class IndexingError(TerraplaneError):
    """A document that could not be read, or a parser that could not be built."""

    @classmethod
    def grammar_unavailable(cls, module: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_GRAMMAR_UNAVAILABLE,
            message=f"HCL grammar '{module}' could not be loaded: {reason}",
            details={"module": module, "reason": reason},
        )

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "IndexingError":
        # the next change event for the path retries
        return cls(
            code=ErrorCode.INDEX_DOCUMENT_UNREADABLE,
            message=f"Cannot read document {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )
