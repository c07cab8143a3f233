"""Custom exception hierarchy for sqlchain.

All public errors inherit from SqlChainError so callers can catch the base
class for any sqlchain-specific failure.  Errors raised by the database driver
are never wrapped; they reach the caller unchanged.
"""
from __future__ import annotations


class SqlChainError(Exception):
    """Base exception for all sqlchain errors."""


class ConfigError(SqlChainError):
    """Raised when :func:`sqlchain.create` receives invalid options.

    Args:
        message: Human-readable description.
        option: Name of the offending option, when known.
    """

    def __init__(self, message: str, option: str | None = None) -> None:
        super().__init__(message)
        self.option = option


class ConstructionError(SqlChainError):
    """Raised synchronously by a chain call whose payload is malformed.

    Args:
        message: Human-readable description.
        clause: The clause kind being built when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class CompilationError(SqlChainError):
    """Raised when an internal compilation invariant is violated.

    A correct caller never sees this error; it indicates a defect.

    Args:
        message: Human-readable description.
        clause: The clause kind being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class ExecutionError(SqlChainError):
    """Raised when a pool cannot dispatch a statement or breaks its contract.

    Driver errors (syntax, constraint violations, connectivity) are not
    converted to this class.
    """


class ResultShapeError(SqlChainError):
    """Base class for strict ``one()`` result-count failures."""


class NoRowsError(ResultShapeError):
    """Raised by ``one(strict=True)`` when the query returned no rows."""

    def __init__(self) -> None:
        super().__init__("Expected exactly one row, got none.")


class MultipleRowsError(ResultShapeError):
    """Raised by ``one(strict=True)`` when the query returned several rows.

    Args:
        count: Number of rows actually returned.
    """

    def __init__(self, count: int) -> None:
        super().__init__(f"Expected exactly one row, got {count}.")
        self.count = count
