"""
Structured error types for timespine.

Provides a small hierarchy of typed errors carrying a category, retry
semantics, structured context, and the chained underlying exception.

Manifesto:
    A reporting layer over someone else's database meets two kinds of
    trouble: the schema is not what we expected, and the database is
    briefly unavailable. The first is *data* (a list of validation issues,
    never an exception). The second is exceptional and must be told apart
    precisely:

    - **Unavailable:** the file is missing or cannot be opened at all
    - **Busy:** the writer held its lock through every retry attempt
    - **Everything else:** raw ``sqlite3`` errors, propagated unmodified

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      TimespineError                          │
        │   (category, retryable, context, cause)                      │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │   DatabaseError (DATABASE)          ConfigError (CONFIG)     │
        │        │                                                     │
        │   DatabaseUnavailableError   DatabaseBusyError               │
        │   (open/enumerate failed)    (retryable, attempts)           │
        │                                                              │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = DatabaseBusyError("still locked", attempts=3)
    >>> error.retryable
    True
    >>> error.with_context(query="daily_usage").context.query
    'daily_usage'

Guardrails:
    ❌ DON'T: Wrap unclassified ``sqlite3.Error`` in a TimespineError
    ✅ DO: Let corruption, permission and I/O errors propagate as raised

    ❌ DON'T: Raise for a missing optional table
    ✅ DO: Return a ValidationIssue and let routing fall back

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    timespine, sqlite
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        query: Name of the query that was running
        database_path: Path of the database, for diagnostics only
        table: Table involved, when relevant
        attempts: Number of attempts made before giving up
        metadata: Additional key-value pairs
    """

    query: str | None = None
    database_path: str | None = None
    table: str | None = None
    attempts: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["query", "database_path", "table", "attempts"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TimespineError(Exception):
    """
    Base exception for all timespine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers can classify an error without inspecting its message.

    Examples:
        >>> error = TimespineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["retryable"]
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TimespineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DatabaseUnavailableError("Cannot open").with_context(
                database_path="/data/ManicTimeReports.db"
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(TimespineError):
    """Database access error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class DatabaseUnavailableError(DatabaseError):
    """The database file is missing or could not be opened or enumerated."""


class DatabaseBusyError(DatabaseError):
    """The database stayed locked through every retry attempt.

    Raised instead of the underlying ``sqlite3.OperationalError`` so callers
    can tell "still locked after retrying" apart from a first-attempt failure.
    The original error is available as ``cause`` / ``__cause__``.
    """

    default_retryable = True

    def __init__(self, message: str, *, attempts: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.context.attempts = attempts


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TimespineError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, TimespineError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TimespineError",
    "DatabaseError",
    "DatabaseUnavailableError",
    "DatabaseBusyError",
    "ConfigError",
    "is_retryable",
]
