"""
Structured error types for the migration journal.

Every failure the journal surfaces is a ``JournalError`` carrying a
category, a retry hint, structured context (table, schema, script,
dialect) and the chained driver exception.  Driver errors never escape
the journal unwrapped, so a migration runner can catch one hierarchy
regardless of which DB-API driver sits underneath.

Manifesto:
    - **Typed hierarchy:** probe, create, read and insert failures are
      distinct types because the runner reacts to each differently
    - **Chained causes:** the original driver exception is preserved as
      ``__cause__`` for root cause analysis
    - **No retries here:** ``retryable`` is advisory; resilience belongs
      to the connection provider

Architecture:
    ::

        JournalError (category, retryable, context, cause)
        ├── ConfigError            (CONFIG)
        │   └── InvalidConfigError
        ├── ValidationError        (VALIDATION)
        └── DatabaseError          (DATABASE)
            ├── TableProbeError
            ├── TableCreationError
            ├── JournalReadError
            └── ScriptRecordError

Examples:
    >>> err = ScriptRecordError("001_init", cause=RuntimeError("gone"))
    >>> err.script_name
    '001_init'
    >>> err.to_dict()["category"]
    'DATABASE'

Tags:
    error-handling, exception-hierarchy, journal, migrations

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and routing."""

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to journal errors.

    Only non-``None`` fields are emitted by :meth:`to_dict`, so the
    result can be passed straight to a structured logger.
    """

    table: str | None = None
    schema: str | None = None
    script_name: str | None = None
    dialect: str | None = None

    # Additional metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "schema", "script_name", "dialect"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class JournalError(Exception):
    """
    Base exception for all journal errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass what is specific to the failure.
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

    def with_context(self, **kwargs: Any) -> JournalError:
        """
        Add context to this error (fluent API).

        Usage:
            raise TableProbeError("probe failed").with_context(
                table='"SchemaVersions"', dialect="sqlite"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
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
# CONFIGURATION / VALIDATION ERRORS
# =============================================================================


class ConfigError(JournalError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class ValidationError(JournalError):
    """Caller supplied an unusable argument (e.g. an empty script name)."""

    default_category = ErrorCategory.VALIDATION


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(JournalError):
    """Database query or statement error raised through the journal."""

    default_category = ErrorCategory.DATABASE


class TableProbeError(DatabaseError):
    """
    The existence probe failed for a reason other than a missing table.

    Raised instead of guessing "absent" when the store is unreachable or
    refuses the probe, so a connectivity problem is never mistaken for a
    brand-new database.
    """


class TableCreationError(DatabaseError):
    """The ledger table could not be created and is still not present."""


class JournalReadError(DatabaseError):
    """Reading the executed scripts from an existing ledger table failed."""


class ScriptRecordError(DatabaseError):
    """
    Recording an executed script failed.

    The script itself has already run against the target database; only
    the ledger row is missing.  Runners must report this prominently.
    """

    def __init__(self, script_name: str, message: str | None = None, **kwargs: Any):
        self.script_name = script_name
        super().__init__(
            message or f"Script {script_name!r} was executed but could not be recorded in the journal",
            **kwargs,
        )
        self.context.script_name = script_name


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "JournalError",
    "ConfigError",
    "InvalidConfigError",
    "ValidationError",
    "DatabaseError",
    "TableProbeError",
    "TableCreationError",
    "JournalReadError",
    "ScriptRecordError",
]
