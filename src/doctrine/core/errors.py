"""
Structured error types for the doctrine registry.

Every failure the registry can signal is a local data-validity problem:
a malformed Barton number, a category that disagrees with its section band,
a duplicate identifier, or a reference to a record that does not exist.
None of them are transient, so none carry retry semantics. What they do
carry is enough structured context to be logged and surfaced verbatim.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind, never bare Exception
    - **Rich Context:** Errors carry the offending identifier and field
    - **Error Chaining:** Underlying exceptions are preserved as ``cause``
    - **Serializable:** ``to_dict()`` feeds structured logging directly

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      DoctrineError                           │
        │               (category, context, cause)                     │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError        NotFoundError     StorageError       │
        │  (VALIDATION)           (NOT_FOUND)       (STORAGE)          │
        │       │                                                      │
        │  InvalidIdentifierError                   ConfigError        │
        │  CategoryMismatchError                    (CONFIG)           │
        │  DuplicateIdentifierError                                    │
        │  InvalidFieldError                                           │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = CategoryMismatchError("1.1.1.20.1", expected="process", actual="structure")
    >>> err.expected, err.actual
    ('process', 'structure')
    >>> err.to_dict()["category"]
    'VALIDATION'

Tags:
    error-handling, exception-hierarchy, validation, doctrine-registry

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"     # Identifier, category, field violations
    NOT_FOUND = "NOT_FOUND"       # Referenced record is absent
    STORAGE = "STORAGE"           # Snapshot read/write failures
    CONFIG = "CONFIG"             # Missing or invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        identifier: Barton number text the operation referenced
        operation: Registry operation that failed (create, update, ...)
        agent: Caller identity on whose behalf the operation ran
        metadata: Additional key-value pairs
    """

    identifier: str | None = None
    operation: str | None = None
    agent: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["identifier", "operation", "agent"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DoctrineError(Exception):
    """
    Base exception for all doctrine registry errors.

    Subclasses set ``default_category``. Context can be attached after
    construction with the fluent ``with_context()``.

    Examples:
        >>> err = DoctrineError("Something went wrong")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> err.with_context(identifier="1.1.1.20.1").context.identifier
        '1.1.1.20.1'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    @property
    def kind(self) -> str:
        """Short error kind for user-facing output (class name sans ``Error``)."""
        name = self.__class__.__name__
        return name[: -len("Error")] if name.endswith("Error") else name

    def with_context(self, **kwargs: Any) -> DoctrineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("No such doctrine").with_context(
                identifier="1.1.1.20.1", operation="update"
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
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
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
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DoctrineError):
    """
    Data validation error.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class InvalidIdentifierError(ValidationError):
    """Text is not a well-formed Barton number."""

    def __init__(self, text: str, reason: str = "expected DB.HQ.SUB.NESTED.INDEX", **kwargs: Any):
        super().__init__(
            f"Invalid Barton ID format: {text} ({reason})",
            field="barton_id",
            value=text,
            constraint=reason,
            **kwargs,
        )
        self.text = text
        self.context.identifier = text


class CategoryMismatchError(ValidationError):
    """Declared category disagrees with the category derived from the section band."""

    def __init__(self, identifier: str, *, expected: str, actual: str, **kwargs: Any):
        super().__init__(
            f"Category mismatch for {identifier}: expected {expected}, got {actual}",
            field="category",
            value=actual,
            constraint=f"category == {expected}",
            **kwargs,
        )
        self.expected = expected
        self.actual = actual
        self.context.identifier = identifier


class DuplicateIdentifierError(ValidationError):
    """Identifier is already registered."""

    def __init__(self, identifier: str, **kwargs: Any):
        super().__init__(
            f"Doctrine already exists: {identifier}",
            field="barton_id",
            value=identifier,
            constraint="unique",
            **kwargs,
        )
        self.context.identifier = identifier


class InvalidFieldError(ValidationError):
    """A record field is missing, empty, unknown or not representable."""

    pass


# =============================================================================
# LOOKUP / STORAGE / CONFIG ERRORS
# =============================================================================


class NotFoundError(DoctrineError):
    """Operation referenced an identifier (or snapshot) that does not exist."""

    default_category = ErrorCategory.NOT_FOUND

    def __init__(self, identifier: str, what: str = "Doctrine", **kwargs: Any):
        super().__init__(f"{what} not found: {identifier}", **kwargs)
        self.context.identifier = identifier


class StorageError(DoctrineError):
    """Snapshot could not be written or read back."""

    default_category = ErrorCategory.STORAGE


class ConfigError(DoctrineError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DoctrineError",
    "ValidationError",
    "InvalidIdentifierError",
    "CategoryMismatchError",
    "DuplicateIdentifierError",
    "InvalidFieldError",
    "NotFoundError",
    "StorageError",
    "ConfigError",
]
