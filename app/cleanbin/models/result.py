"""Discriminated operation results.

Public engine operations never raise across the component boundary.
Instead they return an OperationResult carrying either a value or a
failure message with an error kind and optional underlying cause.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of a failed operation.

    Attributes:
        VALIDATION: The input path or profile was rejected.
        CRITICAL_PATH: The path is a critical system location.
        CANCELLED: A cancellation request stopped the operation.
        UNEXPECTED: Any other failure.
    """

    VALIDATION = "validation"
    CRITICAL_PATH = "critical_path"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, slots=True)
class OperationResult(Generic[T]):
    """Outcome of a public engine operation.

    Attributes:
        success: Whether the operation completed.
        value: Result value when successful, None otherwise.
        error: Failure message, None when successful.
        error_kind: Failure category, None when successful.
        cause: Underlying exception, if any.
    """

    success: bool
    value: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    cause: BaseException | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "OperationResult[T]":
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(
        cls,
        error: str,
        kind: ErrorKind = ErrorKind.UNEXPECTED,
        cause: BaseException | None = None,
    ) -> "OperationResult[T]":
        """Create a failed result.

        Args:
            error: Human-readable failure message.
            kind: Failure category.
            cause: Optional underlying exception.

        Returns:
            Failed OperationResult.
        """
        return cls(success=False, error=error, error_kind=kind, cause=cause)

    @property
    def failed(self) -> bool:
        """Check if the operation failed."""
        return not self.success

    @property
    def cancelled(self) -> bool:
        """Check if the operation was cancelled."""
        return self.error_kind == ErrorKind.CANCELLED
