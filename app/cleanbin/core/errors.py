"""Shared exception types for the cleanup engine."""


class CleanbinError(Exception):
    """Base exception for all cleanbin errors."""


class OperationCancelledError(CleanbinError):
    """Raised when a cancellation request is observed at a suspension point."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message)
