"""Cooperative cancellation.

A CancellationToken is shared between the caller and a running cleanup.
Long-running loops call ``raise_if_cancelled()`` at their suspension
points; nothing is interrupted pre-emptively.
"""

import threading

from cleanbin.core.errors import OperationCancelledError


class CancellationToken:
    """Thread-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or the timeout elapses.

        Returns:
            True if cancellation was requested.
        """
        return self._event.wait(timeout)


def check_cancelled(token: CancellationToken | None) -> None:
    """Raise if an optional token has been cancelled."""
    if token is not None:
        token.raise_if_cancelled()
