"""Progress reporting sinks.

Engine components emit human-readable status messages to an injected
ProgressSink. Delivery is best-effort: ``safe_report`` swallows and logs
sink failures so presentation problems never abort a cleanup run.
"""

import logging
import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressSink(Protocol):
    """Receiver of progress messages."""

    def report(self, message: str) -> None: ...


class NullSink:
    """Discards every message."""

    def report(self, message: str) -> None:
        pass


class CallbackSink:
    """Forwards messages to a callable."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def report(self, message: str) -> None:
        self._callback(message)


class LoggingSink:
    """Writes messages to a logger."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = log or logger
        self._level = level

    def report(self, message: str) -> None:
        self._logger.log(self._level, message)


class CollectingSink:
    """Keeps every message in memory. Safe to use from worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: list[str] = []

    def report(self, message: str) -> None:
        with self._lock:
            self._messages.append(message)

    @property
    def messages(self) -> list[str]:
        """Copy of the collected messages in arrival order."""
        with self._lock:
            return list(self._messages)


def safe_report(sink: ProgressSink | None, message: str) -> None:
    """Deliver a message, logging instead of raising on sink failure.

    Args:
        sink: Target sink, or None to drop the message.
        message: Status message.
    """
    if sink is None:
        return
    try:
        sink.report(message)
    except Exception as e:
        logger.warning("Progress sink failed: %s", e)
