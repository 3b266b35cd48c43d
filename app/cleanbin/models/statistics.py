"""Cleanup statistics aggregation.

CleanupStatistics is owned by one orchestrator and passed by reference to
the traversal engine and deletion executor. Several deletion workers may
update it at once, so every mutation goes through an internal lock.
Callers read it through immutable snapshots.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class StatisticsSnapshot:
    """Read-only view of cleanup statistics at a point in time.

    Attributes:
        processed_folders: Directories visited by the traversal.
        deleted_folders: Clean directories removed.
        skipped_folders: Directories skipped because of the ignore list.
        deleted_files: Files removed by the deletion executor.
        skipped_files: Candidate files withheld because they are unsafe.
        errors: Per-item failures (access denied, I/O errors, ...).
        elapsed_ms: Duration of the last run in milliseconds.
        last_cleanup_time: Completion time of the last run, None if never run.
    """

    processed_folders: int = 0
    deleted_folders: int = 0
    skipped_folders: int = 0
    deleted_files: int = 0
    skipped_files: int = 0
    errors: int = 0
    elapsed_ms: int = 0
    last_cleanup_time: datetime | None = None

    @property
    def has_errors(self) -> bool:
        """Check if any per-item failure was recorded."""
        return self.errors > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "processed_folders": self.processed_folders,
            "deleted_folders": self.deleted_folders,
            "skipped_folders": self.skipped_folders,
            "deleted_files": self.deleted_files,
            "skipped_files": self.skipped_files,
            "errors": self.errors,
            "elapsed_ms": self.elapsed_ms,
            "last_cleanup_time": (
                self.last_cleanup_time.isoformat() if self.last_cleanup_time else None
            ),
        }


class CleanupStatistics:
    """Thread-safe counters for a cleanup run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processed_folders = 0
        self._deleted_folders = 0
        self._skipped_folders = 0
        self._deleted_files = 0
        self._skipped_files = 0
        self._errors = 0
        self._elapsed_ms = 0
        self._last_cleanup_time: datetime | None = None

    def reset(self) -> None:
        """Zero all counters. Called at the start of each run."""
        with self._lock:
            self._processed_folders = 0
            self._deleted_folders = 0
            self._skipped_folders = 0
            self._deleted_files = 0
            self._skipped_files = 0
            self._errors = 0
            self._elapsed_ms = 0
            self._last_cleanup_time = None

    def add_processed_folder(self, count: int = 1) -> None:
        with self._lock:
            self._processed_folders += count

    def add_deleted_folder(self, count: int = 1) -> None:
        with self._lock:
            self._deleted_folders += count

    def add_skipped_folder(self, count: int = 1) -> None:
        with self._lock:
            self._skipped_folders += count

    def add_deleted_file(self, count: int = 1) -> None:
        with self._lock:
            self._deleted_files += count

    def add_skipped_file(self, count: int = 1) -> None:
        with self._lock:
            self._skipped_files += count

    def add_error(self, count: int = 1) -> None:
        with self._lock:
            self._errors += count

    def finish(self, elapsed_ms: int) -> None:
        """Record the run duration and completion time.

        Args:
            elapsed_ms: Duration of the run in milliseconds.
        """
        with self._lock:
            self._elapsed_ms = elapsed_ms
            self._last_cleanup_time = datetime.now(UTC)

    @property
    def errors(self) -> int:
        """Current error count."""
        with self._lock:
            return self._errors

    def snapshot(self) -> StatisticsSnapshot:
        """Return an immutable copy of the current counters."""
        with self._lock:
            return StatisticsSnapshot(
                processed_folders=self._processed_folders,
                deleted_folders=self._deleted_folders,
                skipped_folders=self._skipped_folders,
                deleted_files=self._deleted_files,
                skipped_files=self._skipped_files,
                errors=self._errors,
                elapsed_ms=self._elapsed_ms,
                last_cleanup_time=self._last_cleanup_time,
            )
