"""Cleanup run report model."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from cleanbin.models.backup import BackupRecord
from cleanbin.models.statistics import StatisticsSnapshot


class RunState(str, Enum):
    """States of a cleanup run.

    A run moves through VALIDATING, PREVIEWING, optionally BACKING_UP,
    DELETING, optionally CACHING and ends in REPORTED. FAILED is the
    terminal state for aborted runs.
    """

    IDLE = "idle"
    VALIDATING = "validating"
    PREVIEWING = "previewing"
    BACKING_UP = "backing_up"
    DELETING = "deleting"
    CACHING = "caching"
    REPORTED = "reported"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CleanupReport:
    """Final report of a cleanup run.

    Attributes:
        root: Cleaned root directory.
        candidates: Number of files found by the preview.
        deleted_files: Deleted file paths.
        skipped_files: Unsafe candidates that were not deleted.
        failed_files: Files whose deletion failed.
        deleted_folders: Clean directories removed.
        backup: Backup created before deletion, if any.
        warnings: Best-effort failures (backup, caching, ...).
        statistics: Counters at the end of the run.
        states: States visited by the run, in order.
    """

    root: str
    candidates: int
    deleted_files: tuple[str, ...]
    skipped_files: tuple[str, ...]
    failed_files: tuple[str, ...]
    deleted_folders: tuple[str, ...]
    backup: BackupRecord | None
    warnings: tuple[str, ...]
    statistics: StatisticsSnapshot
    states: tuple[RunState, ...] = ()

    @property
    def has_errors(self) -> bool:
        """Check if any per-item failure occurred."""
        return bool(self.failed_files) or self.statistics.errors > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "root": self.root,
            "candidates": self.candidates,
            "deleted_files": list(self.deleted_files),
            "skipped_files": list(self.skipped_files),
            "failed_files": list(self.failed_files),
            "deleted_folders": list(self.deleted_folders),
            "backup_id": self.backup.id if self.backup else None,
            "warnings": list(self.warnings),
            "statistics": self.statistics.to_dict(),
            "states": [state.value for state in self.states],
        }
