"""Deletion executor.

Deletes classified candidate files either sequentially (input order) or
with bounded parallelism: one task per file on a thread pool, each gated
by a semaphore sized to the concurrency limit so that at most N
deletions are in flight. Per-file I/O errors are counted and never abort
the batch.
"""

import logging
import os
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from cleanbin.core.cancellation import CancellationToken, check_cancelled
from cleanbin.core.errors import OperationCancelledError
from cleanbin.core.progress import ProgressSink, safe_report
from cleanbin.models.candidate import CandidateFile
from cleanbin.models.statistics import CleanupStatistics

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 10
MAX_POOL_SIZE = 32
# Seconds between cancellation checks while waiting for a slot
SLOT_POLL_INTERVAL = 0.05


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """Outcome of a deletion batch.

    Attributes:
        deleted: Deleted paths. Input order in sequential mode, completion
            order in parallel mode.
        failed: Paths whose deletion raised an I/O error.
    """

    deleted: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


class DeletionExecutor:
    """Deletes safe candidate files.

    Args:
        stats: Shared statistics receiving deleted-file and error counts.
        sink: Optional progress sink.
    """

    def __init__(
        self,
        stats: CleanupStatistics | None = None,
        sink: ProgressSink | None = None,
    ) -> None:
        self._stats = stats or CleanupStatistics()
        self._sink = sink
        self._lock = threading.Lock()

    def delete(
        self,
        files: Sequence[CandidateFile],
        parallel: bool = True,
        max_workers: int = 4,
        token: CancellationToken | None = None,
    ) -> DeletionResult:
        """Delete the given files.

        Args:
            files: Candidates, all of which must be safe to delete.
            parallel: Use bounded-parallel mode instead of sequential.
            max_workers: Maximum number of concurrent deletions.
            token: Optional cancellation token.

        Returns:
            DeletionResult with deleted and failed paths.

        Raises:
            ValueError: If a file is not safe to delete or max_workers < 1.
            OperationCancelledError: If cancellation was requested.
        """
        unsafe = [item.path for item in files if not item.safe_to_delete]
        if unsafe:
            msg = f"Refusing to delete {len(unsafe)} unsafe files: {unsafe[:3]}"
            raise ValueError(msg)
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        if not files:
            return DeletionResult()

        if parallel:
            return self._delete_parallel(files, max_workers, token)
        return self._delete_sequential(files, token)

    def _remove(self, path: str) -> None:
        """Remove one file. A file that is already gone counts as removed.

        Raises:
            OSError: If removal fails for any other reason.
        """
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Already removed: %s", path)

    def _delete_one(self, path: str) -> bool:
        try:
            self._remove(path)
        except OSError as e:
            self._stats.add_error()
            logger.warning("Failed to delete %s: %s", path, e)
            safe_report(self._sink, f"Delete error: {path} - {e}")
            return False
        self._stats.add_deleted_file()
        logger.debug("Deleted %s", path)
        return True

    def _delete_sequential(
        self,
        files: Sequence[CandidateFile],
        token: CancellationToken | None,
    ) -> DeletionResult:
        deleted: list[str] = []
        failed: list[str] = []
        total = len(files)
        for index, item in enumerate(files, start=1):
            check_cancelled(token)
            if self._delete_one(item.path):
                deleted.append(item.path)
            else:
                failed.append(item.path)
            if index % PROGRESS_INTERVAL == 0:
                safe_report(self._sink, f"Deleted {index} of {total} files")
        safe_report(self._sink, f"Deleted {len(deleted)} of {total} files")
        return DeletionResult(deleted=tuple(deleted), failed=tuple(failed))

    def _delete_parallel(
        self,
        files: Sequence[CandidateFile],
        max_workers: int,
        token: CancellationToken | None,
    ) -> DeletionResult:
        gate = threading.Semaphore(max_workers)
        deleted: list[str] = []
        failed: list[str] = []
        total = len(files)

        def acquire_slot() -> None:
            while not gate.acquire(timeout=SLOT_POLL_INTERVAL):
                check_cancelled(token)
            if token is not None and token.is_cancelled:
                gate.release()
                raise OperationCancelledError()

        def worker(path: str) -> None:
            acquire_slot()
            try:
                ok = self._delete_one(path)
            finally:
                gate.release()
            with self._lock:
                (deleted if ok else failed).append(path)
                done = len(deleted) + len(failed)
            if done % PROGRESS_INTERVAL == 0:
                safe_report(self._sink, f"Deleted {done} of {total} files")

        pool_size = min(total, MAX_POOL_SIZE)
        cancelled: OperationCancelledError | None = None
        with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="cleanbin-delete") as pool:
            futures = [pool.submit(worker, item.path) for item in files]
            for future in futures:
                try:
                    future.result()
                except OperationCancelledError as e:
                    cancelled = e

        if cancelled is not None:
            raise cancelled
        safe_report(self._sink, f"Deleted {len(deleted)} of {total} files")
        return DeletionResult(deleted=tuple(deleted), failed=tuple(failed))
