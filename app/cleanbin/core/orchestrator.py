"""Cleanup orchestrator.

Sequences a cleanup run as a small state machine::

    VALIDATING -> PREVIEWING -> (BACKING_UP) -> DELETING -> (CACHING) -> REPORTED
                                                                     \\-> FAILED

Validation and critical path failures abort before the filesystem is
touched. Backup, retention and caching are best-effort: their failures
become report warnings. Public operations never raise; they return an
OperationResult instead.
"""

import asyncio
import logging
import os
import threading
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import Any

from cleanbin.backup.base import BackupBackend, BackupError
from cleanbin.backup.service import FilesystemBackupService
from cleanbin.cache.base import CacheBackend, cache_key_for
from cleanbin.cache.memory import MemoryCache
from cleanbin.core.cancellation import CancellationToken, check_cancelled
from cleanbin.core.errors import CleanbinError, OperationCancelledError
from cleanbin.core.executor import DeletionExecutor
from cleanbin.core.preview import PreviewService
from cleanbin.core.progress import ProgressSink, safe_report
from cleanbin.core.traversal import TraversalEngine
from cleanbin.core.validator import (
    PathValidationError,
    is_critical_system_path,
    validate_names,
    validate_path,
)
from cleanbin.models.backup import BackupRecord
from cleanbin.models.candidate import CandidateFile
from cleanbin.models.profile import ConfigurationProfile
from cleanbin.models.report import CleanupReport, RunState
from cleanbin.models.result import ErrorKind, OperationResult
from cleanbin.models.statistics import CleanupStatistics, StatisticsSnapshot

logger = logging.getLogger(__name__)


class CriticalPathError(CleanbinError):
    """Raised when a cleanup targets a critical system path."""


class CleanupOrchestrator:
    """Runs cleanups against a root directory.

    One orchestrator performs at most one run at a time and owns the
    statistics of its latest run.

    Args:
        profile: Default profile for runs that do not pass one.
        backup: Backup backend. Defaults to FilesystemBackupService.
        cache: Result cache. Defaults to a MemoryCache using the profile TTL.
        sink: Progress sink receiving status messages.
        clock: Returns the current time for previews and backups.
    """

    def __init__(
        self,
        profile: ConfigurationProfile | None = None,
        backup: BackupBackend | None = None,
        cache: CacheBackend | None = None,
        sink: ProgressSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._profile = profile or ConfigurationProfile()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._backup = backup or FilesystemBackupService(clock=self._clock)
        self._owns_cache = cache is None
        self._cache = cache or MemoryCache(default_ttl=self._profile.cache_ttl_seconds)
        self._sink = sink
        self._stats = CleanupStatistics()
        self._run_lock = threading.Lock()
        self._state = RunState.IDLE
        self._states: list[RunState] = []
        self._started = time.monotonic()

    @property
    def profile(self) -> ConfigurationProfile:
        return self._profile

    @property
    def state(self) -> RunState:
        """State of the current or most recent run."""
        return self._state

    @property
    def states(self) -> tuple[RunState, ...]:
        """States visited by the current or most recent run."""
        return tuple(self._states)

    def _enter(self, state: RunState) -> None:
        logger.debug("Cleanup state: %s -> %s", self._state.value, state.value)
        self._state = state
        self._states.append(state)

    def _report(self, message: str) -> None:
        safe_report(self._sink, message)

    def _elapsed_ms(self) -> int:
        return int((time.monotonic() - self._started) * 1000)

    # Public operations

    def get_directories(self, path: str | os.PathLike[str]) -> OperationResult[list[str]]:
        """List the immediate subdirectories of a validated root, sorted by name."""
        try:
            root = self._validate_root(path)
            directories = sorted(
                (child for child in root.iterdir() if child.is_dir()),
                key=lambda child: child.name,
            )
        except PathValidationError as e:
            return OperationResult.fail(str(e), ErrorKind.VALIDATION, e)
        except CriticalPathError as e:
            return OperationResult.fail(str(e), ErrorKind.CRITICAL_PATH, e)
        except OSError as e:
            logger.warning("Cannot list %s: %s", path, e)
            return OperationResult.fail(f"Cannot list directories: {e}", ErrorKind.UNEXPECTED, e)
        return OperationResult.ok([str(directory) for directory in directories])

    def clean_folder(
        self,
        path: str | os.PathLike[str],
        profile: ConfigurationProfile | None = None,
        token: CancellationToken | None = None,
    ) -> OperationResult[CleanupReport]:
        """Clean a root directory according to a profile.

        Args:
            path: Root directory to clean.
            profile: Profile for this run. Defaults to the orchestrator's.
            token: Optional cancellation token.

        Returns:
            OperationResult with the CleanupReport, or a failure with an
            ErrorKind of VALIDATION, CRITICAL_PATH, CANCELLED or UNEXPECTED.
        """
        return self._guarded(lambda: self._clean(path, profile or self._profile, token))

    async def clean_folder_async(
        self,
        path: str | os.PathLike[str],
        profile: ConfigurationProfile | None = None,
        token: CancellationToken | None = None,
    ) -> OperationResult[CleanupReport]:
        """Run ``clean_folder`` on a worker thread.

        Cancelling the awaiting task requests cancellation of the run
        through the token.
        """
        run_token = token or CancellationToken()
        try:
            return await asyncio.to_thread(self.clean_folder, path, profile, run_token)
        except asyncio.CancelledError:
            run_token.cancel()
            raise

    def sweep_folder(
        self,
        path: str | os.PathLike[str],
        profile: ConfigurationProfile | None = None,
        token: CancellationToken | None = None,
    ) -> OperationResult[CleanupReport]:
        """Delete every matching clean directory wholesale, without preview or backup.

        Args:
            path: Root directory to sweep.
            profile: Profile providing clean/ignore names.
            token: Optional cancellation token.

        Returns:
            OperationResult with a CleanupReport listing removed directories.
        """
        return self._guarded(lambda: self._sweep(path, profile or self._profile, token))

    def get_statistics(self) -> OperationResult[StatisticsSnapshot]:
        """Return the statistics of the most recent run."""
        return OperationResult.ok(self._stats.snapshot())

    def get_cached_result(self, path: str | os.PathLike[str]) -> OperationResult[dict[str, Any]]:
        """Return the cached outcome of the last cleanup of ``path``, if still live."""
        try:
            value = self._cache.get(cache_key_for(path))
        except ValueError as e:
            return OperationResult.fail(str(e), ErrorKind.VALIDATION, e)
        return OperationResult.ok(value)

    def close(self) -> None:
        """Release the default cache's sweeper thread."""
        if self._owns_cache and isinstance(self._cache, MemoryCache):
            self._cache.close()

    def __enter__(self) -> "CleanupOrchestrator":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # Run machinery

    def _guarded(self, run: Callable[[], CleanupReport]) -> OperationResult[CleanupReport]:
        """Execute a run and convert exceptions into a failed result."""
        if not self._run_lock.acquire(blocking=False):
            return OperationResult.fail("A cleanup is already running", ErrorKind.UNEXPECTED)

        self._stats.reset()
        self._states = []
        self._state = RunState.IDLE
        self._started = time.monotonic()
        try:
            return OperationResult.ok(run())
        except OperationCancelledError as e:
            self._enter(RunState.FAILED)
            logger.info("Cleanup cancelled")
            self._report("Cleanup cancelled")
            return OperationResult.fail(str(e), ErrorKind.CANCELLED, e)
        except PathValidationError as e:
            self._enter(RunState.FAILED)
            logger.warning("Validation failed: %s", e)
            return OperationResult.fail(str(e), ErrorKind.VALIDATION, e)
        except CriticalPathError as e:
            self._enter(RunState.FAILED)
            logger.error("%s", e)
            return OperationResult.fail(str(e), ErrorKind.CRITICAL_PATH, e)
        except Exception as e:
            self._enter(RunState.FAILED)
            logger.exception("Cleanup failed")
            return OperationResult.fail(f"Cleanup failed: {e}", ErrorKind.UNEXPECTED, e)
        finally:
            self._stats.finish(self._elapsed_ms())
            self._run_lock.release()

    def _validate_root(self, path: str | os.PathLike[str] | None) -> Path:
        validate_path(None if path is None else os.fspath(path))
        if is_critical_system_path(os.fspath(path)):
            msg = f"Refusing to operate on critical system path: {path}"
            raise CriticalPathError(msg)
        return Path(os.fspath(path)).absolute()

    def _validate(
        self, path: str | os.PathLike[str], profile: ConfigurationProfile
    ) -> Path:
        self._enter(RunState.VALIDATING)
        root = self._validate_root(path)
        validate_names(profile.clean_directories)
        validate_names(profile.ignore_directories)
        return root

    def _clean(
        self,
        path: str | os.PathLike[str],
        profile: ConfigurationProfile,
        token: CancellationToken | None,
    ) -> CleanupReport:
        root = self._validate(path, profile)
        logger.info("Starting cleanup of %s with profile '%s'", root, profile.name)
        self._report(f"Starting cleanup: {root}")

        self._enter(RunState.PREVIEWING)
        preview = PreviewService(stats=self._stats, sink=self._sink, clock=self._clock)
        directories = preview.find_clean_directories(root, profile, token)
        candidates = preview.get_candidates(directories, profile, token)
        if not candidates:
            self._enter(RunState.REPORTED)
            self._report("Nothing to clean")
            return self._build_report(root, [], (), (), (), (), None, [])

        safe = [item for item in candidates if item.safe_to_delete]
        unsafe = [item for item in candidates if not item.safe_to_delete]
        for item in unsafe:
            logger.warning("Skipping unsafe file %s (%s)", item.path, ", ".join(item.warnings))
            self._report(f"Skipped: {item.path}")
        self._stats.add_skipped_file(len(unsafe))

        warnings: list[str] = []
        backup_record = None
        if profile.create_backups and safe:
            self._enter(RunState.BACKING_UP)
            backup_record = self._run_backup(root, safe, profile, token, warnings)

        self._enter(RunState.DELETING)
        executor = DeletionExecutor(stats=self._stats, sink=self._sink)
        result = executor.delete(
            safe,
            parallel=profile.enable_parallel_processing,
            max_workers=profile.max_parallel_threads,
            token=token,
        )
        removed_dirs = self._prune_directories(directories, token)

        if profile.enable_caching:
            self._enter(RunState.CACHING)
            self._store_result(root, result.deleted, profile, warnings)

        self._enter(RunState.REPORTED)
        logger.info(
            "Cleanup of %s finished: %d deleted, %d skipped, %d failed",
            root,
            len(result.deleted),
            len(unsafe),
            len(result.failed),
        )
        self._report(f"Cleanup finished: {len(result.deleted)} files deleted")
        return self._build_report(
            root,
            candidates,
            result.deleted,
            tuple(item.path for item in unsafe),
            result.failed,
            removed_dirs,
            backup_record,
            warnings,
        )

    def _sweep(
        self,
        path: str | os.PathLike[str],
        profile: ConfigurationProfile,
        token: CancellationToken | None,
    ) -> CleanupReport:
        root = self._validate(path, profile)
        logger.info("Sweeping %s with profile '%s'", root, profile.name)
        self._enter(RunState.DELETING)
        engine = TraversalEngine(
            profile.effective_clean_directories,
            profile.ignore_directories,
            system_clean=profile.enable_system_clean,
            stats=self._stats,
            sink=self._sink,
        )
        result = engine.sweep(root, token)
        self._enter(RunState.REPORTED)
        return self._build_report(
            root, [], (), (), (), tuple(str(d) for d in result.matched), None, []
        )

    def _run_backup(
        self,
        root: Path,
        files: Sequence[CandidateFile],
        profile: ConfigurationProfile,
        token: CancellationToken | None,
        warnings: list[str],
    ) -> BackupRecord | None:
        """Back up files before deletion. Failures become warnings."""
        backup_root = Path(profile.backup_path).expanduser()
        try:
            record = self._backup.create_backup(
                [Path(item.path) for item in files], backup_root, token, source_root=root
            )
        except (BackupError, OSError) as e:
            logger.warning("Backup failed, continuing without backup: %s", e)
            warnings.append(f"Backup failed: {e}")
            return None

        self._report(f"Backup created: {record.backup_path}")
        if profile.backup_retention_days > 0:
            try:
                removed = self._backup.cleanup_old_backups(
                    backup_root, profile.backup_retention_days
                )
            except Exception as e:
                # Retention never aborts the run
                logger.warning("Backup retention sweep failed: %s", e, exc_info=True)
                warnings.append(f"Backup retention sweep failed: {e}")
            else:
                if removed:
                    logger.info("Removed %d expired backups", removed)
        return record

    def _prune_directories(
        self, directories: Sequence[Path], token: CancellationToken | None
    ) -> tuple[str, ...]:
        """Remove clean directories, and their subdirectories, left empty by deletion."""
        removed: list[str] = []
        for directory in directories:
            check_cancelled(token)
            for current, _dirnames, _filenames in os.walk(directory, topdown=False):
                current_path = Path(current)
                try:
                    if any(current_path.iterdir()):
                        continue
                    current_path.rmdir()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    self._stats.add_error()
                    logger.warning("Cannot remove directory %s: %s", current_path, e)
                    continue
                if current_path == directory:
                    removed.append(str(directory))
                    self._stats.add_deleted_folder()
                    self._report(f"Deleted: {directory}")
        return tuple(removed)

    def _store_result(
        self,
        root: Path,
        deleted: Sequence[str],
        profile: ConfigurationProfile,
        warnings: list[str],
    ) -> None:
        """Memoize the run outcome. Failures become warnings."""
        payload = {
            "path": str(root),
            "deleted_files": list(deleted),
            "timestamp": self._clock().isoformat(),
            "count": len(deleted),
        }
        try:
            self._cache.set(cache_key_for(root), payload, ttl=profile.cache_ttl_seconds)
        except Exception as e:
            logger.warning("Caching cleanup result failed: %s", e)
            warnings.append(f"Caching failed: {e}")

    def _build_report(
        self,
        root: Path,
        candidates: Sequence[CandidateFile],
        deleted: Sequence[str],
        skipped: Sequence[str],
        failed: Sequence[str],
        deleted_folders: Sequence[str],
        backup: BackupRecord | None,
        warnings: Sequence[str],
    ) -> CleanupReport:
        self._stats.finish(self._elapsed_ms())
        return CleanupReport(
            root=str(root),
            candidates=len(candidates),
            deleted_files=tuple(deleted),
            skipped_files=tuple(skipped),
            failed_files=tuple(failed),
            deleted_folders=tuple(deleted_folders),
            backup=backup,
            warnings=tuple(warnings),
            statistics=self._stats.snapshot(),
            states=tuple(self._states),
        )
