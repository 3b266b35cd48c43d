"""Breadth-first, tree-pruning directory traversal.

The engine walks a root with an explicit FIFO work-list. Ignored names
are skipped without descending; clean names (and hidden names in system
clean mode) are handed to an ``on_match`` strategy without descending;
every other directory has its children enqueued. Two strategies exist:
sweep (delete the matched subtree) and discovery (record the match).
"""

import logging
import shutil
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from cleanbin.core.cancellation import CancellationToken, check_cancelled
from cleanbin.core.progress import ProgressSink, safe_report
from cleanbin.core.validator import is_hidden_style_path
from cleanbin.models.statistics import CleanupStatistics

logger = logging.getLogger(__name__)

MatchHandler = Callable[[Path], None]


@dataclass(frozen=True, slots=True)
class TraversalResult:
    """Outcome of a single walk.

    Attributes:
        processed: Number of directories dequeued.
        matched: Matched clean directories in visit order.
        skipped: Ignored directories in visit order.
        errors: Number of per-directory failures.
    """

    processed: int
    matched: tuple[Path, ...]
    skipped: tuple[Path, ...]
    errors: int


def _sorted_subdirectories(directory: Path) -> list[Path]:
    """List real (non-symlink) subdirectories sorted by name.

    Raises:
        OSError: If the directory cannot be listed.
    """
    children = [
        child for child in directory.iterdir() if child.is_dir() and not child.is_symlink()
    ]
    return sorted(children, key=lambda child: child.name)


def remove_tree(path: Path) -> None:
    """Sweep strategy: delete a matched directory and everything below it.

    Raises:
        OSError: If the tree cannot be removed.
    """
    shutil.rmtree(path)


class TraversalEngine:
    """Tree-pruning BFS over a directory hierarchy.

    Args:
        clean_names: Directory basenames handed to ``on_match``.
        ignore_names: Directory basenames skipped entirely. Ignore wins
            over clean when a name is in both sets.
        system_clean: Also match hidden-style directory names.
        stats: Shared statistics updated during the walk.
        sink: Progress sink for status messages.
    """

    def __init__(
        self,
        clean_names: Iterable[str],
        ignore_names: Iterable[str] = (),
        *,
        system_clean: bool = False,
        stats: CleanupStatistics | None = None,
        sink: ProgressSink | None = None,
    ) -> None:
        self._clean = frozenset(clean_names)
        self._ignore = frozenset(ignore_names)
        self._system_clean = system_clean
        self._stats = stats
        self._sink = sink

    def _is_match(self, directory: Path) -> bool:
        if directory.name in self._clean:
            return True
        return self._system_clean and is_hidden_style_path(directory)

    def walk(
        self,
        root: Path,
        on_match: MatchHandler,
        token: CancellationToken | None = None,
    ) -> TraversalResult:
        """Walk ``root`` breadth-first.

        Args:
            root: Directory whose subdirectories are traversed. The root
                itself is never matched.
            on_match: Strategy invoked for each matched directory. An
                OSError raised by it is counted as an error.
            token: Optional cancellation token, checked once per dequeue.

        Returns:
            TraversalResult for the walk.

        Raises:
            OSError: If the root itself cannot be listed.
            OperationCancelledError: If cancellation was requested.
        """
        queue: deque[Path] = deque(_sorted_subdirectories(root))
        processed = 0
        errors = 0
        matched: list[Path] = []
        skipped: list[Path] = []

        while queue:
            check_cancelled(token)
            directory = queue.popleft()
            processed += 1
            if self._stats is not None:
                self._stats.add_processed_folder()
            safe_report(self._sink, f"Processing: {directory}")

            if directory.name in self._ignore:
                logger.debug("Skipping ignored directory %s", directory)
                skipped.append(directory)
                if self._stats is not None:
                    self._stats.add_skipped_folder()
                continue

            if self._is_match(directory):
                try:
                    on_match(directory)
                except OSError as e:
                    errors += 1
                    if self._stats is not None:
                        self._stats.add_error()
                    logger.warning("Failed to process %s: %s", directory, e)
                    safe_report(self._sink, f"Error: {directory} - {e}")
                else:
                    matched.append(directory)
                continue

            try:
                queue.extend(_sorted_subdirectories(directory))
            except OSError as e:
                errors += 1
                if self._stats is not None:
                    self._stats.add_error()
                logger.warning("Cannot list %s: %s", directory, e)
                safe_report(self._sink, f"Access error: {directory} - {e}")

        return TraversalResult(
            processed=processed,
            matched=tuple(matched),
            skipped=tuple(skipped),
            errors=errors,
        )

    def sweep(self, root: Path, token: CancellationToken | None = None) -> TraversalResult:
        """Delete every matched directory below ``root``."""

        def delete(directory: Path) -> None:
            remove_tree(directory)
            if self._stats is not None:
                self._stats.add_deleted_folder()
            logger.info("Deleted %s", directory)
            safe_report(self._sink, f"Deleted: {directory}")

        return self.walk(root, delete, token)

    def discover(self, root: Path, token: CancellationToken | None = None) -> list[Path]:
        """Return matched directories below ``root`` without modifying anything."""
        result = self.walk(root, lambda directory: None, token)
        return list(result.matched)
