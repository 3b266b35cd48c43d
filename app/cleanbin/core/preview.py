"""Cleanup preview service.

The preview resolves a profile against a root directory and returns every
file a cleanup would touch, classified for safety and priority. It never
modifies the filesystem.
"""

import fnmatch
import logging
import os
from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from cleanbin.core.cancellation import CancellationToken, check_cancelled
from cleanbin.core.classifier import classify
from cleanbin.core.progress import ProgressSink, safe_report
from cleanbin.core.traversal import TraversalEngine
from cleanbin.models.candidate import CandidateFile, FileMetadata
from cleanbin.models.profile import ConfigurationProfile
from cleanbin.models.statistics import CleanupStatistics
from cleanbin.utils.formatting import format_size

logger = logging.getLogger(__name__)

DEFAULT_FILE_FILTERS: tuple[str, ...] = ("*",)


@dataclass(frozen=True, slots=True)
class PreviewStatistics:
    """Aggregate view over a list of candidates.

    Attributes:
        total_files: Number of candidates.
        total_size: Combined size in bytes.
        safe_files: Candidates that may be deleted.
        files_with_warnings: Candidates with at least one warning.
        by_priority: Candidate count per priority.
        by_extension: Candidate count per lower-case extension.
        by_reason: Candidate count per removal reason.
    """

    total_files: int = 0
    total_size: int = 0
    safe_files: int = 0
    files_with_warnings: int = 0
    by_priority: dict[int, int] = field(default_factory=dict)
    by_extension: dict[str, int] = field(default_factory=dict)
    by_reason: dict[str, int] = field(default_factory=dict)

    @property
    def formatted_size(self) -> str:
        """Human-readable total size."""
        return format_size(self.total_size)

    @property
    def safe_percentage(self) -> float:
        """Share of safe candidates, 0-100."""
        if self.total_files == 0:
            return 0.0
        return self.safe_files / self.total_files * 100


def matches_filters(name: str, patterns: Iterable[str]) -> bool:
    """Check a file name against glob patterns, case-insensitively."""
    lowered = name.lower()
    return any(fnmatch.fnmatchcase(lowered, pattern.lower()) for pattern in patterns)


class PreviewService:
    """Builds classified candidate lists for a root directory.

    Args:
        stats: Optional statistics updated by the discovery walk.
        sink: Optional progress sink.
        clock: Returns the reference time for age filters and the classifier.
    """

    def __init__(
        self,
        stats: CleanupStatistics | None = None,
        sink: ProgressSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._stats = stats
        self._sink = sink
        self._clock = clock or (lambda: datetime.now(UTC))

    def find_clean_directories(
        self,
        root: Path,
        profile: ConfigurationProfile,
        token: CancellationToken | None = None,
    ) -> list[Path]:
        """Discover clean directories below ``root`` in breadth-first order."""
        engine = TraversalEngine(
            profile.effective_clean_directories,
            profile.ignore_directories,
            system_clean=profile.enable_system_clean,
            stats=self._stats,
            sink=self._sink,
        )
        return engine.discover(root, token)

    def get_preview(
        self,
        root: Path,
        profile: ConfigurationProfile,
        token: CancellationToken | None = None,
    ) -> list[CandidateFile]:
        """List every file a cleanup of ``root`` would delete.

        Args:
            root: Validated root directory.
            profile: Profile providing clean/ignore names and filters.
            token: Optional cancellation token.

        Returns:
            Classified candidates, grouped by clean directory in discovery
            order and sorted by path within each directory.

        Raises:
            OperationCancelledError: If cancellation was requested.
            OSError: If the root cannot be listed.
        """
        directories = self.find_clean_directories(root, profile, token)
        candidates = self.get_candidates(directories, profile, token)
        logger.info("Found %d candidate files in %s", len(candidates), root)
        return candidates

    def get_candidates(
        self,
        directories: Iterable[Path],
        profile: ConfigurationProfile,
        token: CancellationToken | None = None,
    ) -> list[CandidateFile]:
        """Enumerate and classify the files inside already discovered clean directories.

        Per-file metadata errors are logged and the file is skipped.

        Raises:
            OperationCancelledError: If cancellation was requested.
        """
        now = self._clock()
        patterns = tuple(profile.file_filters) or DEFAULT_FILE_FILTERS
        ignore = frozenset(profile.ignore_directories)
        candidates: list[CandidateFile] = []

        for directory in directories:
            reason = f"Clean directory: {directory.name}"
            for file_path in self._iter_files(directory, ignore, token):
                if not matches_filters(file_path.name, patterns):
                    continue
                try:
                    metadata = FileMetadata.from_path(file_path)
                except OSError as e:
                    logger.warning("Cannot read metadata for %s: %s", file_path, e)
                    continue
                if not self._passes_limits(metadata.size, metadata.modified, profile, now):
                    continue
                candidates.append(self._to_candidate(metadata, reason, now))

        safe_report(self._sink, f"Preview: {len(candidates)} files found")
        return candidates

    def filter_files(
        self,
        files: Iterable[CandidateFile],
        profile: ConfigurationProfile,
    ) -> list[CandidateFile]:
        """Re-apply the profile's size, age and pattern filters to candidates."""
        now = self._clock()
        patterns = tuple(profile.file_filters) or DEFAULT_FILE_FILTERS
        return [
            item
            for item in files
            if matches_filters(item.name, patterns)
            and self._passes_limits(item.size, item.modified, profile, now)
        ]

    @staticmethod
    def get_statistics(items: Iterable[CandidateFile]) -> PreviewStatistics:
        """Summarize a candidate list."""
        candidates = list(items)
        return PreviewStatistics(
            total_files=len(candidates),
            total_size=sum(item.size for item in candidates),
            safe_files=sum(1 for item in candidates if item.safe_to_delete),
            files_with_warnings=sum(1 for item in candidates if item.warnings),
            by_priority=dict(Counter(item.priority for item in candidates)),
            by_extension=dict(Counter(item.extension.lower() for item in candidates)),
            by_reason=dict(Counter(item.removal_reason for item in candidates)),
        )

    @staticmethod
    def _passes_limits(
        size: int,
        modified: datetime,
        profile: ConfigurationProfile,
        now: datetime,
    ) -> bool:
        if profile.max_file_size > 0 and size > profile.max_file_size:
            return False
        # Only files older than max_file_age days survive
        return not (
            profile.max_file_age > 0 and modified > now - timedelta(days=profile.max_file_age)
        )

    @staticmethod
    def _iter_files(
        directory: Path,
        ignore: frozenset[str],
        token: CancellationToken | None,
    ) -> Iterator[Path]:
        """Yield regular files below ``directory`` in sorted order."""

        def on_error(error: OSError) -> None:
            logger.warning("Cannot scan %s: %s", error.filename, error)

        for current, dirnames, filenames in os.walk(directory, onerror=on_error):
            check_cancelled(token)
            dirnames[:] = sorted(name for name in dirnames if name not in ignore)
            for name in sorted(filenames):
                path = Path(current) / name
                if path.is_symlink():
                    logger.debug("Skipping symlink %s", path)
                    continue
                yield path

    @staticmethod
    def _to_candidate(
        metadata: FileMetadata,
        reason: str,
        now: datetime,
    ) -> CandidateFile:
        classification = classify(metadata, now)
        return CandidateFile(
            path=metadata.path,
            name=metadata.name,
            size=metadata.size,
            created=metadata.created,
            modified=metadata.modified,
            accessed=metadata.accessed,
            attributes=metadata.attributes,
            extension=metadata.extension,
            directory=str(Path(metadata.path).parent),
            removal_reason=reason,
            priority=classification.priority,
            safe_to_delete=classification.safe_to_delete,
            warnings=classification.warnings,
        )
