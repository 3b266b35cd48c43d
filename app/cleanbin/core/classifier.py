"""Per-file safety and priority classification.

The classifier is a pure function of file metadata and a reference time:
identical input always yields an identical Classification, which keeps
previews reproducible.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from cleanbin.models.candidate import FileAttributes, FileMetadata

TEMP_EXTENSIONS = frozenset({".tmp", ".temp"})
LOG_EXTENSIONS = frozenset({".log"})
CACHE_EXTENSIONS = frozenset({".cache"})
EXECUTABLE_EXTENSIONS = frozenset({".exe", ".dll", ".sys", ".bat", ".cmd", ".com", ".scr"})

LARGE_FILE_THRESHOLD = 100 * 1024 * 1024
RECENT_WINDOW = timedelta(hours=1)
STALE_AGE = timedelta(days=30)

WARNING_LARGE = "Large file"
WARNING_RECENT = "Recently modified"
WARNING_HIDDEN = "Hidden file"
WARNING_EXECUTABLE = "Executable file"


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classifying one file.

    Attributes:
        priority: 1 (delete first) to 3 (lowest priority).
        safe_to_delete: Whether the file may be deleted.
        warnings: Warnings in fixed order.
    """

    priority: int
    safe_to_delete: bool
    warnings: tuple[str, ...] = ()


def is_temp_file(metadata: FileMetadata) -> bool:
    """Check for temp-style files (.tmp/.temp or a leading ``~``)."""
    return metadata.extension in TEMP_EXTENSIONS or metadata.name.startswith("~")


def is_log_file(metadata: FileMetadata) -> bool:
    """Check for log-style files."""
    return metadata.extension in LOG_EXTENSIONS or "log" in metadata.name.lower()


def is_cache_file(metadata: FileMetadata) -> bool:
    """Check for cache-style files."""
    return metadata.extension in CACHE_EXTENSIONS or "cache" in metadata.name.lower()


def get_priority(metadata: FileMetadata, now: datetime) -> int:
    """Compute the deletion priority; the first matching rule wins."""
    if is_temp_file(metadata):
        return 1
    if is_log_file(metadata):
        return 1
    if is_cache_file(metadata) or now - metadata.modified > STALE_AGE:
        return 2
    return 3


def is_safe_to_delete(metadata: FileMetadata) -> bool:
    """Check whether the file's attributes allow deletion."""
    attributes = metadata.attributes
    if FileAttributes.SYSTEM in attributes:
        return False
    if FileAttributes.HIDDEN in attributes and not is_temp_file(metadata):
        return False
    return FileAttributes.READ_ONLY not in attributes


def get_warnings(metadata: FileMetadata, now: datetime) -> tuple[str, ...]:
    """Collect every applicable warning in fixed order."""
    warnings: list[str] = []
    if metadata.size > LARGE_FILE_THRESHOLD:
        warnings.append(WARNING_LARGE)
    if now - metadata.modified < RECENT_WINDOW:
        warnings.append(WARNING_RECENT)
    if FileAttributes.HIDDEN in metadata.attributes:
        warnings.append(WARNING_HIDDEN)
    if metadata.extension in EXECUTABLE_EXTENSIONS:
        warnings.append(WARNING_EXECUTABLE)
    return tuple(warnings)


def classify(metadata: FileMetadata, now: datetime) -> Classification:
    """Classify a file for cleanup.

    Args:
        metadata: File metadata read from the filesystem.
        now: Reference time, timezone-aware like ``metadata.modified``.

    Returns:
        Classification with priority, safety flag and warnings.
    """
    return Classification(
        priority=get_priority(metadata, now),
        safe_to_delete=is_safe_to_delete(metadata),
        warnings=get_warnings(metadata, now),
    )
