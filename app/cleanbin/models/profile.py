"""Configuration profile model.

This module defines the Pydantic model describing one cleanup profile:
which directory names to clean or ignore, which files qualify, and how
backups, parallelism and caching behave during a run.
"""

import os
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Directory names cleaned when a profile lists none
DEFAULT_CLEAN_DIRECTORIES: tuple[str, ...] = (
    "bin",
    "obj",
    "packages",
    "node_modules",
    ".vs",
    "Debug",
    "Release",
)

LogLevelType = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _default_thread_count() -> int:
    return os.cpu_count() or 4


class ConfigurationProfile(BaseModel):
    """Cleanup configuration profile.

    Attributes:
        name: Profile name.
        description: Optional human-readable description.
        clean_directories: Directory names whose contents are removed.
        ignore_directories: Directory names never entered or removed.
        enable_system_clean: Also treat hidden directories as clean targets.
        file_filters: Glob patterns selecting files inside clean directories.
        max_file_size: Skip files larger than this many bytes (0 = unlimited).
        max_file_age: Only files older than this many days qualify (0 = disabled).
        create_backups: Copy files to a backup set before deleting them.
        backup_path: Root directory that holds backup sets.
        backup_retention_days: Delete backup sets older than this (0 = keep forever).
        enable_parallel_processing: Delete files with bounded concurrency.
        max_parallel_threads: Maximum number of concurrent deletions.
        enable_caching: Memoize completed runs in the result cache.
        cache_lifetime_minutes: Time-to-live of cached results.
        show_preview: Show the candidate list before deletion.
        confirm_deletion: Ask for confirmation before deletion.
        log_level: Logging level used by the CLI.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(min_length=1, description="Profile name")] = "default"
    description: Annotated[str, Field(description="Profile description")] = ""
    clean_directories: Annotated[
        list[str],
        Field(
            default_factory=lambda: list(DEFAULT_CLEAN_DIRECTORIES),
            description="Directory names to clean",
        ),
    ]
    ignore_directories: Annotated[
        list[str],
        Field(
            default_factory=lambda: [".git"],
            description="Directory names to skip",
        ),
    ]
    enable_system_clean: Annotated[
        bool, Field(description="Treat hidden directories as clean targets")
    ] = False
    file_filters: Annotated[
        list[str],
        Field(default_factory=lambda: ["*"], description="Glob patterns for files"),
    ]
    max_file_size: Annotated[int, Field(ge=0, description="Maximum file size in bytes")] = 0
    max_file_age: Annotated[int, Field(ge=0, description="Minimum file age in days")] = 0
    create_backups: Annotated[bool, Field(description="Back up files before deletion")] = False
    backup_path: Annotated[str, Field(description="Backup root directory")] = ""
    backup_retention_days: Annotated[
        int, Field(ge=0, description="Days to keep backup sets")
    ] = 0
    enable_parallel_processing: Annotated[
        bool, Field(description="Delete files concurrently")
    ] = True
    max_parallel_threads: Annotated[
        int,
        Field(default_factory=_default_thread_count, gt=0, description="Concurrency limit"),
    ]
    enable_caching: Annotated[bool, Field(description="Cache completed runs")] = True
    cache_lifetime_minutes: Annotated[
        int, Field(gt=0, description="Cache time-to-live in minutes")
    ] = 60
    show_preview: Annotated[bool, Field(description="Show preview before deletion")] = True
    confirm_deletion: Annotated[bool, Field(description="Confirm before deletion")] = True
    log_level: Annotated[LogLevelType, Field(description="Logging level")] = "INFO"

    @field_validator("clean_directories", "ignore_directories")
    @classmethod
    def validate_names(cls, value: list[str]) -> list[str]:
        """Reject blank directory names and strip whitespace."""
        stripped = [name.strip() for name in value]
        if any(not name for name in stripped):
            msg = "Directory names cannot be blank"
            raise ValueError(msg)
        return stripped

    @field_validator("file_filters")
    @classmethod
    def validate_filters(cls, value: list[str]) -> list[str]:
        """Drop blank patterns and duplicates while preserving order."""
        seen: dict[str, None] = {}
        for pattern in value:
            pattern = pattern.strip()
            if pattern:
                seen.setdefault(pattern, None)
        return list(seen)

    @model_validator(mode="after")
    def validate_backup_path(self) -> "ConfigurationProfile":
        """Require a backup path when backups are enabled."""
        if self.create_backups and not self.backup_path.strip():
            msg = "backup_path is required when create_backups is enabled"
            raise ValueError(msg)
        return self

    @property
    def effective_clean_directories(self) -> tuple[str, ...]:
        """Clean directory names, falling back to the standard set."""
        return tuple(self.clean_directories) or DEFAULT_CLEAN_DIRECTORIES

    @property
    def cache_ttl_seconds(self) -> float:
        """Cache time-to-live in seconds."""
        return self.cache_lifetime_minutes * 60.0
