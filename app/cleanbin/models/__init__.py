"""Data models for cleanbin.

This module exports the core data structures used throughout the application.
"""

from cleanbin.models.backup import BackupFileEntry, BackupRecord, compute_checksum
from cleanbin.models.candidate import CandidateFile, FileAttributes, FileMetadata
from cleanbin.models.profile import DEFAULT_CLEAN_DIRECTORIES, ConfigurationProfile
from cleanbin.models.report import CleanupReport, RunState
from cleanbin.models.result import ErrorKind, OperationResult
from cleanbin.models.statistics import CleanupStatistics, StatisticsSnapshot

__all__ = [
    "DEFAULT_CLEAN_DIRECTORIES",
    "BackupFileEntry",
    "BackupRecord",
    "CandidateFile",
    "CleanupReport",
    "CleanupStatistics",
    "ConfigurationProfile",
    "ErrorKind",
    "FileAttributes",
    "FileMetadata",
    "OperationResult",
    "RunState",
    "StatisticsSnapshot",
    "compute_checksum",
]
