"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cleanbin.models.candidate import CandidateFile, FileAttributes, FileMetadata
from cleanbin.models.profile import ConfigurationProfile

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and state directories into the test's tmp_path."""
    xdg = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(xdg / "state"))
    return xdg


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for classification tests."""
    return NOW


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """Create a project with root-level and nested build output.

    Layout::

        project/
            bin/app.dll, bin/Debug/app.pdb
            obj/project.assets.json
            src/main.cs
            src/bin/lib.dll
            src/obj/cache.txt
    """
    root = tmp_path / "project"
    files = {
        "bin/app.dll": "binary",
        "bin/Debug/app.pdb": "symbols",
        "obj/project.assets.json": "{}",
        "src/main.cs": "class Program {}",
        "src/bin/lib.dll": "library",
        "src/obj/cache.txt": "cache",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def bin_obj_profile() -> ConfigurationProfile:
    """Profile cleaning bin and obj with nothing ignored, caching off."""
    return ConfigurationProfile(
        name="test",
        clean_directories=["bin", "obj"],
        ignore_directories=[],
        enable_caching=False,
        confirm_deletion=False,
        max_parallel_threads=4,
    )


def _make_metadata(
    name: str = "app.dll",
    size: int = 1024,
    modified: datetime | None = None,
    attributes: FileAttributes = FileAttributes.NONE,
    directory: str = "/work/project/bin",
) -> FileMetadata:
    """Create FileMetadata for classifier tests."""
    modified = modified or NOW - timedelta(days=2)
    suffix = Path(name).suffix.lower()
    return FileMetadata(
        path=f"{directory}/{name}",
        name=name,
        extension=suffix,
        size=size,
        created=modified,
        modified=modified,
        accessed=modified,
        attributes=attributes,
    )


def _make_candidate(path: Path | str, safe: bool = True, size: int = 10) -> CandidateFile:
    """Create a CandidateFile pointing at ``path``."""
    path = Path(path)
    return CandidateFile(
        path=str(path),
        name=path.name,
        size=size,
        created=NOW,
        modified=NOW,
        accessed=NOW,
        attributes=FileAttributes.NONE,
        extension=path.suffix.lower(),
        directory=str(path.parent),
        removal_reason="Clean directory: bin",
        priority=3,
        safe_to_delete=safe,
    )


@pytest.fixture
def make_metadata():
    """Factory fixture building FileMetadata for classifier tests."""
    return _make_metadata


@pytest.fixture
def make_candidate():
    """Factory fixture building CandidateFile instances for a path."""
    return _make_candidate
