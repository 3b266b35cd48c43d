"""Unit tests for the tree-pruning traversal engine."""

from pathlib import Path

import pytest
from cleanbin.core.cancellation import CancellationToken
from cleanbin.core.errors import OperationCancelledError
from cleanbin.core.progress import CollectingSink
from cleanbin.core.traversal import TraversalEngine
from cleanbin.models.statistics import CleanupStatistics


class TestDiscover:
    """Tests for discovery mode."""

    def test_finds_clean_directories_breadth_first(self, project_tree: Path) -> None:
        """Root-level matches come before nested ones, siblings sorted by name."""
        engine = TraversalEngine(["bin", "obj"])

        found = engine.discover(project_tree)

        assert found == [
            project_tree / "bin",
            project_tree / "obj",
            project_tree / "src" / "bin",
            project_tree / "src" / "obj",
        ]

    def test_does_not_descend_into_matches(self, project_tree: Path) -> None:
        """A clean directory nested in a clean directory is not reported twice."""
        engine = TraversalEngine(["bin", "Debug"])

        found = engine.discover(project_tree)

        assert project_tree / "bin" / "Debug" not in found

    def test_discover_never_modifies(self, project_tree: Path) -> None:
        """Discovery leaves the tree untouched."""
        TraversalEngine(["bin", "obj"]).discover(project_tree)

        assert (project_tree / "bin" / "app.dll").exists()
        assert (project_tree / "src" / "obj" / "cache.txt").exists()

    def test_root_is_never_matched(self, tmp_path: Path) -> None:
        """The root itself is not a candidate even if its name matches."""
        root = tmp_path / "bin"
        (root / "sub").mkdir(parents=True)

        assert TraversalEngine(["bin"]).discover(root) == []

    def test_ignore_wins_over_clean(self, project_tree: Path) -> None:
        """A name in both lists is skipped."""
        stats = CleanupStatistics()
        engine = TraversalEngine(["bin", "obj"], ["obj"], stats=stats)

        result = engine.walk(project_tree, lambda directory: None)

        assert project_tree / "obj" in result.skipped
        assert all(path.name != "obj" for path in result.matched)
        assert stats.snapshot().skipped_folders == 2

    def test_ignored_directories_are_not_descended(self, project_tree: Path) -> None:
        """Clean directories below an ignored directory are not found."""
        engine = TraversalEngine(["bin", "obj"], ["src"])

        found = engine.discover(project_tree)

        assert found == [project_tree / "bin", project_tree / "obj"]

    def test_matching_is_case_sensitive(self, tmp_path: Path) -> None:
        """'Bin' does not match the clean name 'bin'."""
        (tmp_path / "Bin").mkdir()

        assert TraversalEngine(["bin"]).discover(tmp_path) == []

    def test_system_clean_matches_hidden_names(self, tmp_path: Path) -> None:
        """Hidden-style directories match only in system clean mode."""
        (tmp_path / ".vs").mkdir()
        (tmp_path / "src").mkdir()

        assert TraversalEngine([]).discover(tmp_path) == []
        assert TraversalEngine([], system_clean=True).discover(tmp_path) == [tmp_path / ".vs"]

    def test_symlinked_directories_are_skipped(self, tmp_path: Path) -> None:
        """Symlinks to directories are never followed or matched."""
        target = tmp_path / "outside" / "bin"
        target.mkdir(parents=True)
        root = tmp_path / "root"
        root.mkdir()
        (root / "bin").symlink_to(target, target_is_directory=True)

        assert TraversalEngine(["bin"]).discover(root) == []

    def test_processed_count(self, project_tree: Path) -> None:
        """Every dequeued directory counts as processed."""
        stats = CleanupStatistics()
        engine = TraversalEngine(["bin", "obj"], stats=stats)

        result = engine.walk(project_tree, lambda directory: None)

        # bin, obj, src, src/bin, src/obj
        assert result.processed == 5
        assert stats.snapshot().processed_folders == 5


class TestSweep:
    """Tests for sweep mode."""

    def test_sweep_removes_matches(self, project_tree: Path) -> None:
        """Sweep deletes every matched subtree and keeps the rest."""
        stats = CleanupStatistics()
        engine = TraversalEngine(["bin", "obj"], stats=stats)

        result = engine.sweep(project_tree)

        assert not (project_tree / "bin").exists()
        assert not (project_tree / "obj").exists()
        assert not (project_tree / "src" / "bin").exists()
        assert not (project_tree / "src" / "obj").exists()
        assert (project_tree / "src" / "main.cs").read_text() == "class Program {}"
        assert len(result.matched) == 4
        assert stats.snapshot().deleted_folders == 4

    def test_sweep_is_idempotent(self, project_tree: Path) -> None:
        """A second sweep finds nothing to delete."""
        engine = TraversalEngine(["bin", "obj"])
        engine.sweep(project_tree)

        result = engine.sweep(project_tree)

        assert result.matched == ()
        assert result.errors == 0

    def test_sweep_reports_progress(self, project_tree: Path) -> None:
        """Deleted directories are reported to the sink."""
        sink = CollectingSink()
        TraversalEngine(["bin"], sink=sink).sweep(project_tree)

        assert f"Deleted: {project_tree / 'bin'}" in sink.messages


class TestErrors:
    """Tests for per-directory error handling."""

    def test_handler_failure_counts_error_and_continues(self, project_tree: Path) -> None:
        """An OSError from on_match is counted and the walk continues."""
        stats = CleanupStatistics()
        seen: list[Path] = []

        def handler(directory: Path) -> None:
            if directory.name == "bin":
                raise PermissionError("denied")
            seen.append(directory)

        result = TraversalEngine(["bin", "obj"], stats=stats).walk(project_tree, handler)

        assert result.errors == 2
        assert stats.snapshot().errors == 2
        assert seen == [project_tree / "obj", project_tree / "src" / "obj"]

    def test_failing_sink_does_not_abort(self, project_tree: Path) -> None:
        """A sink that raises is ignored."""

        class BrokenSink:
            def report(self, message: str) -> None:
                raise RuntimeError("display gone")

        found = TraversalEngine(["bin"], sink=BrokenSink()).discover(project_tree)

        assert len(found) == 2


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_token_stops_walk(self, project_tree: Path) -> None:
        """A pre-cancelled token raises before anything is touched."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            TraversalEngine(["bin", "obj"]).sweep(project_tree, token)

        assert (project_tree / "bin").exists()

    def test_cancel_mid_walk(self, project_tree: Path) -> None:
        """Cancelling from the handler stops at the next dequeue."""
        token = CancellationToken()
        seen: list[Path] = []

        def handler(directory: Path) -> None:
            seen.append(directory)
            token.cancel()

        with pytest.raises(OperationCancelledError):
            TraversalEngine(["bin", "obj"]).walk(project_tree, handler, token)

        assert seen == [project_tree / "bin"]
