"""Unit tests for snapshot state and result models."""

import time

import pytest
from file_monitor.models import (
    CorruptCache,
    ExactFile,
    FileChanged,
    FileExists,
    FileExistsHashed,
    FileMissing,
    FirstRun,
    GlobDirEntry,
    GlobFileEntry,
    GlobState,
    MonitorChanged,
    MonitorTimestamp,
    MonitorUnchanged,
    Snapshot,
    ValueChanged,
)
from pydantic import ValidationError


def file_entry(name, digest="aa"):
    return GlobFileEntry(name=name, state=FileExistsHashed(mtime_ns=1, digest=digest))


class TestMonitorTimestamp:
    """Test cases for snapshot timestamps."""

    def test_now_is_floored(self):
        """Test that the current time is floored to the resolution."""
        before = time.time_ns()
        timestamp = MonitorTimestamp.now(10_000_000)

        assert timestamp.ns % 10_000_000 == 0
        assert before - 10_000_000 < timestamp.ns <= time.time_ns()

    def test_is_within_window(self):
        """Test that mtimes at or after the timestamp fall inside the window."""
        timestamp = MonitorTimestamp(ns=100)

        assert not timestamp.is_within_window(99)
        assert timestamp.is_within_window(100)
        assert timestamp.is_within_window(101)

    def test_ordering(self):
        """Test comparing timestamps."""
        assert MonitorTimestamp(ns=1) < MonitorTimestamp(ns=2)
        assert MonitorTimestamp(ns=2) <= MonitorTimestamp(ns=2)
        assert not MonitorTimestamp(ns=3) <= MonitorTimestamp(ns=2)

    def test_negative_rejected(self):
        """Test that timestamps before the epoch are rejected."""
        with pytest.raises(ValidationError):
            MonitorTimestamp(ns=-1)


class TestGlobState:
    """Test cases for the sorted glob state tree."""

    def test_unsorted_files_rejected(self):
        """Test that file entries must be sorted by name."""
        with pytest.raises(ValidationError):
            GlobState(files=(file_entry("b"), file_entry("a")))

    def test_duplicate_files_rejected(self):
        """Test that file entries must be unique."""
        with pytest.raises(ValidationError):
            GlobState(files=(file_entry("a"), file_entry("a")))

    def test_unsorted_dirs_rejected(self):
        """Test that directory entries must be sorted by name."""
        with pytest.raises(ValidationError):
            GlobState(dirs=(GlobDirEntry(name="b", state=GlobState()), GlobDirEntry(name="a", state=GlobState())))

    def test_iter_files(self):
        """Test iterating matched files across levels in name order."""
        state = GlobState(
            files=(file_entry("b"), file_entry("d")),
            dirs=(
                GlobDirEntry(name="a", state=GlobState()),
                GlobDirEntry(name="c", state=GlobState(files=(file_entry("x"),))),
            ),
        )

        assert [path for path, _ in state.iter_files("root/")] == ["root/b", "root/c/x", "root/d"]
        assert state.first_file() == "b"
        assert [name for name, _ in state.entries()] == ["a", "b", "c", "d"]

    def test_first_file_of_empty_tree(self):
        """Test that a tree without matched files has no first file."""
        state = GlobState(dirs=(GlobDirEntry(name="a", state=GlobState()),))

        assert state.first_file() is None

    def test_leaf_states_are_restricted(self):
        """Test that glob leaves are content-tracked or unstable."""
        with pytest.raises(ValidationError):
            GlobFileEntry(name="a", state=FileExists(mtime_ns=1))


class TestSnapshot:
    """Test cases for snapshots."""

    def test_aligned(self):
        """Test creating a snapshot with one state per spec."""
        snapshot = Snapshot(
            timestamp=MonitorTimestamp(ns=1),
            specs=(ExactFile(path="a"),),
            item_states=(FileMissing(),),
            config_key={"k"},
            result_value=[1, 2],
        )

        assert snapshot.config_key == {"k"}
        assert snapshot.result_value == [1, 2]

    def test_misaligned_rejected(self):
        """Test that specs and states must line up."""
        with pytest.raises(ValidationError):
            Snapshot(timestamp=MonitorTimestamp(ns=1), specs=(ExactFile(path="a"),), item_states=())


class TestResults:
    """Test cases for check outcomes."""

    def test_unchanged(self):
        """Test the unchanged outcome."""
        result = MonitorUnchanged(value="v", specs=(ExactFile(path="a"),))

        assert not result.changed
        assert result.value == "v"

    @pytest.mark.parametrize(
        "reason,text",
        [
            (FirstRun(), "first run"),
            (CorruptCache(), "corrupt cache file"),
            (FileChanged(path="src/a.py"), "file changed: src/a.py"),
            (ValueChanged(old_key=42), "key changed (was 42)"),
        ],
    )
    def test_changed(self, reason, text):
        """Test the changed outcome and its reasons."""
        result = MonitorChanged(reason=reason)

        assert result.changed
        assert str(reason) == text
        assert str(result) == f"MonitorChanged({text})"

    def test_reasons_compare_by_value(self):
        """Test that reasons with equal data are equal."""
        assert FileChanged(path="a") == FileChanged(path="a")
        assert FileChanged(path="a") != FileChanged(path="b")
        assert ValueChanged(old_key=1) != ValueChanged(old_key=2)
