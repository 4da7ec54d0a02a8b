"""Unit tests for file state probing."""

import hashlib
import time
from pathlib import Path
from unittest.mock import patch

import pytest
from file_monitor.config import MonitorConfig
from file_monitor.models import (
    ExactFile,
    ExactFileHashed,
    ExpectedAbsent,
    FileAbsentAsExpected,
    FileExists,
    FileExistsHashed,
    FileMissing,
    FileNowPresent,
    FileUnstable,
    GlobFileEntry,
    GlobPattern,
    GlobState,
    MonitorTimestamp,
    ProbeError,
    Snapshot,
)
from file_monitor.monitoring import FileProber

HELLO_SHA256 = hashlib.sha256(b"hello").hexdigest()

PAST = MonitorTimestamp(ns=0)


def future():
    return MonitorTimestamp(ns=time.time_ns() + 60 * 10**9)


class TestProbe:
    """Test cases for probing individual specs."""

    def test_exact_file(self, prober, root, tree):
        """Test probing an existing mtime-tracked file."""
        path = tree.touch("a")

        state = prober.probe(root, ExactFile(path="a"))

        assert state == FileExists(mtime_ns=path.stat().st_mtime_ns)

    def test_exact_file_missing(self, prober, root):
        """Test probing a missing file."""
        assert prober.probe(root, ExactFile(path="a")) == FileMissing()
        assert prober.probe(root, ExactFileHashed(path="dir/a")) == FileMissing()

    def test_hashed_file(self, prober, root, tree):
        """Test probing a content-tracked file."""
        path = tree.touch("a")

        state = prober.probe(root, ExactFileHashed(path="a"))

        assert state == FileExistsHashed(mtime_ns=path.stat().st_mtime_ns, digest=HELLO_SHA256)
        assert prober.get_stats()["files_hashed"] == 1

    def test_configured_hash_algorithm(self, root, tree):
        """Test that digests use the configured algorithm."""
        tree.touch("a")
        prober = FileProber(MonitorConfig(_env_file=None, hash_algorithm="md5"))

        state = prober.probe(root, ExactFileHashed(path="a"))

        assert state.digest == hashlib.md5(b"hello").hexdigest()

    def test_small_hash_chunks(self, root, tree):
        """Test that hashing in chunks gives the same digest as hashing at once."""
        contents = "x" * 5000
        tree.write("big", contents)
        prober = FileProber(MonitorConfig(_env_file=None, hash_chunk_size=1024))

        state = prober.probe(root, ExactFileHashed(path="big"))

        assert state.digest == hashlib.sha256(contents.encode()).hexdigest()

    def test_expected_absent(self, prober, root, tree):
        """Test probing a file expected to be absent."""
        spec = ExpectedAbsent(path="a")
        assert prober.probe(root, spec) == FileAbsentAsExpected()

        tree.touch("a")
        assert prober.probe(root, spec) == FileNowPresent()

    def test_glob(self, prober, root, tree):
        """Test probing a glob spec."""
        tree.touch("src/b.txt")
        tree.touch("src/a.txt")
        tree.touch("src/c.md")

        state = prober.probe(root, GlobPattern.parse("*.txt", base_dir="src"))

        assert isinstance(state, GlobState)
        assert [name for name, _ in state.entries()] == ["a.txt", "b.txt"]
        assert [path for path, _ in state.iter_files("src/")] == ["src/a.txt", "src/b.txt"]

    def test_unsupported_spec(self, prober, root):
        """Test that unknown spec types are rejected."""
        with pytest.raises(TypeError):
            prober.probe(root, "a")


class TestSnapshotTimestamp:
    """Test cases for the snapshot timestamp race check."""

    def test_modified_at_or_after_timestamp_is_unstable(self, prober, root, tree):
        """Test that files not strictly older than the timestamp are unstable."""
        tree.touch("a")

        assert prober.probe(root, ExactFile(path="a"), timestamp=PAST) == FileUnstable()
        assert prober.probe(root, ExactFileHashed(path="a"), timestamp=PAST) == FileUnstable()

    def test_mtime_equal_to_timestamp_is_unstable(self, prober, root, tree):
        """Test that an mtime equal to the timestamp is unstable."""
        path = tree.touch("a")
        timestamp = MonitorTimestamp(ns=path.stat().st_mtime_ns)

        assert prober.probe(root, ExactFile(path="a"), timestamp=timestamp) == FileUnstable()

    def test_older_files_are_stable(self, prober, root, tree):
        """Test that files older than the timestamp are recorded normally."""
        path = tree.touch("a")

        state = prober.probe(root, ExactFile(path="a"), timestamp=future())

        assert state == FileExists(mtime_ns=path.stat().st_mtime_ns)

    def test_missing_file_is_not_unstable(self, prober, root):
        """Test that a missing file stays missing regardless of the timestamp."""
        assert prober.probe(root, ExactFile(path="a"), timestamp=PAST) == FileMissing()


class TestDigestReuse:
    """Test cases for skipping rehashing of unchanged files."""

    def test_reuses_prior_digest(self, prober, root, tree):
        """Test that a prior state with the same mtime supplies the digest."""
        path = tree.touch("a")
        prior = FileExistsHashed(mtime_ns=path.stat().st_mtime_ns, digest="cafe")

        state = prober.probe(root, ExactFileHashed(path="a"), prior=prior)

        assert state.digest == "cafe"
        assert prober.get_stats()["files_hashed"] == 0
        assert prober.get_stats()["digests_reused"] == 1

    def test_reuses_hash_cache(self, prober, root, tree):
        """Test that the previous snapshot's digests are used by path."""
        path = tree.touch("a")
        hash_cache = {"a": FileExistsHashed(mtime_ns=path.stat().st_mtime_ns, digest="cafe")}

        state = prober.probe(root, ExactFileHashed(path="a"), hash_cache=hash_cache)

        assert state.digest == "cafe"

    def test_rehashes_when_mtime_differs(self, prober, root, tree):
        """Test that a stale recorded digest is not reused."""
        path = tree.touch("a")
        prior = FileExistsHashed(mtime_ns=path.stat().st_mtime_ns - 1, digest="cafe")

        state = prober.probe(root, ExactFileHashed(path="a"), prior=prior, hash_cache={"a": prior})

        assert state.digest == HELLO_SHA256
        assert prober.get_stats()["files_hashed"] == 1

    def test_reset_stats(self, prober, root, tree):
        """Test resetting probe counters."""
        tree.touch("a")
        prober.probe(root, ExactFileHashed(path="a"))
        prober.reset_stats()

        assert prober.get_stats() == {"files_statted": 0, "files_hashed": 0, "digests_reused": 0}

    def test_collect_digests(self, prober):
        """Test gathering digests from exact and glob items of a snapshot."""
        hashed = FileExistsHashed(mtime_ns=1, digest="aa")
        matched = FileExistsHashed(mtime_ns=2, digest="bb")
        snapshot = Snapshot(
            timestamp=MonitorTimestamp(ns=10),
            specs=(
                ExactFileHashed(path="a"),
                ExactFile(path="b"),
                GlobPattern.parse("*.txt", base_dir="src"),
                ExactFileHashed(path="missing"),
            ),
            item_states=(
                hashed,
                FileExists(mtime_ns=3),
                GlobState(files=(GlobFileEntry(name="x.txt", state=matched),)),
                FileMissing(),
            ),
        )

        assert prober.collect_digests(snapshot) == {"a": hashed, "src/x.txt": matched}


class TestHasChanged:
    """Test cases for comparing recorded and current states."""

    @pytest.mark.parametrize(
        "stored,current,expected",
        [
            (FileExists(mtime_ns=1), FileExists(mtime_ns=1), False),
            (FileExists(mtime_ns=1), FileExists(mtime_ns=2), True),
            (FileExists(mtime_ns=1), FileMissing(), True),
            (FileExistsHashed(mtime_ns=1, digest="aa"), FileExistsHashed(mtime_ns=2, digest="aa"), False),
            (FileExistsHashed(mtime_ns=1, digest="aa"), FileExistsHashed(mtime_ns=1, digest="bb"), True),
            (FileExistsHashed(mtime_ns=1, digest="aa"), FileUnstable(), True),
            (FileMissing(), FileMissing(), True),
            (FileMissing(), FileExists(mtime_ns=1), True),
            (FileUnstable(), FileExists(mtime_ns=1), True),
            (FileAbsentAsExpected(), FileAbsentAsExpected(), False),
            (FileAbsentAsExpected(), FileNowPresent(), True),
            (FileNowPresent(), FileAbsentAsExpected(), False),
            (FileNowPresent(), FileNowPresent(), True),
            (GlobState(), GlobState(), False),
        ],
    )
    def test_has_changed(self, prober, stored, current, expected):
        """Test the change decision for each kind of state."""
        assert prober.has_changed(stored, current) is expected

    def test_first_difference_reports_spec_path(self, prober):
        """Test that exact specs report their own path."""
        spec = ExactFile(path="dir/a")

        assert prober.first_difference(spec, FileExists(mtime_ns=1), FileExists(mtime_ns=2)) == "dir/a"
        assert prober.first_difference(spec, FileExists(mtime_ns=1), FileExists(mtime_ns=1)) is None

    def test_first_difference_reports_glob_match(self, prober):
        """Test that glob specs report the differing match below the base directory."""
        spec = GlobPattern.parse("*.txt", base_dir="src")
        entry = GlobFileEntry(name="a.txt", state=FileExistsHashed(mtime_ns=1, digest="aa"))

        assert prober.first_difference(spec, GlobState(), GlobState(files=(entry,))) == "src/a.txt"
        assert prober.first_difference(spec, FileMissing(), GlobState()) == "src/*.txt"


class TestProbeErrors:
    """Test cases for filesystem failures other than absence."""

    def test_stat_failure(self, prober, root, tree):
        """Test that a permission error while probing raises ProbeError."""
        tree.touch("a")

        with patch.object(Path, "stat", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ProbeError) as exc_info:
                prober.probe(root, ExactFile(path="a"))

        error = exc_info.value
        assert error.error_code == "PROBE_ERROR"
        assert error.context["path"] == "a"
        assert error.context["operation"] == "stat"
        assert isinstance(error.cause, PermissionError)

    def test_hash_failure(self, prober, root, tree):
        """Test that a read error while hashing raises ProbeError."""
        tree.touch("a")

        with patch("builtins.open", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ProbeError) as exc_info:
                prober.probe(root, ExactFileHashed(path="a"))

        assert exc_info.value.context["operation"] == "hash"

    def test_file_removed_while_hashing(self, prober, root, tree):
        """Test that a file vanishing before it is read counts as missing."""
        tree.touch("a")

        with patch("builtins.open", side_effect=FileNotFoundError(2, "No such file")):
            assert prober.probe(root, ExactFileHashed(path="a")) == FileMissing()
