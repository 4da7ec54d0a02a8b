"""
File state probing for watched-item specs.

Computes the current observable state of a spec (existence, modification
time, and for hashed specs a content digest) and decides whether a freshly
probed state differs from the one recorded in a snapshot.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from file_monitor.config import MonitorConfig, get_config
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
    GlobPattern,
    GlobState,
    ItemState,
    MonitorTimestamp,
    ProbeError,
    Snapshot,
    WatchedItemSpec,
)
from file_monitor.monitoring.glob_matcher import GlobMatcher

logger = logging.getLogger(__name__)


def _glob_prefix(spec: GlobPattern) -> str:
    return "" if spec.base_dir == "." else f"{spec.base_dir}/"


class FileProber:
    """
    Probes the filesystem for the state of watched-item specs.

    Content digests are computed lazily: a recorded digest is reused whenever
    the file's mtime is unchanged, so unchanged files are never rehashed.
    """

    def __init__(self, config: MonitorConfig | None = None, glob_matcher: GlobMatcher | None = None):
        """
        Initialize the prober.

        Args:
            config: Monitor configuration (global config if not provided)
            glob_matcher: Optional glob matcher (will create if not provided)
        """
        self.config = config or get_config()
        self.glob_matcher = glob_matcher or GlobMatcher(self)
        self._stats = {"files_statted": 0, "files_hashed": 0, "digests_reused": 0}

    def probe(
        self,
        root_dir: Path,
        spec: WatchedItemSpec,
        prior: ItemState | None = None,
        timestamp: MonitorTimestamp | None = None,
        hash_cache: Mapping[str, FileExistsHashed] | None = None,
    ) -> ItemState:
        """
        Compute the current state of one spec.

        Args:
            root_dir: Root the spec's paths are relative to
            spec: Watched-item spec to probe
            prior: State recorded for the same spec, used to skip rehashing
            timestamp: Snapshot timestamp when taking a snapshot; files with
                an mtime at or after it are recorded as unstable
            hash_cache: Digests from a previous snapshot keyed by root-relative path

        Returns:
            The spec's current state

        Raises:
            ProbeError: If the filesystem fails for a reason other than absence
        """
        if isinstance(spec, ExactFile):
            return self.probe_file(root_dir / spec.path, spec.path, hashed=False, timestamp=timestamp)

        if isinstance(spec, ExactFileHashed):
            return self.probe_file(
                root_dir / spec.path,
                spec.path,
                hashed=True,
                prior=prior,
                timestamp=timestamp,
                hash_cache=hash_cache,
            )

        if isinstance(spec, ExpectedAbsent):
            if self._stat_mtime(root_dir / spec.path, spec.path) is None:
                return FileAbsentAsExpected()
            return FileNowPresent()

        if isinstance(spec, GlobPattern):
            return self.glob_matcher.expand(
                root_dir / spec.base_dir,
                spec.segments,
                prior=prior if isinstance(prior, GlobState) else None,
                timestamp=timestamp,
                hash_cache=hash_cache,
                prefix=_glob_prefix(spec),
            )

        raise TypeError(f"Unsupported watched-item spec: {spec!r}")

    def probe_file(
        self,
        full_path: Path,
        relative_path: str,
        hashed: bool,
        prior: Any = None,
        timestamp: MonitorTimestamp | None = None,
        hash_cache: Mapping[str, FileExistsHashed] | None = None,
    ) -> ItemState:
        """
        Compute the state of a single file expected to exist.

        Returns:
            FileMissing, FileUnstable, FileExists or FileExistsHashed
        """
        mtime_ns = self._stat_mtime(full_path, relative_path)
        if mtime_ns is None:
            return FileMissing()
        if timestamp is not None and timestamp.is_within_window(mtime_ns):
            logger.debug("File %s modified within the snapshot window", relative_path)
            return FileUnstable()
        if not hashed:
            return FileExists(mtime_ns=mtime_ns)

        candidates = [prior, (hash_cache or {}).get(relative_path)]
        for candidate in candidates:
            if isinstance(candidate, FileExistsHashed) and candidate.mtime_ns == mtime_ns:
                self._stats["digests_reused"] += 1
                return FileExistsHashed(mtime_ns=mtime_ns, digest=candidate.digest)

        digest = self._hash_file(full_path, relative_path)
        if digest is None:
            return FileMissing()
        if self._stat_mtime(full_path, relative_path) != mtime_ns:
            # rewritten while hashing, the digest may not match the recorded mtime
            return FileUnstable()
        return FileExistsHashed(mtime_ns=mtime_ns, digest=digest)

    def has_changed(self, stored: ItemState, current: ItemState) -> bool:
        """
        Decide whether a freshly probed state differs from a recorded one.

        Missing and unstable files are always changed. Hashed files compare
        by digest, so a rewrite with identical content is unchanged. A file
        expected to be absent is only changed by being present.
        """
        if isinstance(stored, FileExists):
            return not (isinstance(current, FileExists) and current.mtime_ns == stored.mtime_ns)
        if isinstance(stored, FileExistsHashed):
            return not (isinstance(current, FileExistsHashed) and current.digest == stored.digest)
        if isinstance(stored, (FileAbsentAsExpected, FileNowPresent)):
            return not isinstance(current, FileAbsentAsExpected)
        if isinstance(stored, GlobState):
            return not isinstance(current, GlobState) or self.glob_matcher.first_difference(stored, current) is not None
        return True

    def first_difference(self, spec: WatchedItemSpec, stored: ItemState, current: ItemState) -> str | None:
        """
        Root-relative path to report for a spec whose state changed.

        Returns:
            The spec's path, the first differing glob match, or None if unchanged
        """
        if isinstance(spec, GlobPattern):
            if not isinstance(stored, GlobState) or not isinstance(current, GlobState):
                return spec.display_path
            return self.glob_matcher.first_difference(stored, current, _glob_prefix(spec))
        if self.has_changed(stored, current):
            return spec.path
        return None

    def collect_digests(self, snapshot: Snapshot) -> dict[str, FileExistsHashed]:
        """
        Gather the recorded digests of a snapshot keyed by root-relative path.

        Used when taking a new snapshot so that files unchanged since the
        previous one are not rehashed.
        """
        digests: dict[str, FileExistsHashed] = {}
        for spec, state in zip(snapshot.specs, snapshot.item_states):
            if isinstance(spec, ExactFileHashed) and isinstance(state, FileExistsHashed):
                digests[spec.path] = state
            elif isinstance(spec, GlobPattern) and isinstance(state, GlobState):
                for path, leaf in state.iter_files(_glob_prefix(spec)):
                    if isinstance(leaf, FileExistsHashed):
                        digests[path] = leaf
        return digests

    def get_stats(self) -> dict[str, int]:
        """Get probing counters since creation or the last reset."""
        return self._stats.copy()

    def reset_stats(self) -> None:
        for key in self._stats:
            self._stats[key] = 0

    def _stat_mtime(self, full_path: Path, relative_path: str) -> int | None:
        self._stats["files_statted"] += 1
        try:
            return full_path.stat().st_mtime_ns
        except (FileNotFoundError, NotADirectoryError):
            return None
        except OSError as e:
            raise ProbeError(
                f"Failed to stat watched file: {e}",
                path=relative_path,
                operation="stat",
                underlying_error=e,
            ) from e

    def _hash_file(self, full_path: Path, relative_path: str) -> str | None:
        hasher = self.config.new_hasher()
        try:
            with open(full_path, "rb") as f:
                while chunk := f.read(self.config.hash_chunk_size):
                    hasher.update(chunk)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ProbeError(
                f"Failed to hash watched file: {e}",
                path=relative_path,
                operation="hash",
                underlying_error=e,
            ) from e

        self._stats["files_hashed"] += 1
        logger.debug("Hashed %s", relative_path)
        return hasher.hexdigest()
