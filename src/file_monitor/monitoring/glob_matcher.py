"""
Glob matching over directory trees.

Expands a parsed glob one directory level per segment into a GlobState, and
diffs two GlobStates by walking their sorted entries in step.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from file_monitor.models import (
    FileExistsHashed,
    FileMissing,
    GlobDirEntry,
    GlobFileEntry,
    GlobSegment,
    GlobState,
    MonitorTimestamp,
)

if TYPE_CHECKING:
    from file_monitor.monitoring.file_prober import FileProber

logger = logging.getLogger(__name__)


class GlobMatcher:
    """
    Expands glob patterns against the filesystem and compares the results.

    Directory listings are sorted by name before use. Listing order is
    unspecified by the filesystem, and the diff relies on both states being
    sorted the same way.
    """

    def __init__(self, prober: "FileProber"):
        """
        Initialize the glob matcher.

        Args:
            prober: Prober used to compute the state of each matched file
        """
        self.prober = prober

    def expand(
        self,
        directory: Path,
        segments: tuple[GlobSegment, ...],
        prior: GlobState | None = None,
        timestamp: MonitorTimestamp | None = None,
        hash_cache: Mapping[str, FileExistsHashed] | None = None,
        prefix: str = "",
    ) -> GlobState:
        """
        Expand glob segments below a directory.

        Args:
            directory: Directory the first segment is matched in
            segments: Remaining glob segments, at least one
            prior: State of the same level from a previous snapshot, used to
                skip rehashing files whose mtime is unchanged
            timestamp: Snapshot timestamp when taking a snapshot; files
                modified at or after it are recorded as unstable
            hash_cache: Digests from the previous snapshot keyed by
                root-relative path
            prefix: Root-relative path of the directory, with trailing '/'

        Returns:
            GlobState for this level with sorted, duplicate-free entries
        """
        segment, rest = segments[0], segments[1:]
        matching = [entry for entry in self._list_sorted(directory) if segment.matches(entry.name)]

        if rest:
            prior_dirs = {entry.name: entry.state for entry in prior.dirs} if prior else {}
            dirs = []
            for entry in matching:
                if not _is_dir(entry):
                    continue
                sub_state = self.expand(
                    Path(entry.path),
                    rest,
                    prior=prior_dirs.get(entry.name),
                    timestamp=timestamp,
                    hash_cache=hash_cache,
                    prefix=f"{prefix}{entry.name}/",
                )
                dirs.append(GlobDirEntry(name=entry.name, state=sub_state))
            return GlobState(dirs=tuple(dirs))

        prior_files = {entry.name: entry.state for entry in prior.files} if prior else {}
        files = []
        for entry in matching:
            if not _is_file(entry):
                continue
            relative_path = f"{prefix}{entry.name}"
            leaf = self.prober.probe_file(
                Path(entry.path),
                relative_path,
                hashed=True,
                prior=prior_files.get(entry.name),
                timestamp=timestamp,
                hash_cache=hash_cache,
            )
            if isinstance(leaf, FileMissing):
                # removed between listing and probing
                continue
            files.append(GlobFileEntry(name=entry.name, state=leaf))

        logger.debug("Glob level %s matched %d files", prefix or ".", len(files))
        return GlobState(files=tuple(files))

    def first_difference(self, stored: GlobState, current: GlobState, prefix: str = "") -> str | None:
        """
        Find the first path at which two glob states differ.

        Both states are walked in sorted order. A file only in one of them, a
        changed file, or a subdirectory only in one of them that holds at
        least one matched file is a difference.

        Args:
            stored: State recorded in the snapshot
            current: Freshly expanded state
            prefix: Root-relative path of the level, with trailing '/'

        Returns:
            Root-relative path of the first difference, or None
        """
        old_entries = stored.entries()
        new_entries = current.entries()
        i = j = 0
        while i < len(old_entries) or j < len(new_entries):
            if j >= len(new_entries) or (i < len(old_entries) and old_entries[i][0] < new_entries[j][0]):
                name, entry = old_entries[i]
                found = _first_match(entry, f"{prefix}{name}")
                i += 1
            elif i >= len(old_entries) or new_entries[j][0] < old_entries[i][0]:
                name, entry = new_entries[j]
                found = _first_match(entry, f"{prefix}{name}")
                j += 1
            else:
                name = old_entries[i][0]
                found = self._entry_difference(old_entries[i][1], new_entries[j][1], f"{prefix}{name}")
                i += 1
                j += 1
            if found is not None:
                return found
        return None

    def _entry_difference(self, old: Any, new: Any, path: str) -> str | None:
        if isinstance(old, GlobFileEntry) and isinstance(new, GlobFileEntry):
            return path if self.prober.has_changed(old.state, new.state) else None
        if isinstance(old, GlobDirEntry) and isinstance(new, GlobDirEntry):
            return self.first_difference(old.state, new.state, f"{path}/")
        # a matched file replaced by a directory, or the reverse
        return _first_match(old, path) or _first_match(new, path)

    @staticmethod
    def _list_sorted(directory: Path) -> list[os.DirEntry]:
        try:
            with os.scandir(directory) as iterator:
                return sorted(iterator, key=lambda entry: entry.name)
        except OSError as e:
            logger.debug("Treating unreadable directory %s as empty: %s", directory, e)
            return []


def _first_match(entry: Any, path: str) -> str | None:
    if isinstance(entry, GlobFileEntry):
        return path
    return entry.state.first_file(f"{path}/")


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False
