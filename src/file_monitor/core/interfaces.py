"""
Abstract interfaces for the file monitor.

These interfaces define the contracts for pluggable components, enabling
dependency injection for testing and alternative implementations.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from file_monitor.models import CorruptCache, FirstRun, Snapshot


class IKeyComparator(ABC):
    """
    Interface deciding whether a cached result is still valid for a new key.

    When the comparison fails the monitor reports the stored key as changed,
    or, in value-only mode, probes the files first.
    """

    @abstractmethod
    def is_valid(self, new_key: Any, stored_key: Any) -> bool:
        """
        Check whether a result cached under stored_key serves new_key.

        Args:
            new_key: Key supplied to the current check
            stored_key: Key recorded in the snapshot

        Returns:
            True if the stored result is valid for the new key
        """
        pass


class ISnapshotStore(ABC):
    """Interface for persisting snapshots to a cache file."""

    @abstractmethod
    def save(self, path: Path, snapshot: Snapshot) -> None:
        """
        Replace the cache file with the given snapshot.

        The write is all-or-nothing: a reader never observes a partially
        written cache file.

        Raises:
            CacheFileError: If the cache file cannot be written
        """
        pass

    @abstractmethod
    def load(self, path: Path) -> Snapshot | FirstRun | CorruptCache:
        """
        Load the snapshot stored in a cache file.

        Returns:
            The snapshot, FirstRun if the file does not exist, or
            CorruptCache if it cannot be decoded

        Raises:
            CacheFileError: If the file exists but cannot be read
        """
        pass
