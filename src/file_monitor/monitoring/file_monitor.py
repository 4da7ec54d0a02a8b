"""
Change detection for cached build results.

A FileMonitor owns one cache file. ``update`` records a snapshot of the
watched files together with a configuration key and a result value;
``check`` reports whether the result can be reused or why it cannot.

To cache the result of an action that may modify its own inputs, take the
timestamp with ``begin_snapshot`` before running the action and pass it to
``update`` afterwards. Files touched by the action then have an mtime at or
after the snapshot timestamp and are reported as changed on the next check.
Without it, the timestamp is taken when ``update`` runs and such edits go
unnoticed.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from file_monitor.config import MonitorConfig, get_config
from file_monitor.core.interfaces import IKeyComparator, ISnapshotStore
from file_monitor.core.key_comparators import ExactKeyComparator
from file_monitor.models import (
    CorruptCache,
    FileChanged,
    FirstRun,
    MonitorChanged,
    MonitorResult,
    MonitorTimestamp,
    MonitorUnchanged,
    Snapshot,
    ValueChanged,
    WatchedItemSpec,
)
from file_monitor.monitoring.file_prober import FileProber
from file_monitor.monitoring.fingerprint_store import FingerprintStore

logger = logging.getLogger(__name__)


class FileMonitor:
    """
    Change-detection handle for one cache file.

    Two monitors must not share a cache file concurrently; there is no
    locking between processes.
    """

    def __init__(
        self,
        cache_file: Path,
        config: MonitorConfig | None = None,
        key_comparator: IKeyComparator | None = None,
        check_if_only_value_changed: bool | None = None,
        store: ISnapshotStore | None = None,
        prober: FileProber | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            cache_file: Path of the cache file this monitor owns
            config: Monitor configuration (global config if not provided)
            key_comparator: Decides whether a stored result serves a new key
                (exact equality if not provided)
            check_if_only_value_changed: On a key mismatch, probe the files
                and report ValueChanged only if none changed (config default
                if not provided)
            store: Optional snapshot store (will create if not provided)
            prober: Optional file prober (will create if not provided)
        """
        self.cache_file = Path(cache_file)
        self.config = config or get_config()
        self.key_comparator = key_comparator or ExactKeyComparator()
        self.check_if_only_value_changed = (
            self.config.check_if_only_value_changed
            if check_if_only_value_changed is None
            else check_if_only_value_changed
        )
        self.store = store or FingerprintStore()
        self.prober = prober or FileProber(self.config)

        self._stats = {
            "updates": 0,
            "checks": 0,
            "outcomes": {"unchanged": 0, "first_run": 0, "corrupt_cache": 0, "file_changed": 0, "value_changed": 0},
            "last_outcome": None,
        }

    def begin_snapshot(self) -> MonitorTimestamp:
        """
        Capture a snapshot timestamp before running an action.

        Pass the result to ``update`` once the action has finished so that
        files the action modified are reported as changed.
        """
        return MonitorTimestamp.now(self.config.mtime_resolution_ns)

    def update(
        self,
        root_dir: Path,
        specs: Sequence[WatchedItemSpec],
        key: Any,
        value: Any,
        timestamp: MonitorTimestamp | None = None,
    ) -> Snapshot:
        """
        Record a new snapshot of the watched files, replacing the previous one.

        Args:
            root_dir: Root the specs' paths are relative to
            specs: Watched-item specs, probed in order
            key: Configuration key the result was computed for
            value: Result value to cache
            timestamp: Timestamp from ``begin_snapshot``; taken now if omitted

        Returns:
            The snapshot that was written

        Raises:
            ProbeError: If a watched file cannot be probed
            CacheFileError: If the cache file cannot be written
        """
        root_dir = Path(root_dir)
        # only a begin_snapshot timestamp marks files as unstable; without one
        # there is no action window to guard
        race_timestamp = timestamp
        if timestamp is None:
            timestamp = MonitorTimestamp.now(self.config.mtime_resolution_ns)

        previous = self.store.load(self.cache_file)
        hash_cache = self.prober.collect_digests(previous) if isinstance(previous, Snapshot) else {}

        states = tuple(
            self.prober.probe(root_dir, spec, timestamp=race_timestamp, hash_cache=hash_cache) for spec in specs
        )
        snapshot = Snapshot(
            timestamp=timestamp,
            specs=tuple(specs),
            item_states=states,
            config_key=key,
            result_value=value,
        )
        self.store.save(self.cache_file, snapshot)

        self._stats["updates"] += 1
        logger.info("Updated monitor %s with %d watched items", self.cache_file, len(states))
        return snapshot

    def check(self, root_dir: Path, specs: Sequence[WatchedItemSpec], key: Any) -> MonitorResult:
        """
        Check whether the cached result is still valid.

        Args:
            root_dir: Root the specs' paths are relative to
            specs: Watched-item specs the caller depends on
            key: Configuration key the caller needs a result for

        Returns:
            MonitorUnchanged with the cached value, or MonitorChanged with the
            first reason found

        Raises:
            ProbeError: If a watched file cannot be probed
            CacheFileError: If the cache file exists but cannot be read
        """
        self._stats["checks"] += 1
        loaded = self.store.load(self.cache_file)
        if isinstance(loaded, (FirstRun, CorruptCache)):
            return self._changed(loaded)

        snapshot = loaded
        if self.key_comparator.is_valid(key, snapshot.config_key):
            changed_path = self._first_changed_path(Path(root_dir), specs, snapshot)
            if changed_path is not None:
                return self._changed(FileChanged(path=changed_path))
            self._record("unchanged")
            logger.info("Monitor %s unchanged", self.cache_file)
            return MonitorUnchanged(value=snapshot.result_value, specs=snapshot.specs)

        if self.check_if_only_value_changed:
            changed_path = self._first_changed_path(Path(root_dir), specs, snapshot)
            if changed_path is not None:
                return self._changed(FileChanged(path=changed_path))

        return self._changed(ValueChanged(old_key=snapshot.config_key))

    def invalidate(self) -> None:
        """Remove the cache file so the next check reports a first run."""
        self.cache_file.unlink(missing_ok=True)
        logger.info("Invalidated monitor %s", self.cache_file)

    def get_monitoring_stats(self) -> dict[str, Any]:
        """
        Get monitoring statistics.

        Returns:
            Dictionary with update/check counters and probing statistics
        """
        return {
            "cache_file": str(self.cache_file),
            "updates": self._stats["updates"],
            "checks": self._stats["checks"],
            "outcomes": self._stats["outcomes"].copy(),
            "last_outcome": self._stats["last_outcome"],
            "probe_stats": self.prober.get_stats(),
            "configuration": {
                "check_if_only_value_changed": self.check_if_only_value_changed,
                "mtime_resolution_ns": self.config.mtime_resolution_ns,
                "hash_algorithm": self.config.hash_algorithm,
            },
        }

    def _first_changed_path(
        self, root_dir: Path, specs: Sequence[WatchedItemSpec], snapshot: Snapshot
    ) -> str | None:
        stored_specs = snapshot.specs
        for index in range(max(len(specs), len(stored_specs))):
            if index >= len(specs) or index >= len(stored_specs) or specs[index] != stored_specs[index]:
                spec = specs[index] if index < len(specs) else stored_specs[index]
                logger.debug("Watched items differ from the snapshot at %s", spec.display_path)
                return spec.display_path

            spec = specs[index]
            stored = snapshot.item_states[index]
            current = self.prober.probe(root_dir, spec, prior=stored)
            changed_path = self.prober.first_difference(spec, stored, current)
            if changed_path is not None:
                return changed_path
        return None

    def _changed(self, reason) -> MonitorChanged:
        self._record(reason.kind)
        logger.info("Monitor %s changed: %s", self.cache_file, reason)
        return MonitorChanged(reason=reason)

    def _record(self, outcome: str) -> None:
        self._stats["outcomes"][outcome] += 1
        self._stats["last_outcome"] = outcome
