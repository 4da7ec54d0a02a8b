"""Core interfaces and key comparison strategies."""

from file_monitor.core.interfaces import IKeyComparator, ISnapshotStore
from file_monitor.core.key_comparators import ExactKeyComparator, SubsetKeyComparator

__all__ = [
    "IKeyComparator",
    "ISnapshotStore",
    "ExactKeyComparator",
    "SubsetKeyComparator",
]
