"""
Change detection and result caching for build tools.

Records a fingerprint of the files a build action depends on and later
reports whether the cached result can be reused.
"""

from file_monitor.config import MonitorConfig, get_config
from file_monitor.core import ExactKeyComparator, IKeyComparator, SubsetKeyComparator
from file_monitor.models import (
    CorruptCache,
    ExactFile,
    ExactFileHashed,
    ExpectedAbsent,
    FileChanged,
    FirstRun,
    GlobPattern,
    MonitorChanged,
    MonitorTimestamp,
    MonitorUnchanged,
    ValueChanged,
)
from file_monitor.monitoring import FileMonitor

__version__ = "0.1.0"

__all__ = [
    "FileMonitor",
    "MonitorConfig",
    "get_config",
    "IKeyComparator",
    "ExactKeyComparator",
    "SubsetKeyComparator",
    "ExactFile",
    "ExactFileHashed",
    "ExpectedAbsent",
    "GlobPattern",
    "MonitorTimestamp",
    "MonitorChanged",
    "MonitorUnchanged",
    "FirstRun",
    "CorruptCache",
    "FileChanged",
    "ValueChanged",
]
