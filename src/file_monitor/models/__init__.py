"""Data models, results and exceptions for the file monitor."""

from file_monitor.models.exceptions import (
    BaseError,
    CacheFileError,
    ConfigurationError,
    GlobSyntaxError,
    MonitoringError,
    ProbeError,
)
from file_monitor.models.results import (
    ChangeReason,
    CorruptCache,
    FileChanged,
    FirstRun,
    MonitorChanged,
    MonitorResult,
    MonitorUnchanged,
    ValueChanged,
)
from file_monitor.models.specs import (
    ExactFile,
    ExactFileHashed,
    ExpectedAbsent,
    GlobPattern,
    GlobSegment,
    WatchedItemSpec,
    join_relative_path,
)
from file_monitor.models.state import (
    FileAbsentAsExpected,
    FileExists,
    FileExistsHashed,
    FileMissing,
    FileNowPresent,
    FileUnstable,
    GlobDirEntry,
    GlobFileEntry,
    GlobState,
    ItemState,
    LeafState,
    MonitorTimestamp,
    Snapshot,
)

__all__ = [
    "ExactFile",
    "ExactFileHashed",
    "ExpectedAbsent",
    "GlobPattern",
    "GlobSegment",
    "WatchedItemSpec",
    "join_relative_path",
    "FileExists",
    "FileExistsHashed",
    "FileMissing",
    "FileAbsentAsExpected",
    "FileNowPresent",
    "FileUnstable",
    "GlobFileEntry",
    "GlobDirEntry",
    "GlobState",
    "ItemState",
    "LeafState",
    "MonitorTimestamp",
    "Snapshot",
    "ChangeReason",
    "FirstRun",
    "CorruptCache",
    "FileChanged",
    "ValueChanged",
    "MonitorChanged",
    "MonitorUnchanged",
    "MonitorResult",
    "BaseError",
    "ConfigurationError",
    "GlobSyntaxError",
    "MonitoringError",
    "ProbeError",
    "CacheFileError",
]
