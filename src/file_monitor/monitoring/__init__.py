"""File state probing, glob matching, snapshot storage and change detection."""

from file_monitor.monitoring.file_monitor import FileMonitor
from file_monitor.monitoring.file_prober import FileProber
from file_monitor.monitoring.fingerprint_store import CACHE_FORMAT_VERSION, CACHE_MAGIC, FingerprintStore
from file_monitor.monitoring.glob_matcher import GlobMatcher

__all__ = [
    "FileMonitor",
    "FileProber",
    "FingerprintStore",
    "GlobMatcher",
    "CACHE_MAGIC",
    "CACHE_FORMAT_VERSION",
]
