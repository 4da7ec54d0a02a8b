"""
Binary cache file storage for monitor snapshots.

A cache file holds one snapshot in a checksummed envelope:

    magic (4 bytes) | format version (u16) | payload length (u64) |
    SHA-256 of payload (32 bytes) | payload

The payload is a pickled dict of the snapshot's models plus the caller's
raw key and value objects, so any picklable key or value round-trips
exactly. Anything that fails to decode loads as CorruptCache.
"""

import hashlib
import logging
import os
import pickle
import struct
import tempfile
from pathlib import Path

from pydantic import ValidationError

from file_monitor.core.interfaces import ISnapshotStore
from file_monitor.models import CacheFileError, CorruptCache, FirstRun, Snapshot

logger = logging.getLogger(__name__)

CACHE_MAGIC = b"FMON"
CACHE_FORMAT_VERSION = 1

_HEADER = struct.Struct("!4sHQ")
_DIGEST_SIZE = hashlib.sha256().digest_size


class _CorruptCacheFile(Exception):
    """Internal signal that a cache file cannot be decoded."""


class FingerprintStore(ISnapshotStore):
    """
    Reads and writes monitor snapshots.

    Writes go to a temporary file in the cache file's directory which then
    replaces the cache file, so a crash never leaves a half-written cache.
    """

    def save(self, path: Path, snapshot: Snapshot) -> None:
        """
        Replace the cache file with the given snapshot.

        Raises:
            CacheFileError: If the cache file cannot be written
        """
        data = self.encode(snapshot)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
            ) as handle:
                tmp_name = handle.name
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            logger.error("Failed to write monitor cache %s: %s", path, e)
            raise CacheFileError(
                f"Failed to write cache file: {e}",
                path=str(path),
                operation="save",
                underlying_error=e,
            ) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Wrote monitor cache %s (%d bytes)", path, len(data))

    def load(self, path: Path) -> Snapshot | FirstRun | CorruptCache:
        """
        Load the snapshot stored in a cache file.

        Returns:
            The snapshot, FirstRun if there is no cache file, or CorruptCache
            if the file cannot be decoded

        Raises:
            CacheFileError: If the file exists but cannot be read
        """
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            logger.debug("No monitor cache at %s", path)
            return FirstRun()
        except OSError as e:
            raise CacheFileError(
                f"Failed to read cache file: {e}",
                path=str(path),
                operation="load",
                underlying_error=e,
            ) from e

        try:
            return self.decode(data)
        except _CorruptCacheFile as e:
            logger.warning("Ignoring corrupt monitor cache %s: %s", path, e)
            return CorruptCache()

    def encode(self, snapshot: Snapshot) -> bytes:
        """Serialize a snapshot into the envelope format."""
        payload = pickle.dumps(
            {
                "snapshot": snapshot.model_dump(exclude={"config_key", "result_value"}),
                "config_key": snapshot.config_key,
                "result_value": snapshot.result_value,
            },
            protocol=pickle.HIGHEST_PROTOCOL,
        )
        header = _HEADER.pack(CACHE_MAGIC, CACHE_FORMAT_VERSION, len(payload))
        return header + hashlib.sha256(payload).digest() + payload

    def decode(self, data: bytes) -> Snapshot:
        """
        Deserialize a snapshot from the envelope format.

        Raises:
            _CorruptCacheFile: If the data is not a valid, complete envelope
        """
        prefix_size = _HEADER.size + _DIGEST_SIZE
        if len(data) < prefix_size:
            raise _CorruptCacheFile("file is shorter than the cache header")

        magic, version, length = _HEADER.unpack_from(data)
        if magic != CACHE_MAGIC:
            raise _CorruptCacheFile("not a monitor cache file")
        if version != CACHE_FORMAT_VERSION:
            raise _CorruptCacheFile(f"unsupported format version {version}, expected {CACHE_FORMAT_VERSION}")

        digest = data[_HEADER.size : prefix_size]
        payload = data[prefix_size:]
        if len(payload) != length:
            raise _CorruptCacheFile(f"payload is {len(payload)} bytes, header says {length}")
        if hashlib.sha256(payload).digest() != digest:
            raise _CorruptCacheFile("payload checksum mismatch")

        try:
            content = pickle.loads(payload)
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError, TypeError, ValueError) as e:
            raise _CorruptCacheFile(f"payload cannot be unpickled: {e}") from e
        if not isinstance(content, dict) or not isinstance(content.get("snapshot"), dict):
            raise _CorruptCacheFile("payload has an unexpected structure")

        try:
            return Snapshot.model_validate(
                {
                    **content["snapshot"],
                    "config_key": content.get("config_key"),
                    "result_value": content.get("result_value"),
                }
            )
        except ValidationError as e:
            raise _CorruptCacheFile(f"snapshot does not validate: {e.error_count()} errors") from e
