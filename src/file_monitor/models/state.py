"""
Persisted state models for the file monitor.

An ItemState is recorded per watched-item spec when a snapshot is taken.
GlobState mirrors the directory levels a glob pattern walks, and keeps its
entries sorted by name so that two traversals can be compared pairwise.
"""

import time
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from file_monitor.models.specs import WatchedItemSpec


class MonitorTimestamp(BaseModel):
    """
    Instant a snapshot is taken, comparable only for ordering.

    When taken with ``begin_snapshot``, recorded mtimes are strictly earlier
    than the snapshot's timestamp. Anything at or after it is recorded as
    unstable.
    """

    ns: int = Field(..., ge=0, description="Nanoseconds since the epoch, floored to mtime resolution")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def now(cls, resolution_ns: int = 1) -> "MonitorTimestamp":
        """Capture the current time, floored to the given resolution."""
        current = time.time_ns()
        return cls(ns=current - current % max(resolution_ns, 1))

    def is_within_window(self, mtime_ns: int) -> bool:
        """Whether an mtime is at or after this timestamp, i.e. inside the action window."""
        return mtime_ns >= self.ns

    def __lt__(self, other: "MonitorTimestamp") -> bool:
        return self.ns < other.ns

    def __le__(self, other: "MonitorTimestamp") -> bool:
        return self.ns <= other.ns


class FileExists(BaseModel):
    """Existing file tracked by modification time."""

    kind: Literal["file_exists"] = "file_exists"
    mtime_ns: int

    model_config = ConfigDict(frozen=True)


class FileExistsHashed(BaseModel):
    """Existing file tracked by modification time and content digest."""

    kind: Literal["file_exists_hashed"] = "file_exists_hashed"
    mtime_ns: int
    digest: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class FileMissing(BaseModel):
    """A file expected to exist was absent when the snapshot was taken."""

    kind: Literal["file_missing"] = "file_missing"

    model_config = ConfigDict(frozen=True)


class FileAbsentAsExpected(BaseModel):
    """A file expected to be absent was absent."""

    kind: Literal["file_absent_as_expected"] = "file_absent_as_expected"

    model_config = ConfigDict(frozen=True)


class FileNowPresent(BaseModel):
    """A file expected to be absent was present."""

    kind: Literal["file_now_present"] = "file_now_present"

    model_config = ConfigDict(frozen=True)


class FileUnstable(BaseModel):
    """A file modified at or after the snapshot timestamp; always reported changed."""

    kind: Literal["file_unstable"] = "file_unstable"

    model_config = ConfigDict(frozen=True)


LeafState = Annotated[FileExistsHashed | FileUnstable, Field(discriminator="kind")]


class GlobFileEntry(BaseModel):
    """Matched file at one glob level."""

    name: str = Field(..., min_length=1)
    state: LeafState

    model_config = ConfigDict(frozen=True)


class GlobDirEntry(BaseModel):
    """Matched subdirectory at one glob level, with the state of the remaining pattern."""

    name: str = Field(..., min_length=1)
    state: "GlobState"

    model_config = ConfigDict(frozen=True)


def _check_sorted_unique(names: list[str], what: str) -> None:
    for previous, current in zip(names, names[1:]):
        if previous >= current:
            raise ValueError(f"glob {what} must be sorted by name without duplicates")


class GlobState(BaseModel):
    """
    State of one glob level.

    Both sequences are sorted by name and free of duplicates. The invariant
    is validated on construction, including when loading a cache file.
    """

    kind: Literal["glob"] = "glob"
    files: tuple[GlobFileEntry, ...] = ()
    dirs: tuple[GlobDirEntry, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("files")
    @classmethod
    def validate_files_sorted(cls, v):
        """Ensure file entries are sorted and unique."""
        _check_sorted_unique([entry.name for entry in v], "files")
        return v

    @field_validator("dirs")
    @classmethod
    def validate_dirs_sorted(cls, v):
        """Ensure directory entries are sorted and unique."""
        _check_sorted_unique([entry.name for entry in v], "dirs")
        return v

    def iter_files(self, prefix: str = ""):
        """Yield (relative path, leaf state) for every matched file, in sorted order."""
        for name, entry in self.entries():
            path = f"{prefix}{name}"
            if isinstance(entry, GlobFileEntry):
                yield path, entry.state
            else:
                yield from entry.state.iter_files(f"{path}/")

    def first_file(self, prefix: str = "") -> str | None:
        """Relative path of the first matched file, or None when nothing matched."""
        return next((path for path, _ in self.iter_files(prefix)), None)

    def entries(self) -> list[tuple[str, Any]]:
        """Matched files and directories of this level as (name, entry), sorted by name."""
        entries: list[tuple[str, Any]] = [(entry.name, entry) for entry in self.files]
        entries.extend((entry.name, entry) for entry in self.dirs)
        entries.sort(key=lambda item: item[0])
        return entries


GlobDirEntry.model_rebuild()


ItemState = Annotated[
    FileExists | FileExistsHashed | FileMissing | FileAbsentAsExpected | FileNowPresent | FileUnstable | GlobState,
    Field(discriminator="kind"),
]


class Snapshot(BaseModel):
    """
    Persisted fingerprint of a watched set.

    Created wholesale by an update and replaced wholesale by the next one.
    Item states are aligned with the specs they were probed from.
    """

    timestamp: MonitorTimestamp
    specs: tuple[WatchedItemSpec, ...] = ()
    item_states: tuple[ItemState, ...] = ()
    config_key: Any = None
    result_value: Any = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_alignment(self):
        """Ensure there is exactly one state per spec."""
        if len(self.specs) != len(self.item_states):
            raise ValueError("snapshot specs and item states must be aligned")
        return self
