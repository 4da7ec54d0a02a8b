"""
Outcomes of checking a file monitor.

Every outcome, including a missing or corrupt cache, is a return value.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from file_monitor.models.specs import WatchedItemSpec


class FirstRun(BaseModel):
    """No cache file exists yet."""

    kind: Literal["first_run"] = "first_run"

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "first run"


class CorruptCache(BaseModel):
    """The cache file exists but could not be decoded."""

    kind: Literal["corrupt_cache"] = "corrupt_cache"

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "corrupt cache file"


class FileChanged(BaseModel):
    """A watched file or glob match differs from the snapshot."""

    kind: Literal["file_changed"] = "file_changed"
    path: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"file changed: {self.path}"


class ValueChanged(BaseModel):
    """Only the configuration key differs; carries the key stored in the snapshot."""

    kind: Literal["value_changed"] = "value_changed"
    old_key: Any = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"key changed (was {self.old_key!r})"


ChangeReason = Annotated[
    FirstRun | CorruptCache | FileChanged | ValueChanged,
    Field(discriminator="kind"),
]


class MonitorUnchanged(BaseModel):
    """Nothing relevant changed; the cached result can be reused."""

    value: Any = None
    specs: tuple[WatchedItemSpec, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def changed(self) -> bool:
        return False


class MonitorChanged(BaseModel):
    """Something relevant changed; the reason is the most specific one found."""

    reason: ChangeReason

    model_config = ConfigDict(frozen=True)

    @property
    def changed(self) -> bool:
        return True

    def __str__(self) -> str:
        return f"MonitorChanged({self.reason})"


MonitorResult = MonitorUnchanged | MonitorChanged
