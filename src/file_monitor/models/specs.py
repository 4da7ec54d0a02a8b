"""
Watched-item specifications.

A spec declares one thing a cached result depends on: a file that must exist
(tracked by mtime, or by mtime and content digest), a file that must not
exist, or a glob pattern over a directory tree.
"""

from pathlib import PurePosixPath
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def join_relative_path(base: str, name: str) -> str:
    """Join root-relative POSIX paths, treating '.' and '' as the root."""
    if base in ("", "."):
        return name
    return f"{base}/{name}"


def _normalize_relative_path(value: str) -> str:
    if "\\" in value:
        raise ValueError("paths must use '/' as separator")
    path = PurePosixPath(value)
    if path.is_absolute():
        raise ValueError("paths must be relative to the monitored root")
    if ".." in path.parts:
        raise ValueError("paths must not escape the monitored root")
    return path.as_posix()


class GlobSegment(BaseModel):
    """
    Matcher for a single path component.

    The pieces are the literal text between '*' wildcards, so 'good-*' is
    ('good-', '') and a literal name has exactly one piece.
    """

    pieces: tuple[str, ...] = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("pieces")
    @classmethod
    def validate_pieces(cls, v):
        """Reject pieces that could span more than one path component."""
        for piece in v:
            if "/" in piece or "*" in piece:
                raise ValueError("glob segment pieces must not contain '/' or '*'")
        if len(v) == 1 and not v[0]:
            raise ValueError("literal glob segment must not be empty")
        return v

    @property
    def is_literal(self) -> bool:
        return len(self.pieces) == 1

    def matches(self, name: str) -> bool:
        """Check whether a directory entry name matches this segment."""
        if self.is_literal:
            return name == self.pieces[0]

        head, *middle, tail = self.pieces
        if len(name) < len(head) + len(tail):
            return False
        if not name.startswith(head) or not name.endswith(tail):
            return False

        # leftmost placement of each middle piece is sufficient for '*'-only globs
        position = len(head)
        end = len(name) - len(tail)
        for piece in middle:
            found = name.find(piece, position, end)
            if found < 0:
                return False
            position = found + len(piece)
        return True

    def __str__(self) -> str:
        return "*".join(self.pieces)


class _PathSpec(BaseModel):
    path: str = Field(..., min_length=1, description="Path relative to the monitored root")

    model_config = ConfigDict(frozen=True)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v):
        """Normalize to a clean root-relative POSIX path."""
        return _normalize_relative_path(v)

    @property
    def display_path(self) -> str:
        return self.path


class ExactFile(_PathSpec):
    """A file that must exist, tracked by modification time."""

    kind: Literal["exact_file"] = "exact_file"


class ExactFileHashed(_PathSpec):
    """A file that must exist, tracked by modification time and content digest."""

    kind: Literal["exact_file_hashed"] = "exact_file_hashed"


class ExpectedAbsent(_PathSpec):
    """A file that must not exist; only its appearance is a change."""

    kind: Literal["expected_absent"] = "expected_absent"


class GlobPattern(BaseModel):
    """
    A glob over a directory tree, one segment per directory level.

    Segments only support '*' within a single path component. Matches are
    tracked by content digest.
    """

    kind: Literal["glob"] = "glob"
    segments: tuple[GlobSegment, ...] = Field(..., min_length=1, description="Parsed path segments")
    base_dir: str = Field(default=".", description="Directory the pattern is relative to")

    model_config = ConfigDict(frozen=True)

    @field_validator("base_dir")
    @classmethod
    def validate_base_dir(cls, v):
        """Normalize the base directory like any other root-relative path."""
        if v in ("", "."):
            return "."
        return _normalize_relative_path(v)

    @classmethod
    def parse(cls, pattern: str, base_dir: str = ".") -> "GlobPattern":
        """
        Build a glob spec from pattern text.

        Raises:
            GlobSyntaxError: If the pattern is malformed
        """
        from file_monitor.parsers.glob_parser import GlobParser

        return cls(segments=GlobParser().parse(pattern), base_dir=base_dir)

    @property
    def pattern(self) -> str:
        return "/".join(str(segment) for segment in self.segments)

    @property
    def display_path(self) -> str:
        return join_relative_path(self.base_dir, self.pattern)


WatchedItemSpec = Annotated[
    ExactFile | ExactFileHashed | ExpectedAbsent | GlobPattern,
    Field(discriminator="kind"),
]
