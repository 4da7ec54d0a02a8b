"""
Parsers package for watched-item pattern syntax.

Glob patterns are parsed once, when a spec is constructed, into the segment
sequence the glob matcher consumes.
"""

from .glob_parser import GlobParser

__all__ = [
    "GlobParser",
]
