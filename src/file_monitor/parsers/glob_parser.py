"""
Parser turning glob pattern text into path segment matchers.

Patterns are '/'-separated and relative. Each segment may use '*' to match
any run of characters within a single path component. There is no recursive
'**' wildcard and no character classes.
"""

import logging

from file_monitor.models.exceptions import GlobSyntaxError
from file_monitor.models.specs import GlobSegment

logger = logging.getLogger(__name__)


class GlobParser:
    """Parser for the '*'-only, one-level-per-segment glob syntax."""

    SEPARATOR = "/"
    WILDCARD = "*"

    def parse(self, pattern: str) -> tuple[GlobSegment, ...]:
        """
        Parse a glob pattern into its path segments.

        Args:
            pattern: Pattern text such as 'src/*/module-*.py'

        Returns:
            Tuple of segment matchers, one per directory level

        Raises:
            GlobSyntaxError: If the pattern is malformed
        """
        if not pattern:
            raise GlobSyntaxError("Glob pattern is empty", pattern=pattern)
        if "\\" in pattern:
            raise GlobSyntaxError("Glob pattern must use '/' as separator", pattern=pattern)
        if pattern.startswith(self.SEPARATOR):
            raise GlobSyntaxError("Glob pattern must be relative", pattern=pattern)

        segments = tuple(self.parse_segment(text, pattern) for text in pattern.split(self.SEPARATOR))
        logger.debug("Parsed glob %r into %d segments", pattern, len(segments))
        return segments

    def parse_segment(self, text: str, pattern: str | None = None) -> GlobSegment:
        """
        Parse a single path component of a glob.

        Raises:
            GlobSyntaxError: If the segment is empty, a relative reference or
                contains a recursive wildcard
        """
        if not text:
            raise GlobSyntaxError("Glob pattern contains an empty segment", pattern=pattern, segment=text)
        if text in (".", ".."):
            raise GlobSyntaxError("Glob segments must not be '.' or '..'", pattern=pattern, segment=text)
        if self.WILDCARD * 2 in text:
            raise GlobSyntaxError("Recursive '**' wildcards are not supported", pattern=pattern, segment=text)

        return GlobSegment(pieces=tuple(text.split(self.WILDCARD)))
