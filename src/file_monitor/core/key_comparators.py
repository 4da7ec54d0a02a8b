"""Key validity comparators for cached results."""

from collections.abc import Set
from typing import Any

from file_monitor.core.interfaces import IKeyComparator


class ExactKeyComparator(IKeyComparator):
    """A cached result is valid only for an equal key."""

    def is_valid(self, new_key: Any, stored_key: Any) -> bool:
        return new_key == stored_key


class SubsetKeyComparator(IKeyComparator):
    """
    A cached result is valid for any subset of the key it was built for.

    Suits keys that are sets of requested targets: a result built for
    {a, b} also serves a later request for {a}.
    """

    def is_valid(self, new_key: Any, stored_key: Any) -> bool:
        if not isinstance(new_key, Set) or not isinstance(stored_key, Set):
            return new_key == stored_key
        return new_key <= stored_key
