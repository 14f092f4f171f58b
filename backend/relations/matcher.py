"""
Column Matchers

Strategies deciding whether two columns from different tables look like
the same key. Cardinality and merge logic only see the ColumnMatcher
interface, so stricter matchers can be swapped in.
"""

import re
from abc import ABC, abstractmethod

from schemas.tables import Column

_SEPARATORS = re.compile(r"[_\s-]")


class ColumnMatcher(ABC):
    """Abstract base class for cross-table column matching."""

    @abstractmethod
    def matches(self, left: Column, right: Column) -> bool:
        """True when the two columns should be linked."""
        pass


def normalize_name(name: str) -> str:
    """Lowercase and drop underscores, whitespace and hyphens."""
    return _SEPARATORS.sub("", name.lower())


class NameColumnMatcher(ColumnMatcher):
    """
    Heuristic name matcher.

    Two names match when, after normalization, they are equal, or both
    contain "id" and are equal once the first "id" is removed, or one ends
    with the other.
    """

    def matches(self, left: Column, right: Column) -> bool:
        return self.names_match(left.name, right.name)

    def names_match(self, name1: str, name2: str) -> bool:
        norm1 = normalize_name(name1)
        norm2 = normalize_name(name2)

        if not norm1 or not norm2:
            return False

        if norm1 == norm2:
            return True

        if "id" in norm1 and "id" in norm2 and norm1.replace("id", "", 1) == norm2.replace("id", "", 1):
            return True

        return norm1.endswith(norm2) or norm2.endswith(norm1)


class ExactNameMatcher(ColumnMatcher):
    """Strict matcher: normalized names must be identical."""

    def matches(self, left: Column, right: Column) -> bool:
        norm1 = normalize_name(left.name)
        return bool(norm1) and norm1 == normalize_name(right.name)


# Default strategy
default_matcher = NameColumnMatcher()
