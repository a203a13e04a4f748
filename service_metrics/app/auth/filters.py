"""
Index access filters resolved from API keys.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable

ALL_INDEXES = "*"


@dataclass(frozen=True)
class AccessFilter:
    """Which indexes a credential may read.

    Patterns are exact index names, `*` for every index, or a prefix
    ending in `*` (``"products_*"``).
    """

    index_patterns: FrozenSet[str] = frozenset({ALL_INDEXES})

    @classmethod
    def for_indexes(cls, patterns: Iterable[str]) -> "AccessFilter":
        return cls(index_patterns=frozenset(patterns))

    @classmethod
    def all_indexes(cls) -> "AccessFilter":
        return cls(index_patterns=frozenset({ALL_INDEXES}))

    def all_indexes_authorized(self) -> bool:
        return ALL_INDEXES in self.index_patterns

    def is_index_authorized(self, index_uid: str) -> bool:
        for pattern in self.index_patterns:
            if pattern.endswith("*"):
                if index_uid.startswith(pattern[:-1]):
                    return True
            elif pattern == index_uid:
                return True
        return False
