from __future__ import annotations

import logging
import os
from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V | None
    dependencies: frozenset[str] = field(default_factory=frozenset)
    listings: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_absent(self) -> bool:
        return self.value is None


class BoundedCache(Generic[K, V]):
    """Capacity-bounded mapping with insertion-order eviction.

    A stored ``None`` is a cached "absent" result and is distinct from a miss:
    use :meth:`lookup`, which returns the whole entry, to tell them apart.
    Re-setting an existing key does not refresh its eviction order.
    """

    def __init__(self, capacity: int, name: str = "cache") -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.name = name
        self._entries: dict[K, CacheEntry[V]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def lookup(self, key: K) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def get(self, key: K) -> V | None:
        entry = self.lookup(key)
        return entry.value if entry else None

    def set(
        self, key: K, value: V | None, dependencies: Iterable[str] = (), listings: Iterable[str] = ()
    ) -> None:
        if key not in self._entries and len(self._entries) >= self.capacity:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("%s evicted %r", self.name, oldest)
        self._entries[key] = CacheEntry(
            value=value, dependencies=frozenset(dependencies), listings=frozenset(listings)
        )

    def invalidate(self, paths: Iterable[str]) -> int:
        """Drop entries that depended on any of ``paths`` plus every absent entry.

        An entry that listed a directory is also dropped when a path inside that
        directory changes, so newly created files are picked up.
        """
        changed = set(paths)
        parents = {os.path.dirname(path) for path in changed}
        stale = [
            key
            for key, entry in self._entries.items()
            if entry.is_absent or (entry.dependencies & changed) or (entry.listings & parents)
        ]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        return list(self._entries)

    def stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "capacity": self.capacity, "hits": self.hits, "misses": self.misses}
