"""LRU-K: an LRU cache that only admits keys seen K times.

One-off writes never reach the primary store. Each ``add`` bumps a counter in
a small, bounded provisional store (itself LRU-ordered, so stale counters fall
out on their own), resident or not; once the counter reaches ``threshold`` the
counter is dropped and the entry is written through to the primary LRU store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from evictcache.base import (
    DEFAULT_MAX_CAPACITY,
    MISSING,
    BaseCache,
    K,
    V,
    check_growth,
    check_positive,
)
from evictcache.consistency import ConsistencyMode, report_violation
from evictcache.hash_index import DEFAULT_LOAD_FACTOR, DEFAULT_TABLE_SIZE
from evictcache.lru import LRUCache
from evictcache.stats import CacheListener

logger = logging.getLogger("evictcache.lru_k")

DEFAULT_THRESHOLD = 2
DEFAULT_PROVISIONAL_CAPACITY = 32


class LRUKCache(BaseCache[K, V]):
    def __init__(
        self,
        max_capacity: int = DEFAULT_MAX_CAPACITY,
        threshold: int = DEFAULT_THRESHOLD,
        provisional_capacity: int = DEFAULT_PROVISIONAL_CAPACITY,
        *,
        initial_table_size: int = DEFAULT_TABLE_SIZE,
        load_factor: float = DEFAULT_LOAD_FACTOR,
        listener: CacheListener | None = None,
        mode: ConsistencyMode | str = ConsistencyMode.STRICT,
    ) -> None:
        super().__init__(max_capacity, listener=listener, mode=mode)
        self._threshold = check_positive(threshold, name="threshold")
        self._primary: LRUCache[K, V] = LRUCache(
            max_capacity,
            initial_table_size=initial_table_size,
            load_factor=load_factor,
            mode=self._mode,
        )
        self._provisional: LRUCache[K, int] = LRUCache(
            check_positive(provisional_capacity, name="provisional_capacity"),
            initial_table_size=initial_table_size,
            load_factor=load_factor,
            mode=self._mode,
        )

    def __len__(self) -> int:
        return len(self._primary)

    # -- configuration ----------------------------------------------------

    @property
    def threshold(self) -> int:
        """Number of adds needed before a key is promoted.

        May be raised or lowered at any time. Existing counters are left
        alone and compared against the new value on their next ``add``.
        """

        return self._threshold

    @threshold.setter
    def threshold(self, value: int) -> None:
        self._threshold = check_positive(value, name="threshold")

    @property
    def provisional_capacity(self) -> int:
        return self._provisional.max_capacity

    @provisional_capacity.setter
    def provisional_capacity(self, value: int) -> None:
        self._provisional.max_capacity = check_growth(
            self._provisional.max_capacity, value, name="provisional_capacity"
        )

    def _apply_max_capacity(self, value: int) -> None:
        super()._apply_max_capacity(value)
        self._primary.max_capacity = value

    # -- access -----------------------------------------------------------

    def _access(self, key: Any) -> Any:
        version = self._primary._version
        value = self._primary._access(key)
        if self._primary._version != version:
            self._version += 1
        return value

    def _peek(self, key: Any) -> Any:
        return self._primary._peek(key)

    def _iter_entries(self) -> Iterator[tuple[K, V]]:
        return self._primary._iter_entries()

    def add(self, key: K, value: V) -> Any:
        """Record a write of `key`, storing it once it has been seen often enough.

        Every add counts toward ``threshold``, whether or not the key is
        already resident; until the count is reached the primary store is
        left untouched. On reaching it the previous primary value is returned
        (``MISSING`` for a fresh promotion). Otherwise returns ``MISSING``.
        """

        self._version += 1
        count = self._provisional._access(key)
        seen = count is not MISSING
        count = count + 1 if seen else 1
        if count < self._threshold:
            self._provisional.put(key, count)
            return MISSING

        if seen and self._provisional.pop(key) is MISSING:
            report_violation(self._mode, f"access count for key {key!r} vanished before promotion")

        evicted = self._primary.stats.evictions
        old = self._primary.put(key, value)
        self._stats.evictions += self._primary.stats.evictions - evicted
        if old is MISSING:
            self._stats.promotions += 1
            logger.debug("promoted key=%r after %d adds", key, count)
        return old

    def put(self, key: K, value: V) -> Any:
        return self.add(key, value)

    def provisional_count(self, key: K) -> int:
        """Adds recorded for `key` that have not led to a promotion yet (read-only)."""

        return self._provisional.peek(key, 0)

    def pop(self, key: K, default: Any = MISSING) -> Any:
        """Remove `key` from the primary store and forget its provisional history."""

        self._version += 1
        self._provisional.pop(key)
        return self._primary.pop(key, default)

    def clear(self) -> None:
        self._primary.clear()
        self._provisional.clear()
        self._version += 1

    def check_invariants(self) -> None:
        self._primary.check_invariants()
        self._provisional.check_invariants()
