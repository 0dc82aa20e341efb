"""Least-frequently-used cache.

The order list is kept sorted by access frequency, highest at the head. A
bumped node walks toward the head past every predecessor whose frequency is
not greater than its own, so among equal frequencies the node that reached
that frequency most recently sits closest to the head and the tail is the
least frequently used entry that got there first.

Repositioning costs O(number of nodes passed), not O(1).
"""

from __future__ import annotations

from typing import Any

from evictcache.arena import NIL
from evictcache.base import MISSING, K, LinkedCache, V
from evictcache.errors import CacheInvariantError


class LFUCache(LinkedCache[K, V]):
    def _passes(self, pred: int, i: int) -> bool:
        freq = self._arena.freq
        return freq[pred] <= freq[i]

    def _bump(self, i: int) -> None:
        self._arena.freq[i] += 1
        self._order.reposition(i, self._passes)
        self._version += 1

    def _access(self, key: Any) -> Any:
        i = self._index.lookup(key)
        if i == NIL:
            return MISSING
        self._bump(i)
        return self._arena.values[i]

    def put(self, key: K, value: V) -> Any:
        """Insert or overwrite `key`; return the previous value or ``MISSING``.

        A full cache evicts its tail before the new entry is linked in, so a
        fresh entry is never its own eviction victim.
        """

        i = self._index.lookup(key)
        if i != NIL:
            old = self._arena.values[i]
            self._arena.values[i] = value
            self._bump(i)
            return old

        if self._size >= self._max_capacity:
            self.remove_last()
        i = self._new_node(key, value, freq=1)
        self._order.insert_at_tail(i)
        self._order.reposition(i, self._passes)
        return MISSING

    def frequency(self, key: K) -> int:
        """Access frequency of `key` (0 when absent); read-only."""

        i = self._index.lookup(key)
        return 0 if i == NIL else self._arena.freq[i]

    def check_invariants(self) -> None:
        super().check_invariants()
        freq = self._arena.freq
        last = None
        for i in self._order:
            if freq[i] < 1 or (last is not None and freq[i] > last):
                raise CacheInvariantError(f"frequency order broken at key {self._arena.keys[i]!r}")
            last = freq[i]
