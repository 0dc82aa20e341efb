"""Least-recently-used cache."""

from __future__ import annotations

from typing import Any

from evictcache.arena import NIL
from evictcache.base import MISSING, K, LinkedCache, V


class LRUCache(LinkedCache[K, V]):
    """Fixed-capacity cache evicting the least recently used entry.

    Every hit and every overwrite moves the entry to the head of the order
    list; a new entry goes in at the head and, once the cache holds more than
    ``max_capacity`` entries, exactly one entry (the tail) is evicted.
    """

    def _access(self, key: Any) -> Any:
        i = self._index.lookup(key)
        if i == NIL:
            return MISSING
        if i != self._order.head:
            self._order.move_to_head(i)
            self._version += 1
        return self._arena.values[i]

    def put(self, key: K, value: V) -> Any:
        """Insert or overwrite `key`; return the previous value or ``MISSING``."""

        i = self._index.lookup(key)
        if i != NIL:
            old = self._arena.values[i]
            self._arena.values[i] = value
            self._order.move_to_head(i)
            self._version += 1
            return old

        i = self._new_node(key, value)
        self._order.insert_at_head(i)
        if self._size > self._max_capacity:
            self.remove_last()
        return MISSING
