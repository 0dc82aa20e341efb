"""Open-chained hash index over arena node indices."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from evictcache.arena import NIL, NodeArena
from evictcache.consistency import ConsistencyMode, report_violation
from evictcache.errors import CacheConfigError

logger = logging.getLogger("evictcache.hash_index")

DEFAULT_TABLE_SIZE = 16
DEFAULT_LOAD_FACTOR = 0.75
MAX_TABLE_SIZE = 1 << 30


def table_size_for(n: int) -> int:
    """Smallest power of two >= n, clamped to [1, MAX_TABLE_SIZE]."""

    if n <= 1:
        return 1
    return min(1 << (n - 1).bit_length(), MAX_TABLE_SIZE)


def _spread(key: Any) -> int:
    h = hash(key)
    return h ^ (h >> 16)


class HashIndex:
    """Maps keys to node indices through per-bucket chains.

    Chains are singly linked through ``arena.chain``. New nodes are
    head-inserted; order within a chain carries no meaning. The bucket of a
    key is recomputed from ``hash(key)`` every time, including during resize.
    """

    def __init__(
        self,
        arena: NodeArena,
        *,
        initial_size: int = DEFAULT_TABLE_SIZE,
        load_factor: float = DEFAULT_LOAD_FACTOR,
        mode: ConsistencyMode = ConsistencyMode.STRICT,
    ) -> None:
        if not isinstance(initial_size, int) or isinstance(initial_size, bool) or initial_size < 1:
            raise CacheConfigError("Hash table initial size must be a positive integer.")
        if not isinstance(load_factor, (int, float)) or isinstance(load_factor, bool):
            raise CacheConfigError("Hash table load factor must be a number.")
        if not 0 < load_factor <= 4:
            raise CacheConfigError("Hash table load factor must be in (0, 4].")

        self._arena = arena
        self._mode = mode
        self.load_factor = float(load_factor)
        self.buckets: list[int] = [NIL] * table_size_for(initial_size)
        self.count = 0
        self.resize_count = 0

    @property
    def table_size(self) -> int:
        return len(self.buckets)

    def _bucket(self, key: Any) -> int:
        return _spread(key) & (len(self.buckets) - 1)

    def lookup(self, key: Any) -> int:
        """Return the index of the node holding `key`, or NIL."""

        keys = self._arena.keys
        chain = self._arena.chain
        i = self.buckets[self._bucket(key)]
        while i != NIL:
            k = keys[i]
            if k is key or k == key:
                return i
            i = chain[i]
        return NIL

    def insert(self, i: int) -> None:
        if self.count + 1 > len(self.buckets) * self.load_factor:
            self.resize()
        b = self._bucket(self._arena.keys[i])
        self._arena.chain[i] = self.buckets[b]
        self.buckets[b] = i
        self.count += 1

    def _unchain(self, b: int, i: int) -> bool:
        chain = self._arena.chain
        prev = NIL
        cur = self.buckets[b]
        while cur != NIL:
            if cur == i:
                if prev == NIL:
                    self.buckets[b] = chain[cur]
                else:
                    chain[prev] = chain[cur]
                chain[cur] = NIL
                self.count -= 1
                return True
            prev = cur
            cur = chain[cur]
        return False

    def remove(self, i: int) -> bool:
        """Splice node `i` out of its bucket chain.

        Returns False (under LENIENT) when the node is not in the bucket its
        key hashes to. Any stray link to it elsewhere in the table is still
        cut, so the caller may release the slot.
        """

        b = self._bucket(self._arena.keys[i])
        if self._unchain(b, i):
            return True

        report_violation(
            self._mode,
            f"node for key {self._arena.keys[i]!r} not found in its hash bucket {b}",
        )
        for other in range(len(self.buckets)):
            if other != b and self._unchain(other, i):
                logger.error("unlinked key %r from foreign bucket %d", self._arena.keys[i], other)
                break
        return False

    def resize(self) -> None:
        """Double the table and relink every chained node into its new bucket."""

        old = self.buckets
        if len(old) >= MAX_TABLE_SIZE:
            return

        keys = self._arena.keys
        chain = self._arena.chain
        new: list[int] = [NIL] * (len(old) * 2)
        mask = len(new) - 1
        for head in old:
            i = head
            while i != NIL:
                nxt = chain[i]
                b = _spread(keys[i]) & mask
                chain[i] = new[b]
                new[b] = i
                i = nxt

        self.buckets = new
        self.resize_count += 1
        logger.debug("hash table resized %d -> %d (%d nodes)", len(old), len(new), self.count)

    def clear(self) -> None:
        self.buckets = [NIL] * len(self.buckets)
        self.count = 0

    def iter_chain(self, bucket: int) -> Iterator[int]:
        i = self.buckets[bucket]
        while i != NIL:
            yield i
            i = self._arena.chain[i]
