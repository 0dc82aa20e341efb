"""Facade shared by every eviction policy, plus the arena/index/list plumbing.

`BaseCache` owns the surface callers touch: get/put, counters, the optional
listener, capacity rules and read-only iteration. `LinkedCache` adds the
node arena, hash index and order list used by the LRU and LFU engines.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, Generic, TypeVar

from evictcache.arena import NIL, NodeArena
from evictcache.consistency import ConsistencyMode, report_violation
from evictcache.errors import CacheConfigError, CacheInvariantError
from evictcache.hash_index import DEFAULT_LOAD_FACTOR, DEFAULT_TABLE_SIZE, HashIndex
from evictcache.ordered_list import OrderedList
from evictcache.stats import CacheListener, CacheStats

logger = logging.getLogger("evictcache.base")

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_MAX_CAPACITY = 32


class _Missing:
    """Sentinel for "no value": a miss, or no previous value on put."""

    __slots__ = ()
    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def check_positive(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise CacheConfigError(f"{name} must be an integer, got {value!r}.")
    if value <= 0:
        raise CacheConfigError(f"{name} must be greater than zero, got {value}.")
    return value


def check_growth(current: int, value: Any, *, name: str) -> int:
    value = check_positive(value, name=name)
    if value < current:
        raise CacheConfigError(f"{name} can only grow ({current} -> {value}).")
    return value


class CacheItemsView(Generic[K, V]):
    """Restartable, read-only view of ``(key, value)`` pairs, head to tail.

    Each ``iter()`` starts a fresh walk. Iterating never touches counters,
    the listener, or the eviction order; mutating the cache while a walk is
    in progress makes the walk raise ``RuntimeError``.
    """

    __slots__ = ("_cache",)

    def __init__(self, cache: BaseCache[K, V]) -> None:
        self._cache = cache

    def __len__(self) -> int:
        return len(self._cache)

    def __iter__(self) -> Iterator[tuple[K, V]]:
        cache = self._cache
        version = cache._version
        for entry in cache._iter_entries():
            if cache._version != version:
                raise RuntimeError(f"{type(cache).__name__} changed during iteration")
            yield entry
        if cache._version != version:
            raise RuntimeError(f"{type(cache).__name__} changed during iteration")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"


class BaseCache(Generic[K, V]):
    """Common facade: accounting, listener dispatch, capacity rules, iteration.

    Subclasses implement ``_access`` (reordering lookup), ``_peek``, ``put``,
    ``pop``, ``clear``, ``_iter_entries`` and ``__len__``. ``MISSING`` cannot be
    stored as a value.
    """

    def __init__(
        self,
        max_capacity: int = DEFAULT_MAX_CAPACITY,
        *,
        listener: CacheListener | None = None,
        mode: ConsistencyMode | str = ConsistencyMode.STRICT,
    ) -> None:
        self._max_capacity = check_positive(max_capacity, name="max_capacity")
        self._listener = listener
        self._mode = ConsistencyMode.parse(mode)
        self._stats = CacheStats()
        # Bumped on every mutation; live iterators compare against it.
        self._version = 0

    # -- capacity ---------------------------------------------------------

    @property
    def max_capacity(self) -> int:
        return self._max_capacity

    @max_capacity.setter
    def max_capacity(self, value: int) -> None:
        self._apply_max_capacity(check_growth(self._max_capacity, value, name="max_capacity"))

    def _apply_max_capacity(self, value: int) -> None:
        self._max_capacity = value

    @property
    def mode(self) -> ConsistencyMode:
        return self._mode

    # -- accounting -------------------------------------------------------

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def hit_count(self) -> int:
        return self._stats.hits

    @property
    def miss_count(self) -> int:
        return self._stats.misses

    @property
    def hit_ratio(self) -> float:
        return self._stats.hit_ratio

    # -- access -----------------------------------------------------------

    def get(self, key: K, default: Any = MISSING) -> Any:
        """Return the value for `key` (recording a hit) or `default` on a miss."""

        value = self._access(key)
        listener = self._listener
        if value is MISSING:
            self._stats.misses += 1
            if listener is not None and listener.on_miss is not None:
                listener.on_miss(key)
            return default

        self._stats.hits += 1
        if listener is not None and listener.on_hit is not None:
            listener.on_hit(key, value)
        return value

    def peek(self, key: K, default: Any = MISSING) -> Any:
        """Read-only lookup: no accounting, no listener, no reordering."""

        value = self._peek(key)
        return default if value is MISSING else value

    def __contains__(self, key: object) -> bool:
        return self._peek(key) is not MISSING

    def size(self) -> int:
        return len(self)

    def items(self) -> CacheItemsView[K, V]:
        return CacheItemsView(self)

    def keys(self) -> Iterator[K]:
        for key, _ in self.items():
            yield key

    def values(self) -> Iterator[V]:
        for _, value in self.items():
            yield value

    def __iter__(self) -> Iterator[K]:
        return self.keys()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(max_capacity={self._max_capacity}, size={len(self)})"

    # -- subclass hooks ---------------------------------------------------

    def __len__(self) -> int:
        raise NotImplementedError

    def _access(self, key: Any) -> Any:
        raise NotImplementedError

    def _peek(self, key: Any) -> Any:
        raise NotImplementedError

    def _iter_entries(self) -> Iterator[tuple[K, V]]:
        raise NotImplementedError

    def put(self, key: K, value: V) -> Any:
        raise NotImplementedError

    def pop(self, key: K, default: Any = MISSING) -> Any:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class LinkedCache(BaseCache[K, V]):
    """Engine base owning a node arena, a hash index and an order list."""

    def __init__(
        self,
        max_capacity: int = DEFAULT_MAX_CAPACITY,
        *,
        initial_table_size: int = DEFAULT_TABLE_SIZE,
        load_factor: float = DEFAULT_LOAD_FACTOR,
        listener: CacheListener | None = None,
        mode: ConsistencyMode | str = ConsistencyMode.STRICT,
    ) -> None:
        super().__init__(max_capacity, listener=listener, mode=mode)
        self._arena = NodeArena()
        self._index = HashIndex(
            self._arena,
            initial_size=initial_table_size,
            load_factor=load_factor,
            mode=self._mode,
        )
        self._order = OrderedList(self._arena)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def table_size(self) -> int:
        return self._index.table_size

    @property
    def resize_count(self) -> int:
        return self._index.resize_count

    def _peek(self, key: Any) -> Any:
        i = self._index.lookup(key)
        return MISSING if i == NIL else self._arena.values[i]

    def _iter_entries(self) -> Iterator[tuple[K, V]]:
        keys, values = self._arena.keys, self._arena.values
        for i in self._order:
            yield keys[i], values[i]

    def _new_node(self, key: K, value: V, freq: int = 0) -> int:
        i = self._arena.allocate(key, value, freq)
        self._index.insert(i)
        self._size += 1
        self._version += 1
        return i

    def _discard(self, i: int) -> None:
        # The index cuts every link to the node, even a misfiled one under
        # LENIENT, before the slot goes back to the free list.
        self._index.remove(i)
        self._order.unlink(i)
        self._arena.release(i)
        self._size -= 1
        self._version += 1

    def remove_last(self) -> Any:
        """Evict the tail entry and return it as ``(key, value)``.

        Calling this on an empty cache is an invariant violation; under
        LENIENT it is logged and ``MISSING`` is returned.
        """

        i = self._order.tail
        if i == NIL:
            report_violation(self._mode, "remove_last: order list has no tail")
            return MISSING

        entry = (self._arena.keys[i], self._arena.values[i])
        self._discard(i)
        self._stats.evictions += 1
        logger.debug("%s evicted key=%r", type(self).__name__, entry[0])
        return entry

    def pop(self, key: K, default: Any = MISSING) -> Any:
        """Remove `key` without touching the counters."""

        i = self._index.lookup(key)
        if i == NIL:
            return default
        value = self._arena.values[i]
        self._discard(i)
        return value

    def clear(self) -> None:
        self._arena.clear()
        self._index.clear()
        self._order.clear()
        self._size = 0
        self._version += 1

    def check_invariants(self) -> None:
        """Cross-validate the hash index against the order list.

        Raises CacheInvariantError on the first disagreement regardless of
        the consistency mode.
        """

        arena = self._arena
        order = self._order
        if (order.head == NIL) != (order.tail == NIL):
            raise CacheInvariantError("head/tail disagree about emptiness")
        if (order.head == NIL) != (self._size == 0):
            raise CacheInvariantError(f"empty list but size={self._size}")
        if self._size > self._max_capacity:
            raise CacheInvariantError(f"size {self._size} exceeds capacity {self._max_capacity}")

        seen: set[int] = set()
        prev = NIL
        i = order.head
        while i != NIL:
            if i in seen or len(seen) > self._size:
                raise CacheInvariantError("cycle in order list")
            if arena.prev[i] != prev:
                raise CacheInvariantError(f"broken prev link at key {arena.keys[i]!r}")
            if self._index.lookup(arena.keys[i]) != i:
                raise CacheInvariantError(f"key {arena.keys[i]!r} not indexed to its node")
            seen.add(i)
            prev = i
            i = arena.next[i]
        if prev != order.tail:
            raise CacheInvariantError("tail is not the last node of the order list")

        chained = 0
        for b in range(self._index.table_size):
            for j in self._index.iter_chain(b):
                chained += 1
                if j not in seen or chained > self._size:
                    raise CacheInvariantError(f"bucket {b} chains a node outside the order list")
        if not (len(seen) == chained == self._index.count == len(arena) == self._size):
            raise CacheInvariantError(
                f"count mismatch: list={len(seen)} chains={chained} "
                f"index={self._index.count} arena={len(arena)} size={self._size}"
            )
