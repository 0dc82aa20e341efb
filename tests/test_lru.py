from __future__ import annotations

import pytest

from evictcache import MISSING, CacheInvariantError, ConsistencyMode, LRUCache


def test_put_beyond_capacity_evicts_least_recent() -> None:
    cache: LRUCache[int, str] = LRUCache(3)
    for i in range(4):
        cache.put(i, str(i))

    assert len(cache) == 3
    assert list(cache.keys()) == [3, 2, 1]
    assert 0 not in cache
    assert cache.stats.evictions == 1


def test_get_hit_moves_entry_to_head() -> None:
    cache: LRUCache[int, str] = LRUCache(3)
    for i in range(4):
        cache.put(i, str(i))

    assert cache.get(1) == "1"
    assert cache.hit_count == 1
    keys = list(cache.keys())
    assert keys[0] == 1
    assert keys[-1] == 2
    cache.check_invariants()


def test_overwrite_returns_previous_value_and_refreshes() -> None:
    cache: LRUCache[str, int] = LRUCache(2)
    assert cache.put("a", 1) is MISSING
    cache.put("b", 2)

    assert cache.put("a", 10) == 1
    assert list(cache.items()) == [("a", 10), ("b", 2)]

    cache.put("c", 3)
    assert list(cache.keys()) == ["c", "a"]
    assert len(cache) == 2


def test_insertion_evicts_at_most_one_entry() -> None:
    cache: LRUCache[int, int] = LRUCache(2)
    cache.put(1, 1)
    cache.put(2, 2)
    cache.put(3, 3)
    assert len(cache) == 2
    assert cache.stats.evictions == 1


def test_capacity_one() -> None:
    cache: LRUCache[str, int] = LRUCache(1)
    cache.put("a", 1)
    cache.put("b", 2)

    assert list(cache.items()) == [("b", 2)]
    assert cache.get("a") is MISSING
    cache.check_invariants()


def test_miss_does_not_reorder() -> None:
    cache: LRUCache[int, int] = LRUCache(3)
    for i in range(3):
        cache.put(i, i)

    assert cache.get(99) is MISSING
    assert list(cache.keys()) == [2, 1, 0]
    assert cache.miss_count == 1


def test_fill_then_refill_sequence() -> None:
    for capacity in range(1, 12):
        cache: LRUCache[int, str] = LRUCache(capacity)
        for i in range(10):
            cache.put(i, str(i))
            cache.check_invariants()
        for i in range(9, -1, -1):
            cache.put(i, str(i))
            cache.check_invariants()

        expected = list(range(min(capacity, 10)))
        assert list(cache.keys()) == expected


def test_remove_last_returns_evicted_entry() -> None:
    cache: LRUCache[str, int] = LRUCache(3)
    cache.put("a", 1)
    cache.put("b", 2)

    assert cache.remove_last() == ("a", 1)
    assert list(cache.keys()) == ["b"]


def test_remove_last_on_empty_cache_is_an_invariant_violation() -> None:
    with pytest.raises(CacheInvariantError):
        LRUCache(2).remove_last()

    assert LRUCache(2, mode=ConsistencyMode.LENIENT).remove_last() is MISSING


def test_lenient_eviction_of_misfiled_node_keeps_slots_unaliased() -> None:
    cache: LRUCache[int, str] = LRUCache(4, initial_table_size=4, mode="lenient")
    cache.put(1, "one")
    cache.put(2, "two")

    # File key 1's node under key 2's bucket instead of its own.
    index, arena = cache._index, cache._arena
    i = index.lookup(1)
    home = index._bucket(1)
    other = index._bucket(2)
    index.buckets[home] = arena.chain[i]
    arena.chain[i] = index.buckets[other]
    index.buckets[other] = i

    assert cache.remove_last() == (1, "one")
    cache.put(5, "five")

    assert cache.peek(5) == "five"
    assert cache.peek(2) == "two"
    assert 1 not in cache
    cache.check_invariants()
