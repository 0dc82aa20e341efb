"""Build an engine from a policy name."""

from __future__ import annotations

from typing import Any

from evictcache.base import DEFAULT_MAX_CAPACITY, BaseCache
from evictcache.consistency import ConsistencyMode
from evictcache.errors import CacheConfigError
from evictcache.hash_index import DEFAULT_LOAD_FACTOR, DEFAULT_TABLE_SIZE
from evictcache.lfu import LFUCache
from evictcache.lru import LRUCache
from evictcache.lru_k import DEFAULT_PROVISIONAL_CAPACITY, DEFAULT_THRESHOLD, LRUKCache
from evictcache.stats import CacheListener

POLICIES = ("lru", "lru-k", "lfu")

_ALIASES = {
    "lru": "lru",
    "lru-k": "lru-k",
    "lru_k": "lru-k",
    "lruk": "lru-k",
    "lfu": "lfu",
}


def normalize_policy(name: Any) -> str:
    if isinstance(name, str):
        policy = _ALIASES.get(name.strip().lower())
        if policy is not None:
            return policy
    raise CacheConfigError(
        f"Unknown cache policy: {name!r} (expected one of {', '.join(POLICIES)})."
    )


def create_cache(
    policy: str,
    max_capacity: int = DEFAULT_MAX_CAPACITY,
    *,
    threshold: int = DEFAULT_THRESHOLD,
    provisional_capacity: int = DEFAULT_PROVISIONAL_CAPACITY,
    initial_table_size: int = DEFAULT_TABLE_SIZE,
    load_factor: float = DEFAULT_LOAD_FACTOR,
    listener: CacheListener | None = None,
    mode: ConsistencyMode | str = ConsistencyMode.STRICT,
) -> BaseCache[Any, Any]:
    """Create an empty cache for `policy` ("lru", "lru-k" or "lfu").

    `threshold` and `provisional_capacity` only apply to LRU-K.
    """

    policy = normalize_policy(policy)
    table = {"initial_table_size": initial_table_size, "load_factor": load_factor}
    if policy == "lru":
        return LRUCache(max_capacity, listener=listener, mode=mode, **table)
    if policy == "lfu":
        return LFUCache(max_capacity, listener=listener, mode=mode, **table)
    return LRUKCache(
        max_capacity,
        threshold,
        provisional_capacity,
        listener=listener,
        mode=mode,
        **table,
    )
