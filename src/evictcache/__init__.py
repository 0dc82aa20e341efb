from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from evictcache.base import MISSING, BaseCache, CacheItemsView
from evictcache.consistency import ConsistencyMode
from evictcache.errors import (
    CacheConfigError,
    CacheInvariantError,
    CachePersistenceError,
    EvictCacheError,
)
from evictcache.factory import create_cache
from evictcache.lfu import LFUCache
from evictcache.lru import LRUCache
from evictcache.lru_k import LRUKCache
from evictcache.stats import CacheListener, CacheStats


def _package_version() -> str:
    try:
        return version("evictcache")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "MISSING",
    "BaseCache",
    "CacheConfigError",
    "CacheInvariantError",
    "CacheItemsView",
    "CacheListener",
    "CachePersistenceError",
    "CacheStats",
    "ConsistencyMode",
    "EvictCacheError",
    "LFUCache",
    "LRUCache",
    "LRUKCache",
    "__version__",
    "create_cache",
]
