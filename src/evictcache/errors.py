"""evictcache exception hierarchy.

Keep this module small and dependency-free: it is imported by every engine
and by tests.
"""


class EvictCacheError(Exception):
    """Base exception for all evictcache errors."""


class CacheConfigError(EvictCacheError):
    """Raised for invalid capacities, thresholds, or configuration files."""


class CacheInvariantError(EvictCacheError):
    """Raised when the hash index and the order list fall out of sync."""


class CachePersistenceError(EvictCacheError):
    """Raised when a key=value snapshot cannot be read or written."""
