import pytest

from evictcache.errors import (
    CacheConfigError,
    CacheInvariantError,
    CachePersistenceError,
    EvictCacheError,
)


def test_all_errors_are_subclasses_of_evictcache_error() -> None:
    assert issubclass(CacheConfigError, EvictCacheError)
    assert issubclass(CacheInvariantError, EvictCacheError)
    assert issubclass(CachePersistenceError, EvictCacheError)


def test_error_message_is_preserved() -> None:
    msg = "boom"
    err = CacheConfigError(msg)
    assert str(err) == msg


def test_can_catch_any_evictcache_error() -> None:
    def raise_one() -> None:
        raise CacheInvariantError("nope")

    with pytest.raises(EvictCacheError):
        raise_one()
