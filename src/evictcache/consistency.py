"""How engines react to internal bookkeeping desyncs."""

from __future__ import annotations

import enum
import logging

from evictcache.errors import CacheConfigError, CacheInvariantError

logger = logging.getLogger("evictcache")


class ConsistencyMode(enum.Enum):
    STRICT = "strict"
    LENIENT = "lenient"

    @classmethod
    def parse(cls, value: object) -> ConsistencyMode:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise CacheConfigError(
            f"Unknown consistency mode: {value!r} (expected 'strict' or 'lenient')."
        )


def report_violation(mode: ConsistencyMode, message: str) -> None:
    """Raise under STRICT; log and let the caller continue under LENIENT."""

    if mode is ConsistencyMode.STRICT:
        raise CacheInvariantError(message)
    logger.error("invariant violation: %s", message)
