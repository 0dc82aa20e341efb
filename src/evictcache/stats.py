"""Hit/miss accounting and the optional telemetry sink."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class CacheStats:
    """Running counters for one cache instance."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    promotions: int = 0

    @property
    def accesses(self) -> int:
        return self.hits + self.misses

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def as_dict(self) -> dict[str, object]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "promotions": self.promotions,
            "hit_ratio": round(self.hit_ratio, 6),
        }


@dataclass(frozen=True, slots=True)
class CacheListener:
    """Callbacks invoked in-line after a `get` has updated the counters.

    Exceptions raised by a callback propagate to the caller of `get`; the
    access itself is not rolled back.
    """

    on_hit: Callable[[Any, Any], None] | None = None
    on_miss: Callable[[Any], None] | None = None
