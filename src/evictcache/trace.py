"""Access traces and replaying them through a cache.

Trace format, one access per line:

- ``key``        read; a miss inserts the key with itself as the value
- ``key=value``  write
- blank lines and ``#`` comments are ignored
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from evictcache.base import MISSING, BaseCache
from evictcache.errors import CacheConfigError


@dataclass(frozen=True, slots=True)
class TraceOp:
    kind: Literal["read", "write"]
    key: str
    value: str | None = None


@dataclass(frozen=True, slots=True)
class ReplayResult:
    policy: str
    operations: int
    hits: int
    misses: int
    evictions: int
    promotions: int
    hit_ratio: float
    resident: list[str]

    def as_json(self) -> dict[str, object]:
        return {
            "command": "replay",
            "policy": self.policy,
            "operations": self.operations,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "promotions": self.promotions,
            "hit_ratio": round(self.hit_ratio, 6),
            "resident": self.resident,
        }

    def format_text(self) -> str:
        lines = [
            f"policy:     {self.policy}",
            f"operations: {self.operations}",
            f"hits:       {self.hits}",
            f"misses:     {self.misses}",
            f"hit ratio:  {self.hit_ratio:.4f}",
            f"evictions:  {self.evictions}",
        ]
        if self.policy == "lru-k":
            lines.append(f"promotions: {self.promotions}")
        lines.append(f"resident:   {', '.join(self.resident) if self.resident else '(empty)'}")
        return "\n".join(lines) + "\n"


def parse_trace(text: str) -> list[TraceOp]:
    ops: list[TraceOp] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, value = line.split("=", 1)
            key = key.strip()
            if not key:
                continue
            ops.append(TraceOp("write", key, value))
        else:
            ops.append(TraceOp("read", line))
    return ops


def read_trace(path: Path) -> list[TraceOp]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CacheConfigError(f"Trace file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CacheConfigError(f"Failed reading trace file: {path}") from e
    return parse_trace(text)


def replay(cache: BaseCache[Any, Any], ops: Iterable[TraceOp], *, policy: str) -> ReplayResult:
    """Run `ops` through `cache` and summarize the counters afterwards."""

    count = 0
    for op in ops:
        count += 1
        if op.kind == "write":
            cache.put(op.key, op.value)
            continue
        if cache.get(op.key) is MISSING:
            cache.put(op.key, op.key)

    stats = cache.stats
    return ReplayResult(
        policy=policy,
        operations=count,
        hits=stats.hits,
        misses=stats.misses,
        evictions=stats.evictions,
        promotions=stats.promotions,
        hit_ratio=stats.hit_ratio,
        resident=[str(k) for k in cache.keys()],
    )
