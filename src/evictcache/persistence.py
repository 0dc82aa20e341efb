"""Plain-text `key=value` snapshots of a cache.

A snapshot is one entry per line in the cache's eviction order (head first).
It carries no ordering semantics of its own: restoring simply re-inserts the
pairs through the cache's normal `put`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from evictcache.base import BaseCache
from evictcache.errors import CachePersistenceError

SEPARATOR = "="


def _render_line(key: object, value: object) -> str:
    k, v = str(key), str(value)
    if not k or k != k.strip() or k.startswith("#") or SEPARATOR in k or len(k.splitlines()) > 1:
        raise CachePersistenceError(f"Key {k!r} cannot be written to a key=value snapshot.")
    if v != v.rstrip() or len(v.splitlines()) > 1:
        raise CachePersistenceError(
            f"Value for key {k!r} cannot be written to a key=value snapshot: {v!r}"
        )
    return f"{k}{SEPARATOR}{v}\n"


def dumps(entries: Iterable[tuple[object, object]]) -> str:
    """Render `(key, value)` pairs as newline-terminated `key=value` lines.

    Raises CachePersistenceError for any pair that `loads` could not read
    back unchanged: keys that are empty, padded with whitespace, start with
    `#` or contain `=`, and values with trailing whitespace. Neither may span
    lines.
    """

    return "".join(_render_line(key, value) for key, value in entries)


def dump(cache: BaseCache[Any, Any], path: Path) -> int:
    """Write the cache's entries to `path` (overwriting). Returns the entry count."""

    entries = list(cache.items())
    try:
        path.write_text(dumps(entries), encoding="utf-8")
    except OSError as e:
        raise CachePersistenceError(f"Failed writing snapshot: {path}") from e
    return len(entries)


def loads(text: str) -> list[tuple[str, str]]:
    """Parse `key=value` lines.

    Blank lines, `#` comments and lines without a separator are skipped. The
    key ends at the first `=`; everything after it is the value.
    """

    out: list[tuple[str, str]] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if SEPARATOR not in line:
            continue

        key, value = line.split(SEPARATOR, 1)
        key = key.strip()
        if not key:
            continue
        out.append((key, value))
    return out


def load(path: Path) -> list[tuple[str, str]]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CachePersistenceError(f"Snapshot not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CachePersistenceError(f"Failed reading snapshot: {path}") from e
    return loads(text)


def pairs_from_flat(items: Sequence[str]) -> list[tuple[str, str]]:
    """Pair up ``[k1, v1, k2, v2, ...]``; a trailing odd item is ignored."""

    return [(items[i], items[i + 1]) for i in range(0, len(items) - 1, 2)]


def restore(
    cache: BaseCache[Any, Any], source: Path | Iterable[tuple[str, str]]
) -> int:
    """Re-insert snapshot pairs into `cache` and return how many were put.

    Pairs are put tail first, so an LRU or LFU cache that has room for the
    whole snapshot ends up in the snapshot's head-to-tail order. For LRU-K
    each pair counts as one ``add``.
    """

    pairs = load(source) if isinstance(source, Path) else list(source)
    for key, value in reversed(pairs):
        cache.put(key, value)
    return len(pairs)
