"""Watch mode: replay the trace again whenever it changes."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from evictcache.trace import ReplayResult


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of a single watch replay cycle."""

    exit_code: int
    result: ReplayResult | None
    duration_s: float
    changed_paths: frozenset[Path]


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install evictcache[watch]"
        ) from None


def filter_watched_files(
    changed_paths: frozenset[Path], *, watched: list[Path]
) -> frozenset[Path]:
    """Keep only changes to the watched files themselves."""
    targets = {p.resolve() for p in watched}
    return frozenset(p for p in changed_paths if p.resolve() in targets)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    watched: list[Path],
) -> None:
    """Main watch loop. Consumes changes_iter, filters, and calls run_cycle."""
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_watched_files(paths, watched=watched)
        if not relevant:
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")
        on_event("[watch] replaying...")

        try:
            result = run_cycle(event)
        except Exception as exc:
            on_error(exc)
            continue

        on_event(f"[watch] done ({result.duration_s:.1f}s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": result.exit_code == 0,
        "exit_code": result.exit_code,
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
        "replay": result.result.as_json() if result.result is not None else None,
    }


def build_cycle_runner(
    run_replay: Callable[[], tuple[int, ReplayResult | None]],
) -> Callable[[WatchEvent], WatchCycleResult]:
    """Wrap a replay callable so each watch event runs it once and is timed."""

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        rc, result = run_replay()
        return WatchCycleResult(
            exit_code=rc,
            result=result,
            duration_s=time.monotonic() - t0,
            changed_paths=event.changed_paths,
        )

    return runner


def make_watchfiles_iter(
    watch_paths: list[Path],
) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=200)
