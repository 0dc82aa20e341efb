from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path

from evictcache import __version__
from evictcache.config import EvictCacheConfig, build_cache, find_config_file, load_config
from evictcache.consistency import ConsistencyMode
from evictcache.errors import CacheConfigError, CacheInvariantError, CachePersistenceError
from evictcache.factory import POLICIES, normalize_policy
from evictcache.trace import ReplayResult, read_trace, replay

EXIT_OK = 0
EXIT_CONFIG_OR_INPUT = 2
EXIT_INVARIANT_VIOLATION = 3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="evictcache")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_p = subparsers.add_parser("replay", help="Replay an access trace through a cache.")
    replay_p.add_argument(
        "trace", type=str, help="Trace file (one `key` or `key=value` per line)."
    )
    replay_p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to evictcache.toml (defaults to searching upward from cwd).",
    )
    replay_p.add_argument(
        "--policy", type=str, default=None, help=f"Eviction policy: {', '.join(POLICIES)}."
    )
    replay_p.add_argument("--capacity", type=int, default=None, help="Maximum resident entries.")
    replay_p.add_argument(
        "--threshold", type=int, default=None, help="LRU-K promotion threshold (K)."
    )
    replay_p.add_argument(
        "--provisional-capacity",
        type=int,
        default=None,
        help="LRU-K provisional counter store capacity.",
    )
    replay_p.add_argument(
        "--mode", type=str, default=None, help="Invariant handling: strict or lenient."
    )
    replay_p.add_argument(
        "--load", type=str, default=None, help="Preload a key=value snapshot before replaying."
    )
    replay_p.add_argument(
        "--save", type=str, default=None, help="Write the final contents as a key=value snapshot."
    )
    replay_p.add_argument(
        "--json", dest="json_output", action="store_true", help="Emit a JSON summary."
    )
    replay_p.add_argument(
        "--watch", action="store_true", help="Replay again whenever the trace file changes."
    )
    replay_p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    msg = (str(e) or repr(e)).strip()
    _eprint(f"error: {msg}")


def _load_config(args: argparse.Namespace) -> EvictCacheConfig:
    if args.config:
        cfg = load_config(Path(args.config).resolve())
    else:
        try:
            path = find_config_file(Path.cwd())
        except CacheConfigError:
            cfg = EvictCacheConfig()
        else:
            cfg = load_config(path)

    cache = cfg.cache
    if args.policy is not None:
        cache = dataclasses.replace(cache, policy=normalize_policy(args.policy))
    if args.capacity is not None:
        cache = dataclasses.replace(cache, capacity=args.capacity)
    if args.mode is not None:
        cache = dataclasses.replace(cache, mode=ConsistencyMode.parse(args.mode))

    lru_k = cfg.lru_k
    if args.threshold is not None:
        lru_k = dataclasses.replace(lru_k, threshold=args.threshold)
    if args.provisional_capacity is not None:
        lru_k = dataclasses.replace(lru_k, provisional_capacity=args.provisional_capacity)

    return dataclasses.replace(cfg, cache=cache, lru_k=lru_k)


def run_replay(args: argparse.Namespace) -> tuple[int, ReplayResult | None]:
    from evictcache import persistence

    try:
        cfg = _load_config(args)
        cache = build_cache(cfg)
        if args.load:
            persistence.restore(cache, Path(args.load))
        ops = read_trace(Path(args.trace))
        result = replay(cache, ops, policy=cfg.cache.policy)
        if args.save:
            persistence.dump(cache, Path(args.save))
    except (CacheConfigError, CachePersistenceError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_INPUT, None
    except CacheInvariantError as e:
        _print_error(e)
        return EXIT_INVARIANT_VIOLATION, None
    return EXIT_OK, result


def _emit_result(args: argparse.Namespace, result: ReplayResult) -> None:
    if args.json_output:
        print(json.dumps(result.as_json()))
    else:
        sys.stdout.write(result.format_text())


def cmd_replay(args: argparse.Namespace) -> int:
    if args.watch:
        return cmd_watch(args)
    rc, result = run_replay(args)
    if result is not None:
        _emit_result(args, result)
    return rc


def cmd_watch(args: argparse.Namespace) -> int:
    from evictcache import watcher

    try:
        watcher.check_watchfiles_available()
    except ImportError as e:
        _print_error(e)
        return EXIT_CONFIG_OR_INPUT

    trace = Path(args.trace).resolve()
    rc, result = run_replay(args)
    if result is not None:
        _emit_result(args, result)

    def on_cycle_result(cycle: watcher.WatchCycleResult) -> None:
        if args.json_output:
            print(json.dumps(watcher.format_watch_cycle_json(cycle)))
        elif cycle.result is not None:
            sys.stdout.write(cycle.result.format_text())
        sys.stdout.flush()

    _eprint(f"[watch] watching {trace}")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter([trace.parent]),
                run_cycle=watcher.build_cycle_runner(lambda: run_replay(args)),
                on_event=_eprint,
                on_cycle_result=on_cycle_result,
                on_error=_print_error,
                watched=[trace],
            )
        )
    except KeyboardInterrupt:
        pass
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_INPUT

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "replay":
        return cmd_replay(args)

    return EXIT_CONFIG_OR_INPUT


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
