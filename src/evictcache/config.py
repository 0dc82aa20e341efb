"""Cache configuration loading.

Reads `evictcache.toml` and performs light validation; building the engine is
left to `build_cache`.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from evictcache.base import DEFAULT_MAX_CAPACITY, BaseCache
from evictcache.consistency import ConsistencyMode
from evictcache.errors import CacheConfigError
from evictcache.factory import create_cache, normalize_policy
from evictcache.hash_index import DEFAULT_LOAD_FACTOR, DEFAULT_TABLE_SIZE
from evictcache.lru_k import DEFAULT_PROVISIONAL_CAPACITY, DEFAULT_THRESHOLD
from evictcache.stats import CacheListener

CONFIG_FILENAME = "evictcache.toml"


@dataclass(frozen=True)
class CacheSection:
    policy: str = "lru"
    capacity: int = DEFAULT_MAX_CAPACITY
    mode: ConsistencyMode = ConsistencyMode.STRICT


@dataclass(frozen=True)
class TableSection:
    initial_size: int = DEFAULT_TABLE_SIZE
    load_factor: float = DEFAULT_LOAD_FACTOR


@dataclass(frozen=True)
class LRUKSection:
    threshold: int = DEFAULT_THRESHOLD
    provisional_capacity: int = DEFAULT_PROVISIONAL_CAPACITY


@dataclass(frozen=True)
class EvictCacheConfig:
    version: int = 1
    cache: CacheSection = field(default_factory=CacheSection)
    table: TableSection = field(default_factory=TableSection)
    lru_k: LRUKSection = field(default_factory=LRUKSection)


def find_config_file(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `evictcache.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        candidate = cur / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if cur.parent == cur:
            break
        cur = cur.parent

    raise CacheConfigError(f"Could not find {CONFIG_FILENAME} by walking upward from start path.")


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CacheConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise CacheConfigError(f"Expected {name} to be an integer.")
    return value


def _as_positive_int(value: Any, *, name: str) -> int:
    value = _as_int(value, name=name)
    if value < 1:
        raise CacheConfigError(f"Invalid config: {name} must be >= 1.")
    return value


def _as_float(value: Any, *, name: str) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise CacheConfigError(f"Expected {name} to be a number.")
    return float(value)


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise CacheConfigError(f"Expected {name} to be a string.")
    return value


def parse_config(data: dict[str, Any]) -> EvictCacheConfig:
    """Validate an already-decoded TOML document."""

    version = data.get("version", None)
    if version is None:
        raise CacheConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise CacheConfigError(f"Unsupported config version: {version_i} (expected 1).")

    cache_tbl = _as_table(data.get("cache"), name="cache")
    table_tbl = _as_table(data.get("table"), name="table")
    lru_k_tbl = _as_table(data.get("lru_k"), name="lru_k")

    defaults = EvictCacheConfig()

    if "policy" in cache_tbl:
        policy = normalize_policy(_as_str(cache_tbl["policy"], name="cache.policy"))
    else:
        policy = defaults.cache.policy

    if "capacity" in cache_tbl:
        capacity = _as_positive_int(cache_tbl["capacity"], name="cache.capacity")
    else:
        capacity = defaults.cache.capacity

    if "mode" in cache_tbl:
        mode = ConsistencyMode.parse(_as_str(cache_tbl["mode"], name="cache.mode"))
    else:
        mode = defaults.cache.mode

    if "initial_size" in table_tbl:
        initial_size = _as_positive_int(table_tbl["initial_size"], name="table.initial_size")
    else:
        initial_size = defaults.table.initial_size

    if "load_factor" in table_tbl:
        load_factor = _as_float(table_tbl["load_factor"], name="table.load_factor")
    else:
        load_factor = defaults.table.load_factor

    if "threshold" in lru_k_tbl:
        threshold = _as_positive_int(lru_k_tbl["threshold"], name="lru_k.threshold")
    else:
        threshold = defaults.lru_k.threshold

    if "provisional_capacity" in lru_k_tbl:
        provisional_capacity = _as_positive_int(
            lru_k_tbl["provisional_capacity"], name="lru_k.provisional_capacity"
        )
    else:
        provisional_capacity = defaults.lru_k.provisional_capacity

    # Validation
    if not 0 < load_factor <= 4:
        raise CacheConfigError("Invalid config: table.load_factor must be in (0, 4].")

    return EvictCacheConfig(
        version=version_i,
        cache=CacheSection(policy=policy, capacity=capacity, mode=mode),
        table=TableSection(initial_size=initial_size, load_factor=load_factor),
        lru_k=LRUKSection(threshold=threshold, provisional_capacity=provisional_capacity),
    )


def load_config(path: Path) -> EvictCacheConfig:
    """Load and validate an `evictcache.toml` file."""

    try:
        raw = path.read_bytes()
    except FileNotFoundError as e:
        raise CacheConfigError(f"Missing {CONFIG_FILENAME} at: {path}") from e
    except OSError as e:
        raise CacheConfigError(f"Failed reading config file: {path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise CacheConfigError(f"Config is not valid UTF-8: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise CacheConfigError(f"Invalid TOML in {path}: {e}") from e

    return parse_config(data)


def build_cache(
    config: EvictCacheConfig, *, listener: CacheListener | None = None
) -> BaseCache[Any, Any]:
    """Create the engine described by `config`."""

    return create_cache(
        config.cache.policy,
        config.cache.capacity,
        threshold=config.lru_k.threshold,
        provisional_capacity=config.lru_k.provisional_capacity,
        initial_table_size=config.table.initial_size,
        load_factor=config.table.load_factor,
        listener=listener,
        mode=config.cache.mode,
    )
