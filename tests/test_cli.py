"""Tests for the `evictcache` command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import evictcache.cli


def _trace(tmp_path: Path, text: str = "a\nb\na\nc\nb\n") -> Path:
    p = tmp_path / "trace.txt"
    p.write_text(text, encoding="utf-8")
    return p


def test_parse_replay_defaults() -> None:
    ns = evictcache.cli.parse_args(["replay", "t.txt"])
    assert ns.command == "replay"
    assert ns.trace == "t.txt"
    assert ns.policy is None
    assert ns.capacity is None
    assert ns.threshold is None
    assert ns.provisional_capacity is None
    assert ns.config is None
    assert ns.mode is None
    assert ns.load is None
    assert ns.save is None
    assert ns.json_output is False
    assert ns.watch is False
    assert ns.verbose is False


def test_parse_replay_all_flags() -> None:
    ns = evictcache.cli.parse_args(
        [
            "replay",
            "t.txt",
            "--policy",
            "lru-k",
            "--capacity",
            "3",
            "--threshold",
            "2",
            "--provisional-capacity",
            "9",
            "--config",
            "/tmp/evictcache.toml",
            "--mode",
            "lenient",
            "--load",
            "in.txt",
            "--save",
            "out.txt",
            "--json",
            "--watch",
            "-v",
        ]
    )
    assert ns.policy == "lru-k"
    assert ns.capacity == 3
    assert ns.threshold == 2
    assert ns.provisional_capacity == 9
    assert ns.config == "/tmp/evictcache.toml"
    assert ns.mode == "lenient"
    assert ns.load == "in.txt"
    assert ns.save == "out.txt"
    assert ns.json_output is True
    assert ns.watch is True
    assert ns.verbose is True


def test_main_requires_a_command() -> None:
    assert evictcache.cli.main([]) == 2


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    assert evictcache.cli.main(["--version"]) == 0
    assert "evictcache" in capsys.readouterr().out


def test_replay_json(tmp_path: Path, monkeypatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.chdir(tmp_path)
    trace = _trace(tmp_path)

    rc = evictcache.cli.main(["replay", str(trace), "--capacity", "2", "--json"])
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["policy"] == "lru"
    assert data["hits"] == 1
    assert data["misses"] == 4
    assert data["resident"] == ["b", "c"]


def test_replay_text_output(
    tmp_path: Path, monkeypatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    trace = _trace(tmp_path)

    assert evictcache.cli.main(["replay", str(trace), "--policy", "lfu", "--capacity", "2"]) == 0
    out = capsys.readouterr().out
    assert "policy:     lfu" in out
    assert "hit ratio:" in out


def test_replay_reads_config_from_cwd(
    tmp_path: Path, monkeypatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "evictcache.toml").write_text(
        'version = 1\n[cache]\npolicy = "lru-k"\ncapacity = 2\n[lru_k]\nthreshold = 2\n',
        encoding="utf-8",
    )
    trace = _trace(tmp_path, "a\na\na\n")

    assert evictcache.cli.main(["replay", str(trace), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["policy"] == "lru-k"
    assert data["promotions"] == 1


def test_flags_override_config(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    cfg = tmp_path / "custom.toml"
    cfg.write_text('version = 1\n[cache]\npolicy = "lfu"\n', encoding="utf-8")
    trace = _trace(tmp_path)

    argv = ["replay", str(trace), "--config", str(cfg), "--policy", "lru", "--json"]
    rc = evictcache.cli.main(argv)
    assert rc == 0
    assert json.loads(capsys.readouterr().out)["policy"] == "lru"


@pytest.mark.parametrize(
    "extra",
    [
        ["--capacity", "0"],
        ["--policy", "fifo"],
        ["--mode", "sloppy"],
        ["--threshold", "0", "--policy", "lru-k"],
        ["--load", "missing-snapshot.txt"],
    ],
)
def test_bad_input_exits_with_config_code(
    tmp_path: Path, monkeypatch, capsys, extra: list[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    trace = _trace(tmp_path)

    assert evictcache.cli.main(["replay", str(trace), *extra]) == 2
    assert "error:" in capsys.readouterr().err


def test_missing_trace_exits_with_config_code(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert evictcache.cli.main(["replay", str(tmp_path / "nope.txt")]) == 2
    assert "Trace file not found" in capsys.readouterr().err


def test_save_and_load_snapshot(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    trace = _trace(tmp_path, "a=1\nb=2\n")
    snap = tmp_path / "snap.txt"

    assert evictcache.cli.main(["replay", str(trace), "--save", str(snap)]) == 0
    assert snap.read_text(encoding="utf-8") == "b=2\na=1\n"
    capsys.readouterr()

    reads = _trace(tmp_path, "a\nb\n")
    rc = evictcache.cli.main(["replay", str(reads), "--load", str(snap), "--json"])
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["hits"] == 2
    assert data["misses"] == 0


def test_invariant_violation_exit_code(tmp_path: Path, monkeypatch, capsys) -> None:
    from evictcache.errors import CacheInvariantError

    def broken(cache, ops, *, policy):
        raise CacheInvariantError("tail not in bucket")

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(evictcache.cli, "replay", broken)
    trace = _trace(tmp_path)

    assert evictcache.cli.main(["replay", str(trace)]) == 3
    assert "tail not in bucket" in capsys.readouterr().err


def test_main_dispatches_watch(monkeypatch) -> None:
    monkeypatch.setattr(evictcache.cli, "cmd_watch", lambda args: 0)
    assert evictcache.cli.main(["replay", "t.txt", "--watch"]) == 0


def test_cmd_watch_missing_watchfiles(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    trace = _trace(tmp_path)

    import evictcache.watcher

    def missing() -> None:
        raise ImportError("watchfiles is required for watch mode.")

    monkeypatch.setattr(evictcache.watcher, "check_watchfiles_available", missing)
    assert evictcache.cli.main(["replay", str(trace), "--watch"]) == 2
    assert "watchfiles" in capsys.readouterr().err
