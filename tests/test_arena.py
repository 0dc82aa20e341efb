from __future__ import annotations

from evictcache.arena import NIL, NodeArena


def test_allocate_returns_unlinked_nodes() -> None:
    arena = NodeArena()
    a = arena.allocate("a", 1)
    b = arena.allocate("b", 2, freq=1)

    assert (a, b) == (0, 1)
    assert len(arena) == 2
    assert arena.keys[b] == "b"
    assert arena.values[b] == 2
    assert arena.freq[b] == 1
    assert arena.prev[a] == arena.next[a] == arena.chain[a] == NIL


def test_release_drops_references_and_recycles_slot() -> None:
    arena = NodeArena()
    a = arena.allocate("a", object())
    arena.allocate("b", 2)
    arena.next[a] = 1

    arena.release(a)
    assert len(arena) == 1
    assert arena.keys[a] is None
    assert arena.values[a] is None
    assert arena.next[a] == NIL

    c = arena.allocate("c", 3)
    assert c == a
    assert arena.keys[c] == "c"
    assert len(arena) == 2


def test_clear_empties_everything() -> None:
    arena = NodeArena()
    for i in range(4):
        arena.allocate(i, i)
    arena.release(2)
    arena.clear()

    assert len(arena) == 0
    assert arena.allocate("x", 0) == 0
