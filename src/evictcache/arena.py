"""Node storage shared by the hash index and the order list.

Nodes are slots in parallel arrays addressed by stable integer indices. The
index chains and the order list link slots by index only, so releasing a slot
is just dropping its references and pushing it on the free list.
"""

from __future__ import annotations

from typing import Any

NIL = -1


class NodeArena:
    __slots__ = ("keys", "values", "prev", "next", "chain", "freq", "_free", "_live")

    def __init__(self) -> None:
        self.keys: list[Any] = []
        self.values: list[Any] = []
        self.prev: list[int] = []
        self.next: list[int] = []
        self.chain: list[int] = []
        self.freq: list[int] = []
        self._free: list[int] = []
        self._live = 0

    def __len__(self) -> int:
        return self._live

    def allocate(self, key: Any, value: Any, freq: int = 0) -> int:
        """Return the index of a fresh, unlinked node holding `key` / `value`."""

        self._live += 1
        if self._free:
            i = self._free.pop()
            self.keys[i] = key
            self.values[i] = value
            self.prev[i] = NIL
            self.next[i] = NIL
            self.chain[i] = NIL
            self.freq[i] = freq
            return i

        self.keys.append(key)
        self.values.append(value)
        self.prev.append(NIL)
        self.next.append(NIL)
        self.chain.append(NIL)
        self.freq.append(freq)
        return len(self.keys) - 1

    def release(self, i: int) -> None:
        # Drop references so evicted keys/values can be collected.
        self.keys[i] = None
        self.values[i] = None
        self.prev[i] = NIL
        self.next[i] = NIL
        self.chain[i] = NIL
        self.freq[i] = 0
        self._free.append(i)
        self._live -= 1

    def clear(self) -> None:
        self.keys.clear()
        self.values.clear()
        self.prev.clear()
        self.next.clear()
        self.chain.clear()
        self.freq.clear()
        self._free.clear()
        self._live = 0
