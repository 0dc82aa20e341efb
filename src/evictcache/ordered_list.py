"""Intrusive doubly-linked eviction order over arena node indices.

Head is the entry to keep longest, tail is the next eviction victim.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from evictcache.arena import NIL, NodeArena


class OrderedList:
    def __init__(self, arena: NodeArena) -> None:
        self._arena = arena
        self.head = NIL
        self.tail = NIL

    def __iter__(self) -> Iterator[int]:
        nxt = self._arena.next
        i = self.head
        while i != NIL:
            yield i
            i = nxt[i]

    def insert_at_head(self, i: int) -> None:
        prev, nxt = self._arena.prev, self._arena.next
        prev[i] = NIL
        nxt[i] = self.head
        if self.head != NIL:
            prev[self.head] = i
        else:
            self.tail = i
        self.head = i

    def insert_at_tail(self, i: int) -> None:
        prev, nxt = self._arena.prev, self._arena.next
        nxt[i] = NIL
        prev[i] = self.tail
        if self.tail != NIL:
            nxt[self.tail] = i
        else:
            self.head = i
        self.tail = i

    def _insert_after(self, anchor: int, i: int) -> None:
        prev, nxt = self._arena.prev, self._arena.next
        after = nxt[anchor]
        prev[i] = anchor
        nxt[i] = after
        nxt[anchor] = i
        if after != NIL:
            prev[after] = i
        else:
            self.tail = i

    def unlink(self, i: int) -> None:
        prev, nxt = self._arena.prev, self._arena.next
        p, n = prev[i], nxt[i]
        if p != NIL:
            nxt[p] = n
        else:
            self.head = n
        if n != NIL:
            prev[n] = p
        else:
            self.tail = p
        prev[i] = NIL
        nxt[i] = NIL

    def remove_tail(self) -> int:
        """Unlink and return the tail index, or NIL when empty."""

        i = self.tail
        if i != NIL:
            self.unlink(i)
        return i

    def move_to_head(self, i: int) -> None:
        """`reposition` with an always-true predicate, in O(1)."""

        if i == self.head:
            return
        self.unlink(i)
        self.insert_at_head(i)

    def reposition(self, i: int, must_pass: Callable[[int, int], bool]) -> None:
        """Move `i` toward the head past every predecessor `p` with `must_pass(p, i)`.

        The walk stops at the first predecessor for which the predicate is
        false and `i` is relinked directly after it, or at the head when the
        walk runs off the front of the list.
        """

        prev = self._arena.prev
        anchor = prev[i]
        while anchor != NIL and must_pass(anchor, i):
            anchor = prev[anchor]

        if anchor == prev[i]:
            return
        self.unlink(i)
        if anchor == NIL:
            self.insert_at_head(i)
        else:
            self._insert_after(anchor, i)

    def clear(self) -> None:
        self.head = NIL
        self.tail = NIL
