"""A dynamic string over six symbols kept as a B+ tree of run-length blocks."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import IO, Iterator, Optional, Union

from swkit.rle import ALPHABET, N_SYMBOLS, RLE_MIN_SPACE, InsertCache, RleBlock

MAX_DEPTH = 80
DEFAULT_MAX_NODES = 64
DEFAULT_BLOCK_LEN = 512

_HEADER = struct.Struct("<ii")
_NODE = struct.Struct("<Bh")
_COUNTS = struct.Struct("<6q")
_NBYTES = struct.Struct("<H")


class _Bucket:
    """A group of sibling entries; leaves are buckets whose entries hold blocks."""

    __slots__ = ("is_bottom", "entries")

    def __init__(self, is_bottom: bool, entries: list["_Entry"]) -> None:
        self.is_bottom = is_bottom
        self.entries = entries


class _Entry:
    """One child with the symbol counts beneath it."""

    __slots__ = ("child", "l", "c")

    def __init__(self, child: Union[_Bucket, RleBlock], c: Optional[list[int]] = None) -> None:
        self.child = child
        self.c = list(c) if c is not None else [0] * N_SYMBOLS
        self.l = sum(self.c)


@dataclass
class RopeCache:
    """Remembers where the last insertion landed to speed up nearby ones."""

    block: Optional[RleBlock] = None
    insert: InsertCache = field(default_factory=InsertCache)

    def reset(self) -> None:
        self.block = None
        self.insert = InsertCache()


def _read_exact(fp: IO[bytes], n: int) -> bytes:
    data = fp.read(n)
    if len(data) != n:
        raise ValueError("truncated rope dump")
    return data


class Rope:
    """A string of symbols 0..5 supporting run insertion and rank queries."""

    def __init__(self, max_nodes: int = DEFAULT_MAX_NODES, block_len: int = DEFAULT_BLOCK_LEN) -> None:
        max_nodes = (max_nodes + 1) >> 1 << 1
        if max_nodes < 2:
            raise ValueError("a rope node must hold at least two children")
        block_len = max(block_len, 32)
        self.max_nodes = max_nodes
        self.block_len = (block_len + 7) >> 3 << 3
        self.counts = [0] * N_SYMBOLS
        self._root = _Bucket(True, [_Entry(RleBlock())])

    def __len__(self) -> int:
        return sum(self.counts)

    def _split(self, bucket: Optional[_Bucket], vi: int) -> tuple[_Bucket, int]:
        """Split the child of ``bucket.entries[vi]``; a None bucket means the root."""
        if bucket is None:
            bucket = _Bucket(False, [_Entry(self._root, self.counts)])
            self._root = bucket
            vi = 0
        v = bucket.entries[vi]
        if bucket.is_bottom:
            new_block = v.child.split()
            w = _Entry(new_block, new_block.count())
        else:
            child = v.child
            half = self.max_nodes >> 1
            moved = child.entries[-half:]
            del child.entries[-half:]
            sibling = _Bucket(child.is_bottom, moved)
            w = _Entry(sibling, [sum(e.c[a] for e in moved) for a in range(N_SYMBOLS)])
        for a in range(N_SYMBOLS):
            v.c[a] -= w.c[a]
        v.l -= w.l
        bucket.entries.insert(vi + 1, w)
        return bucket, vi

    def insert_run(self, x: int, a: int, rl: int, cache: Optional[RopeCache] = None) -> int:
        """Insert ``rl`` copies of symbol ``a`` after ``x`` symbols.

        Returns the number of ``a`` symbols among the first ``x``.
        """
        if not 0 <= a < N_SYMBOLS:
            raise ValueError(f"symbol {a} out of range")
        if rl < 1:
            raise ValueError("run length must be positive")
        if not 0 <= x <= len(self):
            raise ValueError(f"position {x} outside a rope of {len(self)} symbols")
        parent: Optional[_Bucket] = None
        vi = -1
        v: Optional[_Entry] = None
        bucket = self._root
        y = z = 0
        while True:
            if len(bucket.entries) == self.max_nodes:
                parent, vi = self._split(parent, vi)
                v = parent.entries[vi]
                if y + v.l < x:
                    y += v.l
                    z += v.c[a]
                    vi += 1
                    v = parent.entries[vi]
                    bucket = v.child
            entries = bucket.entries
            if v is not None and x - y > v.l >> 1:
                y += v.l
                z += v.c[a]
                idx = len(entries) - 1
                while y >= x:
                    y -= entries[idx].l
                    z -= entries[idx].c[a]
                    idx -= 1
                idx += 1
            else:
                idx = 0
                while y + entries[idx].l < x:
                    y += entries[idx].l
                    z += entries[idx].c[a]
                    idx += 1
            if v is not None:
                v.c[a] += rl
                v.l += rl
            parent, vi, v = bucket, idx, entries[idx]
            if bucket.is_bottom:
                break
            bucket = v.child
        self.counts[a] += rl
        block = v.child
        if cache is not None:
            if cache.block is not block:
                cache.reset()
            cnt = block.insert(x - y, a, rl, v.c, cache.insert)
            cache.block = block
        else:
            cnt = block.insert(x - y, a, rl, v.c)
        z += cnt[a]
        v.c[a] += rl
        v.l += rl
        if len(block) + RLE_MIN_SPACE > self.block_len:
            self._split(parent, vi)
            if cache is not None:
                cache.reset()
        return z

    def _count_to_leaf(self, x: int) -> tuple[_Entry, list[int], int]:
        cx = [0] * N_SYMBOLS
        v: Optional[_Entry] = None
        bucket = self._root
        y = 0
        while True:
            entries = bucket.entries
            if v is not None and x - y > v.l >> 1:
                y += v.l
                cx = [p + q for p, q in zip(cx, v.c)]
                idx = len(entries) - 1
                while y >= x:
                    y -= entries[idx].l
                    cx = [p - q for p, q in zip(cx, entries[idx].c)]
                    idx -= 1
                idx += 1
            else:
                idx = 0
                while y + entries[idx].l < x:
                    y += entries[idx].l
                    cx = [p + q for p, q in zip(cx, entries[idx].c)]
                    idx += 1
            v = entries[idx]
            if bucket.is_bottom:
                return v, cx, x - y
            bucket = v.child

    def _check_pos(self, x: int) -> None:
        if not 0 <= x <= len(self):
            raise ValueError(f"position {x} outside a rope of {len(self)} symbols")

    def rank(self, x: int) -> list[int]:
        """Counts of each symbol among the first ``x`` symbols."""
        self._check_pos(x)
        v, cx, rest = self._count_to_leaf(x)
        return [p + q for p, q in zip(cx, v.child.rank(rest, v.c))]

    def rank2(self, x: int, y: int) -> tuple[list[int], list[int]]:
        """Symbol counts among the first ``x`` and among the first ``y`` symbols."""
        self._check_pos(x)
        self._check_pos(y)
        if y < x:
            return self.rank(x), self.rank(y)
        v, cx, rest = self._count_to_leaf(x)
        if rest + (y - x) <= v.l:
            a, b = v.child.rank2(rest, rest + (y - x), v.c)
            return [p + q for p, q in zip(cx, a)], [p + q for p, q in zip(cx, b)]
        first = [p + q for p, q in zip(cx, v.child.rank(rest, v.c))]
        return first, self.rank(y)

    def blocks(self) -> Iterator[RleBlock]:
        """Yield the leaf blocks from left to right."""
        yield from self._blocks(self._root)

    def _blocks(self, bucket: _Bucket) -> Iterator[RleBlock]:
        for e in bucket.entries:
            if bucket.is_bottom:
                yield e.child
            else:
                yield from self._blocks(e.child)

    def format(self) -> str:
        """Render the tree as nested parentheses around the expanded blocks."""
        return self._format(self._root)

    def _format(self, bucket: _Bucket) -> str:
        if bucket.is_bottom:
            inner = ",".join(e.child.to_string(expand=True) for e in bucket.entries)
        else:
            inner = ",".join(self._format(e.child) for e in bucket.entries)
        return f"({inner})"

    def dump(self, fp: IO[bytes]) -> None:
        """Write the rope in its binary form to ``fp``."""
        fp.write(_HEADER.pack(self.max_nodes, self.block_len))
        self._dump(self._root, fp)

    def _dump(self, bucket: _Bucket, fp: IO[bytes]) -> None:
        fp.write(_NODE.pack(1 if bucket.is_bottom else 0, len(bucket.entries)))
        for e in bucket.entries:
            if bucket.is_bottom:
                data = bytes(e.child.data)
                fp.write(_COUNTS.pack(*e.c))
                fp.write(_NBYTES.pack(len(data)))
                fp.write(data)
            else:
                self._dump(e.child, fp)

    @classmethod
    def restore(cls, fp: IO[bytes]) -> "Rope":
        """Read a rope written by dump(); raises ValueError on bad input."""
        max_nodes, block_len = _HEADER.unpack(_read_exact(fp, _HEADER.size))
        rope = cls(max_nodes, block_len)
        rope._root, rope.counts = cls._restore_node(fp)
        return rope

    @classmethod
    def _restore_node(cls, fp: IO[bytes]) -> tuple[_Bucket, list[int]]:
        is_bottom, n = _NODE.unpack(_read_exact(fp, _NODE.size))
        if n < 1:
            raise ValueError(f"invalid node size {n} in rope dump")
        entries = []
        for _ in range(n):
            if is_bottom:
                c = list(_COUNTS.unpack(_read_exact(fp, _COUNTS.size)))
                (nb,) = _NBYTES.unpack(_read_exact(fp, _NBYTES.size))
                entries.append(_Entry(RleBlock(_read_exact(fp, nb)), c))
            else:
                child, c = cls._restore_node(fp)
                entries.append(_Entry(child, c))
        total = [sum(e.c[a] for e in entries) for a in range(N_SYMBOLS)]
        return _Bucket(bool(is_bottom), entries), total

    def __str__(self) -> str:
        return "".join(block.to_string(expand=True) for block in self.blocks())


__all__ = ["ALPHABET", "Rope", "RopeCache"]