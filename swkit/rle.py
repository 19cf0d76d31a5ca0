"""Run-length encoded symbol blocks over a six-letter alphabet.

Each run of one symbol (0..5) is stored in 1, 2, 4 or 8 bytes: the symbol
takes the low three bits of the first byte, the length the rest, with
continuation bytes marked by the top bits ``10``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

RLE_MIN_SPACE = 18
ALPHABET = "$ACGTN"
N_SYMBOLS = 6

_AUXTAB = (0x01, 0x11, 0x21, 0x31, 0x03, 0x13, 0x07, 0x17)
_MAX_RUN = 1 << 43


def encode_run(symbol: int, length: int) -> bytes:
    """Encode a run of ``length`` copies of ``symbol``."""
    if not 0 <= symbol < N_SYMBOLS:
        raise ValueError(f"symbol {symbol} out of range")
    if not 0 <= length < _MAX_RUN:
        raise ValueError(f"run length {length} out of range")
    if length < 1 << 4:
        return bytes((length << 3 | symbol,))
    if length < 1 << 8:
        return bytes((0xC0 | (length >> 6) << 3 | symbol, 0x80 | (length & 0x3F)))
    if length < 1 << 19:
        return bytes((
            0xE0 | (length >> 18) << 3 | symbol,
            0x80 | (length >> 12 & 0x3F),
            0x80 | (length >> 6 & 0x3F),
            0x80 | (length & 0x3F),
        ))
    out = bytearray((0xF0 | (length >> 42) << 3 | symbol,))
    out.extend(0x80 | (length >> shift & 0x3F) for shift in range(36, -1, -6))
    return bytes(out)


def decode_run(buf: Sequence[int], pos: int = 0) -> tuple[int, int, int]:
    """Decode the run starting at ``buf[pos]``: (symbol, length, next position)."""
    b = buf[pos]
    c = b & 7
    if b & 0x80 == 0:
        return c, b >> 3, pos + 1
    if b >> 5 == 6:
        return c, (b & 0x18) << 3 | (buf[pos + 1] & 0x3F), pos + 2
    n = ((b & 0x10) >> 2) + 4
    length = b >> 3 & 1
    for k in range(1, n):
        length = (length << 6) | (buf[pos + k] & 0x3F)
    return c, length, pos + n


def _move_backward(d: bytearray, p: int, z: int, cnt: list[int], target: int) -> tuple[int, int]:
    """Step back over whole runs until fewer than ``target`` symbols precede p."""
    length = 0
    t = 0
    while z >= target:
        p -= 1
        b = d[p]
        if b >> 6 != 2:
            length |= (_AUXTAB[b >> 3 & 7] >> 4) << t if b >> 7 else b >> 3
            z -= length
            cnt[b & 7] -= length
            length = 0
            t = 0
        else:
            length |= (b & 0x3F) << t
            t += 6
    return p, z


@dataclass
class InsertCache:
    """Position of a run boundary and the symbol counts before it."""

    beg: int = 0
    bc: list[int] = field(default_factory=lambda: [0] * N_SYMBOLS)


class RleBlock:
    """A block of encoded runs; ``data`` holds the encoded bytes."""

    def __init__(self, data: bytes | bytearray = b"") -> None:
        self.data = bytearray(data)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"RleBlock({bytes(self.data)!r})"

    def runs(self) -> Iterator[tuple[int, int]]:
        """Yield (symbol, length) for every run in order."""
        d = self.data
        p = 0
        while p < len(d):
            c, length, p = decode_run(d, p)
            yield c, length

    def count(self) -> list[int]:
        """Total count of each symbol in the block."""
        cnt = [0] * N_SYMBOLS
        for c, length in self.runs():
            cnt[c] += length
        return cnt

    def _end_counts(self, end_counts: Optional[Sequence[int]]) -> list[int]:
        return list(end_counts) if end_counts is not None else self.count()

    def insert(
        self,
        x: int,
        a: int,
        rl: int,
        end_counts: Optional[Sequence[int]] = None,
        cache: Optional[InsertCache] = None,
    ) -> list[int]:
        """Insert ``rl`` copies of symbol ``a`` after the first ``x`` symbols.

        ``end_counts`` are the block's symbol counts before the insertion.
        Returns the symbol counts of the first ``x`` symbols.
        """
        ec = self._end_counts(end_counts)
        tot = sum(ec)
        if not 0 <= a < N_SYMBOLS:
            raise ValueError(f"symbol {a} out of range")
        if not 0 <= x <= tot:
            raise ValueError(f"position {x} outside a block of {tot} symbols")
        if cache is None:
            cache = InsertCache()
        d = self.data
        if not d:
            d[:] = encode_run(a, rl)
            return [0] * N_SYMBOLS

        bc = cache.bc
        beg_l = sum(bc)
        c, length = -1, 0
        if x < beg_l:
            beg_l = 0
            cache.beg = 0
            bc[:] = [0] * N_SYMBOLS
        if x == beg_l:
            p = q = cache.beg
            z = beg_l
            cnt = list(bc)
        elif x - beg_l <= ((tot - beg_l) >> 1) + ((tot - beg_l) >> 3):
            z = beg_l
            p = cache.beg
            cnt = list(bc)
            while z < x:
                c, length, p = decode_run(d, p)
                z += length
                cnt[c] += length
            q = p - 1
            while d[q] >> 6 == 2:
                q -= 1
        else:
            cnt = list(ec)
            p, z = _move_backward(d, len(d), tot, cnt, x)
            q = p
            c, length, p = decode_run(d, p)
            z += length
            cnt[c] += length

        cache.beg = q
        bc[:] = cnt
        if c >= 0:
            bc[c] -= length
        n_bytes = p - q
        if x == z and a != c and p < len(d):
            tc, tl, nxt = decode_run(d, p)
            if a == tc:
                c, n_bytes, length = tc, nxt - p, tl
                z += tl
                p = nxt
                cnt[tc] += tl
        if z != x:
            cnt[c] -= z - x
        pre = x - (z - length)
        p -= n_bytes
        if a == c:
            tmp = encode_run(c, length + rl)
        elif x == z:
            p += n_bytes
            n_bytes = 0
            tmp = encode_run(a, rl)
        else:
            tmp = encode_run(c, pre) + encode_run(a, rl) + encode_run(c, length - pre)
        d[p:p + n_bytes] = tmp
        return cnt

    def split(self) -> "RleBlock":
        """Move the second half of the runs into a new block and return it."""
        d = self.data
        if not d:
            raise ValueError("cannot split an empty block")
        q = len(d) >> 1
        while d[q] >> 6 == 2:
            q -= 1
        new = RleBlock(d[q:])
        del d[q:]
        return new

    def _rank(
        self, x: int, y: int, ec: list[int], want_y: bool
    ) -> tuple[list[int], Optional[list[int]]]:
        y = max(y, x)
        tot = sum(ec)
        if not 0 <= x <= tot or y > tot:
            raise ValueError(f"position outside a block of {tot} symbols")
        if tot == 0:
            return [0] * N_SYMBOLS, ([0] * N_SYMBOLS if want_y else None)
        d = self.data
        cy: Optional[list[int]] = None
        if x <= (tot - y) + (tot >> 3):
            c, z, p = 0, 0, 0
            cnt = [0] * N_SYMBOLS
            while z < x:
                c, length, p = decode_run(d, p)
                z += length
                cnt[c] += length
            cx = list(cnt)
            cx[c] -= z - x
            if want_y:
                while z < y:
                    c, length, p = decode_run(d, p)
                    z += length
                    cnt[c] += length
                cy = list(cnt)
                cy[c] -= z - y
        else:
            cnt = list(ec)
            p, z = len(d), tot
            if want_y:
                p, z = _move_backward(d, p, z, cnt, y)
                cy = list(cnt)
                cy[d[p] & 7] += y - z
            p, z = _move_backward(d, p, z, cnt, x)
            cx = list(cnt)
            cx[d[p] & 7] += x - z
        return cx, cy

    def rank(self, x: int, end_counts: Optional[Sequence[int]] = None) -> list[int]:
        """Symbol counts of the first ``x`` symbols."""
        return self._rank(x, -1, self._end_counts(end_counts), False)[0]

    def rank2(
        self, x: int, y: int, end_counts: Optional[Sequence[int]] = None
    ) -> tuple[list[int], list[int]]:
        """Symbol counts of the first ``x`` and of the first ``max(x, y)`` symbols."""
        cx, cy = self._rank(x, y, self._end_counts(end_counts), True)
        assert cy is not None
        return cx, cy

    def to_string(self, expand: bool = False) -> str:
        """Render the block as letters, or as letter-length pairs."""
        if expand:
            return "".join(ALPHABET[c] * length for c, length in self.runs())
        return "".join(f"{ALPHABET[c]}{length}" for c, length in self.runs())