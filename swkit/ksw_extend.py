"""Banded seed extension and banded global alignment with affine gaps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

MINUS_INF = -0x40000000

CIGAR_MATCH = 0
CIGAR_INS = 1
CIGAR_DEL = 2
_CIGAR_CHARS = "MID"


@dataclass(frozen=True)
class ExtendResult:
    """Outcome of extending an alignment from a seed.

    ``[0, qle)`` of the query aligns with ``[0, tle)`` of the target for
    the best score. ``gscore`` is the best score with the whole query
    aligned (negative if none) and ``gtle`` the target length it used.
    """

    score: int
    qle: int
    tle: int
    gtle: int
    gscore: int
    max_off: int


@dataclass(frozen=True)
class GlobalResult:
    """Score of a banded global alignment and, if asked for, its CIGAR.

    The CIGAR is a list of (operation, length) pairs with operations
    CIGAR_MATCH, CIGAR_INS and CIGAR_DEL.
    """

    score: int
    cigar: Optional[list[tuple[int, int]]] = None

    @property
    def cigar_string(self) -> str:
        if self.cigar is None:
            return ""
        return "".join(f"{length}{_CIGAR_CHARS[op]}" for op, length in self.cigar)


def _check_inputs(query: Sequence[int], target: Sequence[int], m: int, mat: Sequence[int]) -> list[int]:
    if m < 1:
        raise ValueError("alphabet size must be positive")
    if len(mat) < m * m:
        raise ValueError(f"scoring matrix needs {m * m} entries, got {len(mat)}")
    for what, seq in (("query", query), ("target", target)):
        for c in seq:
            if not 0 <= c < m:
                raise ValueError(f"{what} residue {c} outside 0..{m - 1}")
    return [int(v) for v in mat[: m * m]]


def _profile(query: Sequence[int], m: int, scores: list[int]) -> list[list[int]]:
    return [[scores[k * m + c] for c in query] for k in range(m)]


def extend2(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    w: int,
    end_bonus: int,
    zdrop: int,
    h0: int,
) -> ExtendResult:
    """Extend an alignment whose upstream part scored ``h0`` into query and target.

    Gaps of length l cost o+l*e, with separate costs for deletions and
    insertions. ``w`` is the band width; ``zdrop`` > 0 stops the extension
    once the score falls that far below the best.
    """
    if h0 <= 0:
        raise ValueError("h0 must be positive")
    if e_del <= 0 or e_ins <= 0:
        raise ValueError("gap extension costs must be positive")
    query = list(query)
    target = list(target)
    scores = _check_inputs(query, target, m, mat)
    qlen = len(query)
    qp = _profile(query, m, scores)
    oe_del = o_del + e_del
    oe_ins = o_ins + e_ins

    eh_h = [0] * (qlen + 1)
    eh_e = [0] * (qlen + 1)
    eh_h[0] = h0
    if qlen >= 1:
        eh_h[1] = h0 - oe_ins if h0 > oe_ins else 0
        j = 2
        while j <= qlen and eh_h[j - 1] > e_ins:
            eh_h[j] = eh_h[j - 1] - e_ins
            j += 1

    top = max([0] + scores)
    max_ins = max(int((qlen * top + end_bonus - o_ins) / e_ins + 1.0), 1)
    w = min(w, max_ins)
    max_del = max(int((qlen * top + end_bonus - o_del) / e_del + 1.0), 1)
    w = min(w, max_del)

    best, max_i, max_j = h0, -1, -1
    max_ie, gscore, max_off = -1, -1, 0
    beg, end = 0, qlen
    for i, c in enumerate(target):
        q = qp[c]
        f = 0
        row_max, mj = 0, -1
        if beg < i - w:
            beg = i - w
        if end > i + w + 1:
            end = i + w + 1
        if end > qlen:
            end = qlen
        if beg == 0:
            h1 = max(h0 - (o_del + e_del * (i + 1)), 0)
        else:
            h1 = 0
        for j in range(beg, end):
            big_m, e = eh_h[j], eh_e[j]
            eh_h[j] = h1
            big_m = big_m + q[j] if big_m else 0
            h = max(big_m, e, f)
            h1 = h
            if not row_max > h:
                mj = j
                row_max = h
            t = max(big_m - oe_del, 0)
            e = max(e - e_del, t)
            eh_e[j] = e
            t = max(big_m - oe_ins, 0)
            f = max(f - e_ins, t)
        eh_h[end] = h1
        eh_e[end] = 0
        last = end if beg < end else beg
        if last == qlen:
            if not gscore > h1:
                max_ie = i
                gscore = h1
        if row_max == 0:
            break
        if row_max > best:
            best, max_i, max_j = row_max, i, mj
            max_off = max(max_off, abs(mj - i))
        elif zdrop > 0:
            if i - max_i > mj - max_j:
                if best - row_max - ((i - max_i) - (mj - max_j)) * e_del > zdrop:
                    break
            elif best - row_max - ((mj - max_j) - (i - max_i)) * e_ins > zdrop:
                break
        j = beg
        while j < end and eh_h[j] == 0 and eh_e[j] == 0:
            j += 1
        beg = j
        j = end
        while j >= beg and eh_h[j] == 0 and eh_e[j] == 0:
            j -= 1
        end = min(j + 2, qlen)
    return ExtendResult(best, max_j + 1, max_i + 1, max_ie + 1, gscore, max_off)


def extend(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    gapo: int,
    gape: int,
    w: int,
    end_bonus: int,
    zdrop: int,
    h0: int,
) -> ExtendResult:
    """Extend with the same gap costs for insertions and deletions."""
    return extend2(query, target, m, mat, gapo, gape, gapo, gape, w, end_bonus, zdrop, h0)


def _push_cigar(cigar: list[list[int]], op: int, length: int) -> None:
    if cigar and cigar[-1][0] == op:
        cigar[-1][1] += length
    else:
        cigar.append([op, length])


def global_align2(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    w: int,
    with_cigar: bool = True,
) -> GlobalResult:
    """Align query and target end to end within a band of width ``w``."""
    query = list(query)
    target = list(target)
    scores = _check_inputs(query, target, m, mat)
    qlen, tlen = len(query), len(target)
    qp = _profile(query, m, scores)
    oe_del = o_del + e_del
    oe_ins = o_ins + e_ins

    eh_h = [MINUS_INF] * (qlen + 1)
    eh_e = [MINUS_INF] * (qlen + 1)
    eh_h[0] = 0
    for j in range(1, min(qlen, w) + 1):
        eh_h[j] = -(o_ins + e_ins * j)
    z: list[list[int]] = []

    for i, c in enumerate(target):
        q = qp[c]
        f = MINUS_INF
        beg = i - w if i > w else 0
        end = min(i + w + 1, qlen)
        h1 = -(o_del + e_del * (i + 1)) if beg == 0 else MINUS_INF
        row: list[int] = []
        for j in range(beg, end):
            mm, e = eh_h[j], eh_e[j]
            eh_h[j] = h1
            mm += q[j]
            d = 0 if mm >= e else 1
            h = max(mm, e)
            if h < f:
                d = 2
                h = f
            h1 = h
            t = mm - oe_del
            e -= e_del
            if e > t:
                d |= 1 << 2
            else:
                e = t
            eh_e[j] = e
            t = mm - oe_ins
            f -= e_ins
            if f > t:
                d |= 2 << 4
            else:
                f = t
            row.append(d)
        if with_cigar:
            z.append(row)
        eh_h[end] = h1
        eh_e[end] = MINUS_INF
    score = eh_h[qlen]
    if not with_cigar:
        return GlobalResult(score)

    cigar: list[list[int]] = []
    which = 0
    i = tlen - 1
    k = min(i + w + 1, qlen) - 1
    while i >= 0 and k >= 0:
        beg = i - w if i > w else 0
        which = z[i][k - beg] >> (which << 1) & 3
        if which == 0:
            _push_cigar(cigar, CIGAR_MATCH, 1)
            i -= 1
            k -= 1
        elif which == 1:
            _push_cigar(cigar, CIGAR_DEL, 1)
            i -= 1
        else:
            _push_cigar(cigar, CIGAR_INS, 1)
            k -= 1
    if i >= 0:
        _push_cigar(cigar, CIGAR_DEL, i + 1)
    if k >= 0:
        _push_cigar(cigar, CIGAR_INS, k + 1)
    return GlobalResult(score, [(op, length) for op, length in reversed(cigar)])


def global_align(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    gapo: int,
    gape: int,
    w: int,
    with_cigar: bool = True,
) -> GlobalResult:
    """Banded global alignment with the same gap costs for both gap kinds."""
    return global_align2(query, target, m, mat, gapo, gape, gapo, gape, w, with_cigar)