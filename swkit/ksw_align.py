"""Striped Smith-Waterman local alignment with 8-bit or 16-bit lane scores.

Scores are kept in 128-bit-wide vectors of 16 unsigned bytes or 8 signed
16-bit words, with the query laid out in striped segments. The arithmetic
saturates exactly as the vector instructions do, so results, including
the 255 cap of the byte variant, follow the vectorised algorithm.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

XBYTE = 0x10000
"""Use unsigned bytes for scores; an overflowing score is reported as 255."""
XSTOP = 0x20000
"""Stop once the best score reaches ``xtra & 0xffff``."""
XSUBO = 0x40000
"""Track the second best score if it is at least ``xtra & 0xffff``."""
XSTART = 0x80000
"""Also find the start positions of the best alignment."""

_U8_MAX = 255


@dataclass
class AlignResult:
    """Best local alignment; fields left at -1 were not computed."""

    score: int = 0
    te: int = -1
    qe: int = -1
    score2: int = -1
    te2: int = -1
    tb: int = -1
    qb: int = -1


def _to_i16(x: int) -> int:
    return ((x + 0x8000) & 0xFFFF) - 0x8000


def _check_residues(seq: Sequence[int], m: int, what: str) -> None:
    for c in seq:
        if not 0 <= c < m:
            raise ValueError(f"{what} residue {c} outside 0..{m - 1}")


class QueryProfile:
    """Striped score profile of a query against every residue type."""

    def __init__(self, size: int, query: Sequence[int], m: int, mat: Sequence[int]) -> None:
        if m < 1:
            raise ValueError("alphabet size must be positive")
        if len(mat) < m * m:
            raise ValueError(f"scoring matrix needs {m * m} entries, got {len(mat)}")
        scores = [int(v) for v in mat[: m * m]]
        for v in scores:
            if not -128 <= v <= 127:
                raise ValueError(f"score {v} does not fit in a signed byte")
        query = list(query)
        _check_residues(query, m, "query")
        self.size = 2 if size > 1 else 1
        lanes = 8 * (3 - self.size)
        qlen = len(query)
        slen = (qlen + lanes - 1) // lanes
        self.lanes = lanes
        self.qlen = qlen
        self.slen = slen
        self.m = m
        lowest = min([127] + scores)
        highest = max([0] + scores)
        self.shift = (256 - (lowest & 0xFF)) & 0xFF
        self.max = highest & 0xFF
        self.mdiff = (self.max + self.shift) & 0xFF
        nlen = slen * lanes
        self.qp: list[list[list[int]]] = []
        for a in range(m):
            row = scores[a * m:(a + 1) * m]
            segments = []
            for i in range(slen):
                vals = [row[query[k]] if k < qlen else 0 for k in range(i, nlen, slen)]
                if self.size == 1:
                    vals = [(v + self.shift) & 0xFF for v in vals]
                segments.append(vals)
            self.qp.append(segments)


def _thresholds(xtra: int) -> tuple[int, int]:
    minsc = xtra & 0xFFFF if xtra & XSUBO else 0x10000
    endsc = xtra & 0xFFFF if xtra & XSTOP else 0x10000
    return minsc, endsc


def _shift_lanes(v: list[int]) -> list[int]:
    return [0] + v[:-1]


def _record_hit(hits: list[list[int]], imax: int, i: int, minsc: int) -> None:
    if imax < minsc:
        return
    if not hits or hits[-1][1] + 1 != i:
        hits.append([imax, i])
    elif hits[-1][0] < imax:
        hits[-1] = [imax, i]


def _best_query_end(hmax: list[list[int]], slen: int, mask: int) -> int:
    best, qe = -1, -1
    for seg, vec in enumerate(hmax):
        for lane, v in enumerate(vec):
            v &= mask
            pos = seg + lane * slen
            if v > best:
                best, qe = v, pos
            elif v == best and pos < qe:
                qe = pos
    return qe


def _second_best(r: AlignResult, hits: list[list[int]], qmax: int) -> None:
    if not hits:
        return
    w = (r.score + qmax - 1) // qmax
    low, high = r.te - w, r.te + w
    for sc, e in hits:
        if (e < low or e > high) and sc > r.score2:
            r.score2, r.te2 = sc, e


def _subs_u8(v: list[int], s: int) -> list[int]:
    return [x - s if x > s else 0 for x in v]


def _h_u8(x: int, y: int, e: int, f: int, shift: int) -> int:
    t = x + y
    if t > _U8_MAX:
        t = _U8_MAX
    t = t - shift if t > shift else 0
    if e > t:
        t = e
    return f if f > t else t


def _lazy_f_u8(h1: list[list[int]], f: list[int], oe_ins: int, e_ins: int, lanes: int) -> None:
    for _ in range(lanes):
        f = _shift_lanes(f)
        for j, hv in enumerate(h1):
            h = [a if a > b else b for a, b in zip(hv, f)]
            h1[j] = h
            h = _subs_u8(h, oe_ins)
            f = _subs_u8(f, e_ins)
            if all(fv <= hv2 for fv, hv2 in zip(f, h)):
                return


def _sw_u8(q: QueryProfile, target: Sequence[int], o_del: int, e_del: int,
           o_ins: int, e_ins: int, xtra: int) -> AlignResult:
    r = AlignResult()
    minsc, endsc = _thresholds(xtra)
    oe_del = (o_del + e_del) & 0xFF
    ed = e_del & 0xFF
    oe_ins = (o_ins + e_ins) & 0xFF
    ei = e_ins & 0xFF
    shift, slen, lanes = q.shift, q.slen, q.lanes
    zero = [0] * lanes
    h0 = [zero] * slen
    e_vecs = [zero] * slen
    hmax = [zero] * slen
    hits: list[list[int]] = []
    gmax, te = 0, -1
    for i, c in enumerate(target):
        profile = q.qp[c]
        f = zero
        vmax = zero
        h = _shift_lanes(h0[-1]) if slen else zero
        h1: list[list[int]] = []
        new_e: list[list[int]] = []
        for s, e, hprev in zip(profile, e_vecs, h0):
            h = [_h_u8(x, y, ev, fv, shift) for x, y, ev, fv in zip(h, s, e, f)]
            vmax = [a if a > b else b for a, b in zip(vmax, h)]
            h1.append(h)
            e = [a if a > b else b for a, b in zip(_subs_u8(e, ed), _subs_u8(h, oe_del))]
            new_e.append(e)
            f = [a if a > b else b for a, b in zip(_subs_u8(f, ei), _subs_u8(h, oe_ins))]
            h = hprev
        e_vecs = new_e
        _lazy_f_u8(h1, f, oe_ins, ei, lanes)
        imax = max(vmax)
        _record_hit(hits, imax, i, minsc)
        if imax > gmax:
            gmax, te = imax, i
            hmax = list(h1)
            if gmax + shift >= _U8_MAX or gmax >= endsc:
                break
        h0 = h1
    r.score = gmax if gmax + shift < _U8_MAX else _U8_MAX
    r.te = te
    if r.score != _U8_MAX:
        r.qe = _best_query_end(hmax, slen, 0xFF)
        _second_best(r, hits, q.max)
    return r


def _adds_i16(x: int, y: int) -> int:
    t = x + y
    return 32767 if t > 32767 else (-32768 if t < -32768 else t)


def _subs_u16(v: list[int], s: int) -> list[int]:
    us = s & 0xFFFF
    out = []
    for x in v:
        ux = x & 0xFFFF
        out.append(_to_i16(ux - us) if ux > us else 0)
    return out


def _lazy_f_i16(h1: list[list[int]], f: list[int], oe_ins: int, e_ins: int) -> None:
    for _ in range(16):
        f = _shift_lanes(f)
        for j, hv in enumerate(h1):
            h = [a if a > b else b for a, b in zip(hv, f)]
            h1[j] = h
            h = _subs_u16(h, oe_ins)
            f = _subs_u16(f, e_ins)
            if all(fv <= hv2 for fv, hv2 in zip(f, h)):
                return


def _sw_i16(q: QueryProfile, target: Sequence[int], o_del: int, e_del: int,
            o_ins: int, e_ins: int, xtra: int) -> AlignResult:
    r = AlignResult()
    minsc, endsc = _thresholds(xtra)
    oe_del = _to_i16(o_del + e_del)
    ed = _to_i16(e_del)
    oe_ins = _to_i16(o_ins + e_ins)
    ei = _to_i16(e_ins)
    slen, lanes = q.slen, q.lanes
    zero = [0] * lanes
    h0 = [zero] * slen
    e_vecs = [zero] * slen
    hmax = [zero] * slen
    hits: list[list[int]] = []
    gmax, te = 0, -1
    for i, c in enumerate(target):
        profile = q.qp[c]
        f = zero
        vmax = zero
        h = _shift_lanes(h0[-1]) if slen else zero
        h1: list[list[int]] = []
        new_e: list[list[int]] = []
        for s, e, hprev in zip(profile, e_vecs, h0):
            h = [max(_adds_i16(x, y), ev, fv) for x, y, ev, fv in zip(h, s, e, f)]
            vmax = [a if a > b else b for a, b in zip(vmax, h)]
            h1.append(h)
            e = [a if a > b else b for a, b in zip(_subs_u16(e, ed), _subs_u16(h, oe_del))]
            new_e.append(e)
            f = [a if a > b else b for a, b in zip(_subs_u16(f, ei), _subs_u16(h, oe_ins))]
            h = hprev
        e_vecs = new_e
        _lazy_f_i16(h1, f, oe_ins, ei)
        imax = max(vmax)
        _record_hit(hits, imax, i, minsc)
        if imax > gmax:
            gmax, te = imax, i
            hmax = list(h1)
            if gmax >= endsc:
                break
        h0 = h1
    r.score = gmax
    r.te = te
    r.qe = _best_query_end(hmax, slen, 0xFFFF)
    _second_best(r, hits, q.max)
    return r


def align2(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    o_del: int,
    e_del: int,
    o_ins: int,
    e_ins: int,
    xtra: int = 0,
    profile: Optional[QueryProfile] = None,
) -> AlignResult:
    """Locally align ``query`` against ``target`` with separate gap costs.

    A gap of length l costs o+l*e. ``xtra`` combines the X* flags with a
    16-bit threshold. A prebuilt ``profile`` of ``query`` may be passed to
    align one query against many targets; its size then decides the score
    width and XBYTE is ignored.
    """
    query = list(query)
    target = list(target)
    _check_residues(target, m, "target")
    q = profile if profile is not None else QueryProfile(1 if xtra & XBYTE else 2, query, m, mat)
    func = _sw_i16 if q.size == 2 else _sw_u8
    r = func(q, target, o_del, e_del, o_ins, e_ins, xtra)
    if not xtra & XSTART or (xtra & XSUBO and r.score < (xtra & 0xFFFF)):
        return r
    qn, tn = r.qe + 1, r.te + 1
    rev_query = query[:qn][::-1]
    rev_target = target[:tn][::-1] + target[tn:]
    rq = QueryProfile(q.size, rev_query, m, mat)
    rr = func(rq, rev_target, o_del, e_del, o_ins, e_ins, XSTOP | r.score)
    if r.score == rr.score:
        r.tb = r.te - rr.te
        r.qb = r.qe - rr.qe
    return r


def align(
    query: Sequence[int],
    target: Sequence[int],
    m: int,
    mat: Sequence[int],
    gapo: int,
    gape: int,
    xtra: int = 0,
    profile: Optional[QueryProfile] = None,
) -> AlignResult:
    """Locally align with the same gap costs for insertions and deletions."""
    return align2(query, target, m, mat, gapo, gape, gapo, gape, xtra, profile)