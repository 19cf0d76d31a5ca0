"""Sorting and selection routines parameterised by a less-than function."""

from __future__ import annotations

import operator
from typing import Any, Callable, MutableSequence, TypeVar

T = TypeVar("T")
LessThan = Callable[[Any, Any], bool]

_SHRINK_FACTOR = 1.2473309501039786540366528676643


def mergesort(items: MutableSequence[T], lt: LessThan = operator.lt) -> None:
    """Sort ``items`` in place with a stable bottom-up merge sort."""
    n = len(items)
    if n < 2:
        return
    src = list(items)
    dst: list = [None] * n
    width = 1
    while width < n:
        for lo in range(0, n, width << 1):
            mid = min(lo + width, n)
            hi = min(lo + (width << 1), n)
            j, k, p = lo, mid, lo
            while j < mid and k < hi:
                if lt(src[k], src[j]):
                    dst[p] = src[k]
                    k += 1
                else:
                    dst[p] = src[j]
                    j += 1
                p += 1
            tail = src[j:mid] + src[k:hi]
            dst[p:p + len(tail)] = tail
        src, dst = dst, src
        width <<= 1
    items[:] = src


def heap_adjust(items: MutableSequence[T], i: int, n: int, lt: LessThan = operator.lt) -> None:
    """Sift ``items[i]`` down within the max-heap ``items[:n]``."""
    tmp = items[i]
    k = i
    while True:
        k = (k << 1) + 1
        if k >= n:
            break
        if k != n - 1 and lt(items[k], items[k + 1]):
            k += 1
        if lt(items[k], tmp):
            break
        items[i] = items[k]
        i = k
    items[i] = tmp


def heap_make(items: MutableSequence[T], lt: LessThan = operator.lt) -> None:
    """Turn ``items`` into a max-heap in place."""
    n = len(items)
    for i in range((n >> 1) - 1, -1, -1):
        heap_adjust(items, i, n, lt)


def heap_sort(items: MutableSequence[T], lt: LessThan = operator.lt) -> None:
    """Sort a list that already is a max-heap (see heap_make) in place."""
    for i in range(len(items) - 1, 0, -1):
        items[0], items[i] = items[i], items[0]
        heap_adjust(items, 0, i, lt)


def _insertsort(a: MutableSequence[T], lo: int, hi: int, lt: LessThan) -> None:
    for i in range(lo + 1, hi):
        j = i
        while j > lo and lt(a[j], a[j - 1]):
            a[j], a[j - 1] = a[j - 1], a[j]
            j -= 1


def _combsort(a: MutableSequence[T], lo: int, n: int, lt: LessThan) -> None:
    gap = n
    while True:
        if gap > 2:
            gap = int(gap / _SHRINK_FACTOR)
            if gap in (9, 10):
                gap = 11
        swapped = False
        for i in range(lo, lo + n - gap):
            j = i + gap
            if lt(a[j], a[i]):
                a[i], a[j] = a[j], a[i]
                swapped = True
        if not (swapped or gap > 2):
            break
    if gap != 1:
        _insertsort(a, lo, lo + n, lt)


def combsort(items: MutableSequence[T], lt: LessThan = operator.lt) -> None:
    """Sort ``items`` in place with comb sort."""
    _combsort(items, 0, len(items), lt)


def introsort(items: MutableSequence[T], lt: LessThan = operator.lt) -> None:
    """Sort ``items`` in place with introsort (not stable).

    Quicksort with median-of-three pivots, falling back to comb sort when
    the recursion gets too deep and finishing with one insertion sort pass.
    """
    a = items
    n = len(a)
    if n < 1:
        return
    if n == 2:
        if lt(a[1], a[0]):
            a[0], a[1] = a[1], a[0]
        return
    d = 2
    while (1 << d) < n:
        d += 1
    stack: list[tuple[int, int, int]] = []
    s, t = 0, n - 1
    d <<= 1
    while True:
        if s < t:
            d -= 1
            if d == 0:
                _combsort(a, s, t - s + 1, lt)
                t = s
                continue
            i, j = s, t
            k = i + ((j - i) >> 1) + 1
            if lt(a[k], a[i]):
                if lt(a[k], a[j]):
                    k = j
            else:
                k = i if lt(a[j], a[i]) else j
            rp = a[k]
            if k != t:
                a[k], a[t] = a[t], a[k]
            while True:
                i += 1
                while lt(a[i], rp):
                    i += 1
                j -= 1
                while i <= j and lt(rp, a[j]):
                    j -= 1
                if j <= i:
                    break
                a[i], a[j] = a[j], a[i]
            a[i], a[t] = a[t], a[i]
            if i - s > t - i:
                if i - s > 16:
                    stack.append((s, i - 1, d))
                s = i + 1 if t - i > 16 else t
            else:
                if t - i > 16:
                    stack.append((i + 1, t, d))
                t = i - 1 if i - s > 16 else s
        else:
            if not stack:
                _insertsort(a, 0, n, lt)
                return
            s, t, d = stack.pop()


def ksmall(items: MutableSequence[T], k: int, lt: LessThan = operator.lt) -> T:
    """Return the k-th smallest item (0-based), partially reordering ``items``."""
    a = items
    n = len(a)
    if not 0 <= k < n:
        raise IndexError(f"k={k} out of range for {n} items")
    low, high = 0, n - 1
    while True:
        if high <= low:
            return a[k]
        if high == low + 1:
            if lt(a[high], a[low]):
                a[low], a[high] = a[high], a[low]
            return a[k]
        mid = low + (high - low) // 2
        if lt(a[high], a[mid]):
            a[mid], a[high] = a[high], a[mid]
        if lt(a[high], a[low]):
            a[low], a[high] = a[high], a[low]
        if lt(a[low], a[mid]):
            a[mid], a[low] = a[low], a[mid]
        a[mid], a[low + 1] = a[low + 1], a[mid]
        ll, hh = low + 1, high
        while True:
            ll += 1
            while lt(a[ll], a[low]):
                ll += 1
            hh -= 1
            while lt(a[low], a[hh]):
                hh -= 1
            if hh < ll:
                break
            a[ll], a[hh] = a[hh], a[ll]
        a[low], a[hh] = a[hh], a[low]
        if hh <= k:
            low = ll
        if hh >= k:
            high = hh - 1