from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from swkit.ksw_extend import (
    CIGAR_DEL,
    CIGAR_INS,
    CIGAR_MATCH,
    extend,
    extend2,
    global_align,
    global_align2,
)

MATCH = 1
MISMATCH = 4
GAPO = 6
GAPE = 1


def score_matrix(a, b):
    mat = []
    for i in range(4):
        mat.extend(a if i == j else -b for j in range(4))
        mat.append(0)
    mat.extend([0] * 5)
    return mat


MAT = score_matrix(MATCH, MISMATCH)


def nt(s):
    return ["ACGTN".index(c) for c in s]


seqs = st.lists(st.integers(min_value=0, max_value=3), min_size=1, max_size=20)


def test_global_identical_is_all_match():
    q = nt("ACGTACGT")
    r = global_align(q, q, 5, MAT, GAPO, GAPE, 10)
    assert r.score == len(q) * MATCH
    assert r.cigar == [(CIGAR_MATCH, len(q))]
    assert r.cigar_string == "8M"


def test_global_single_deletion():
    q = nt("AAAACCCC")
    t = nt("AAAAGCCCC")
    r = global_align(q, t, 5, MAT, GAPO, GAPE, 10)
    assert r.score == len(q) * MATCH - (GAPO + GAPE)
    ops = Counter()
    for op, length in r.cigar:
        ops[op] += length
    assert ops[CIGAR_MATCH] == len(q)
    assert ops[CIGAR_DEL] == 1
    assert ops[CIGAR_INS] == 0


def test_global_without_cigar():
    q, t = nt("ACGTTGCA"), nt("ACGATGCA")
    with_c = global_align(q, t, 5, MAT, GAPO, GAPE, 5, with_cigar=True)
    without = global_align(q, t, 5, MAT, GAPO, GAPE, 5, with_cigar=False)
    assert without.cigar is None
    assert without.score == with_c.score


@settings(max_examples=60, deadline=None)
@given(seqs, seqs)
def test_global_cigar_consumes_both_sequences(q, t):
    r = global_align(q, t, 5, MAT, GAPO, GAPE, 100)
    qcons = sum(length for op, length in r.cigar if op in (CIGAR_MATCH, CIGAR_INS))
    tcons = sum(length for op, length in r.cigar if op in (CIGAR_MATCH, CIGAR_DEL))
    assert qcons == len(q)
    assert tcons == len(t)
    assert global_align(q, t, 5, MAT, GAPO, GAPE, 100, with_cigar=False).score == r.score


@settings(max_examples=40, deadline=None)
@given(seqs, seqs)
def test_global2_matches_global_for_equal_costs(q, t):
    a = global_align(q, t, 5, MAT, GAPO, GAPE, 100)
    b = global_align2(q, t, 5, MAT, GAPO, GAPE, GAPO, GAPE, 100)
    assert a == b


def test_global_rejects_bad_residue():
    with pytest.raises(ValueError):
        global_align([0, 7], [0, 1], 5, MAT, GAPO, GAPE, 10)


def test_extend_identical():
    q = nt("ACGT")
    h0 = 10
    r = extend(q, q, 5, MAT, GAPO, GAPE, 100, 0, 100, h0)
    assert r.score == h0 + len(q) * MATCH
    assert (r.qle, r.tle) == (len(q), len(q))
    assert r.gscore == r.score
    assert r.gtle == len(q)


def test_extend_all_mismatches_keeps_seed_score():
    r = extend(nt("AAAA"), nt("CCCC"), 5, MAT, GAPO, GAPE, 100, 0, 0, 5)
    assert r.score == 5
    assert (r.qle, r.tle) == (0, 0)
    assert r.gscore < 0


def test_extend_requires_positive_h0():
    with pytest.raises(ValueError):
        extend(nt("ACGT"), nt("ACGT"), 5, MAT, GAPO, GAPE, 100, 0, 100, 0)


@settings(max_examples=60, deadline=None)
@given(seqs, seqs, st.integers(min_value=1, max_value=40))
def test_extend_invariants(q, t, h0):
    r = extend(q, t, 5, MAT, GAPO, GAPE, 100, 5, 100, h0)
    assert r.score >= h0
    assert 0 <= r.qle <= len(q)
    assert 0 <= r.tle <= len(t)
    assert 0 <= r.gtle <= len(t)
    assert r.max_off >= 0
    assert r == extend2(q, t, 5, MAT, GAPO, GAPE, GAPO, GAPE, 100, 5, 100, h0)