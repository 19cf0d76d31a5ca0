from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from swkit.rle import InsertCache, RleBlock, decode_run, encode_run


def _counts(symbols):
    c = Counter(symbols)
    return [c[a] for a in range(6)]


def _letters(symbols):
    return "".join("$ACGTN"[a] for a in symbols)


@pytest.mark.parametrize(
    "length,size",
    [(15, 1), (1 << 4, 2), ((1 << 8) - 1, 2), (1 << 8, 4), ((1 << 19) - 1, 4), (1 << 19, 8)],
)
def test_encoded_sizes(length, size):
    assert len(encode_run(3, length)) == size


@given(st.integers(0, 5), st.integers(0, (1 << 43) - 1))
def test_run_round_trip(symbol, length):
    enc = encode_run(symbol, length)
    assert decode_run(enc) == (symbol, length, len(enc))


def test_decode_at_offset():
    buf = encode_run(1, 3) + encode_run(4, 300)
    c, length, pos = decode_run(buf, 0)
    assert (c, length) == (1, 3)
    assert decode_run(buf, pos) == (4, 300, len(buf))


@pytest.mark.parametrize("symbol,length", [(6, 1), (-1, 1), (1, -1), (1, 1 << 43)])
def test_encode_rejects_bad_input(symbol, length):
    with pytest.raises(ValueError):
        encode_run(symbol, length)


def test_to_string():
    block = RleBlock(encode_run(1, 3) + encode_run(4, 20))
    assert block.to_string(False) == "A3T20"
    assert block.to_string(True) == "AAA" + "T" * 20
    assert list(block.runs()) == [(1, 3), (4, 20)]


def test_insert_into_empty():
    block = RleBlock()
    assert block.insert(0, 2, 7) == [0] * 6
    assert bytes(block.data) == encode_run(2, 7)
    assert len(block) == len(encode_run(2, 7))


def test_insert_out_of_range():
    block = RleBlock(encode_run(1, 3))
    with pytest.raises(ValueError):
        block.insert(4, 1, 1)
    with pytest.raises(ValueError):
        block.insert(0, 6, 1)


def test_split_empty_raises():
    with pytest.raises(ValueError):
        RleBlock().split()


_ops = st.lists(
    st.tuples(st.integers(0, 5), st.integers(1, 300), st.integers(0, 10**6)),
    max_size=40,
)


@settings(max_examples=80, deadline=None)
@given(_ops, st.booleans())
def test_insert_matches_model(ops, use_cache):
    block = RleBlock()
    model = []
    cache = InsertCache() if use_cache else None
    for a, rl, pos in ops:
        x = pos % (len(model) + 1)
        cnt = block.insert(x, a, rl, _counts(model), cache)
        assert cnt == _counts(model[:x])
        model[x:x] = [a] * rl
        assert block.to_string(True) == _letters(model)
    assert block.count() == _counts(model)
    assert sum(length for _, length in block.runs()) == len(model)


def _build(ops):
    block = RleBlock()
    model = []
    for a, rl, pos in ops:
        x = pos % (len(model) + 1)
        block.insert(x, a, rl, _counts(model))
        model[x:x] = [a] * rl
    return block, model


@settings(max_examples=60, deadline=None)
@given(_ops, st.integers(0, 10**6), st.integers(0, 10**6))
def test_rank_matches_model(ops, px, py):
    block, model = _build(ops)
    n = len(model)
    x = px % (n + 1)
    y = py % (n + 1)
    assert block.rank(x) == _counts(model[:x])
    assert block.rank(n, block.count()) == _counts(model)
    cx, cy = block.rank2(x, y)
    assert cx == _counts(model[:x])
    assert cy == _counts(model[:max(x, y)])


@settings(max_examples=60, deadline=None)
@given(_ops)
def test_split_preserves_content(ops):
    block, model = _build(ops)
    if not model:
        assert len(block) == 0
        return_value = block.count()
        assert return_value == [0] * 6
    else:
        original = bytes(block.data)
        right = block.split()
        assert bytes(block.data) + bytes(right.data) == original
        assert block.to_string(True) + right.to_string(True) == _letters(model)
        assert len(right) > 0
        assert decode_run(right.data)[2] <= len(right)


def test_rank_on_empty_block():
    assert RleBlock().rank(0) == [0] * 6
    assert RleBlock().rank2(0, 0) == ([0] * 6, [0] * 6)


def test_rank_out_of_range():
    block = RleBlock(encode_run(1, 3))
    with pytest.raises(ValueError):
        block.rank(4)