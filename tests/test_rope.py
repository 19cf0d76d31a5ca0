import io
import struct

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from swkit.rle import ALPHABET
from swkit.rope import Rope, RopeCache

ops_strategy = st.lists(
    st.tuples(st.integers(0, 10**6), st.integers(0, 5), st.integers(1, 20)),
    max_size=80,
)


def build(ops, max_nodes=4, block_len=32, cache=None):
    rope = Rope(max_nodes, block_len)
    ref = []
    zs = []
    expected = []
    for p, a, rl in ops:
        x = p % (len(ref) + 1)
        zs.append(rope.insert_run(x, a, rl, cache))
        expected.append(ref[:x].count(a))
        ref[x:x] = [a] * rl
    return rope, ref, zs, expected


def flatten(text):
    return text.replace("(", "").replace(")", "").replace(",", "")


def as_text(ref):
    return "".join(ALPHABET[s] for s in ref)


def test_empty_rope_format():
    rope = Rope()
    assert rope.format() == "()"
    assert len(rope) == 0


def test_dump_header_rounds_parameters():
    rope = Rope(5, 20)
    buf = io.BytesIO()
    rope.dump(buf)
    assert buf.getvalue()[:8] == struct.pack("<ii", 6, 32)


@settings(max_examples=60, deadline=None)
@given(ops_strategy)
def test_inserts_match_reference(ops):
    rope, ref, zs, expected = build(ops)
    assert zs == expected
    assert flatten(rope.format()) == as_text(ref)
    assert "".join(b.to_string(expand=True) for b in rope.blocks()) == as_text(ref)
    assert rope.counts == [ref.count(s) for s in range(6)]


@settings(max_examples=40, deadline=None)
@given(ops_strategy)
def test_cache_gives_same_result(ops):
    plain, _, zs_plain, _ = build(ops)
    cached, _, zs_cached, _ = build(ops, cache=RopeCache())
    assert zs_plain == zs_cached
    assert plain.format() == cached.format()


@settings(max_examples=30, deadline=None)
@given(ops_strategy)
def test_rank_matches_prefix_counts(ops):
    rope, ref, _, _ = build(ops)
    for x in range(len(ref) + 1):
        assert rope.rank(x) == [ref[:x].count(s) for s in range(6)]


@settings(max_examples=30, deadline=None)
@given(ops_strategy, st.integers(0, 10**6), st.integers(0, 10**6))
def test_rank2_agrees_with_rank(ops, p, q):
    rope, ref, _, _ = build(ops)
    x = p % (len(ref) + 1)
    y = q % (len(ref) + 1)
    cx, cy = rope.rank2(x, y)
    assert cx == rope.rank(x)
    assert cy == rope.rank(y)


def test_many_inserts_grow_tree():
    ops = [(i * 7919, i % 6, 1 + i % 3) for i in range(300)]
    rope, ref, zs, expected = build(ops)
    assert zs == expected
    assert rope.format().startswith("((")
    assert flatten(rope.format()) == as_text(ref)


@settings(max_examples=30, deadline=None)
@given(ops_strategy)
def test_dump_restore_round_trip(ops):
    rope, ref, _, _ = build(ops)
    buf = io.BytesIO()
    rope.dump(buf)
    buf.seek(0)
    restored = Rope.restore(buf)
    assert restored.format() == rope.format()
    assert restored.counts == rope.counts
    assert restored.max_nodes == rope.max_nodes
    assert restored.block_len == rope.block_len
    for x in range(0, len(ref) + 1, 5):
        assert restored.rank(x) == rope.rank(x)


def test_restored_rope_accepts_inserts():
    rope, ref, _, _ = build([(i * 31, i % 4 + 1, 2) for i in range(60)])
    buf = io.BytesIO()
    rope.dump(buf)
    buf.seek(0)
    restored = Rope.restore(buf)
    restored.insert_run(3, 0, 4)
    ref[3:3] = [0] * 4
    assert flatten(restored.format()) == as_text(ref)


def test_truncated_dump_raises():
    rope, _, _, _ = build([(0, 1, 5), (2, 2, 3)])
    buf = io.BytesIO()
    rope.dump(buf)
    data = buf.getvalue()
    with pytest.raises(ValueError):
        Rope.restore(io.BytesIO(data[:-3]))


def test_rank_out_of_range():
    rope, _, _, _ = build([(0, 1, 5)])
    with pytest.raises(ValueError):
        rope.rank(6)
    with pytest.raises(ValueError):
        rope.rank(-1)


def test_insert_errors():
    rope = Rope()
    with pytest.raises(ValueError):
        rope.insert_run(1, 0, 1)
    with pytest.raises(ValueError):
        rope.insert_run(0, 6, 1)
    with pytest.raises(ValueError):
        rope.insert_run(0, 1, 0)


def test_invalid_max_nodes():
    with pytest.raises(ValueError):
        Rope(0, 64)