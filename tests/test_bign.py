# tests/test_bign.py
"""
Block buffer lifecycle: allocation, estimation, release, ledger.

Run: pytest -v
"""

from __future__ import annotations

import pytest

from bigfib.bign import (
    MAX_WORD,
    AllocationError,
    AllocMode,
    BigN,
    ReleasedBufferError,
    allocate,
    estimate_words,
    release,
    track_allocations,
)
from bigfib.runtime import APPLY

ESTIMATES = [
    (0, 1),
    (1, 1),
    (92, 1),      # 92 * 695 // 1000 = 63 bits -> still one word
    (93, 2),      # 64 bits -> the estimate adds a second word
    (184, 2),
    (1000, 11),   # 695 // 64 + 1
    (10_000, 109),
]


@pytest.mark.parametrize("index,words", ESTIMATES, ids=[f"F{i}" for i, _ in ESTIMATES])
def test_estimate_words(index, words):
    assert estimate_words(index) == words


def test_estimate_covers_actual_size():
    # heuristic must not under-allocate for real Fibonacci values
    a, b = 0, 1
    for k in range(0, 3000):
        need = max(1, (a.bit_length() + 63) // 64)
        assert estimate_words(k) >= need, k
        a, b = b, a + b


def test_estimate_rejects_negative_index():
    with pytest.raises(ValueError):
        estimate_words(-1)


def test_allocate_by_index_is_zero_filled():
    buf = allocate(1000, AllocMode.BY_INDEX)
    assert buf.len == 11
    assert buf.num == [0] * 11
    assert not buf.released


def test_allocate_explicit():
    buf = allocate(3, AllocMode.EXPLICIT)
    assert buf.num == [0, 0, 0]
    assert len(buf) == 3


@pytest.mark.parametrize("size", [0, -4])
def test_allocate_explicit_needs_a_word(size):
    with pytest.raises(ValueError):
        allocate(size, AllocMode.EXPLICIT)


def test_allocate_over_ceiling_raises_allocation_error():
    APPLY({"BEHAVIOUR": {"MAX_WORDS": 4}})
    allocate(4)
    with pytest.raises(AllocationError):
        allocate(5)


def test_zero_ceiling_means_unlimited():
    APPLY({"BEHAVIOUR": {"MAX_WORDS": 0}})
    assert allocate(64).len == 64


def test_memory_error_becomes_allocation_error(monkeypatch):
    import bigfib.bign as bign

    def _boom(num):
        raise MemoryError

    monkeypatch.setattr(bign, "BigN", _boom)
    with pytest.raises(AllocationError):
        bign.allocate(2)


def test_release_blocks_further_use():
    buf = BigN.from_int(7)
    release(buf)
    assert buf.released
    with pytest.raises(ReleasedBufferError):
        buf.to_int()
    with pytest.raises(ReleasedBufferError):
        release(buf)


@pytest.mark.parametrize("value", [0, 1, MAX_WORD, MAX_WORD + 1, 3 << 130])
def test_from_int_to_int(value):
    buf = BigN.from_int(value)
    assert buf.to_int() == value
    assert buf.len == max(1, (value.bit_length() + 63) // 64)


def test_from_int_rejects_negative():
    with pytest.raises(ValueError):
        BigN.from_int(-1)


def test_ledger_counts_and_peak():
    with track_allocations() as ledger:
        a = allocate(1)
        b = allocate(1)
        release(a)
        c = allocate(2)
        release(b)
        release(c)
    assert ledger.allocated == 3
    assert ledger.released == 3
    assert ledger.live == 0
    assert ledger.peak == 2


def test_ledger_is_scoped():
    with track_allocations() as outer:
        allocate(1)
        with track_allocations() as inner:
            allocate(1)
        allocate(1)
    assert inner.allocated == 1
    assert outer.allocated == 2


def test_release_after_block_counts_on_allocating_ledger():
    with track_allocations() as ledger:
        buf = allocate(1)
    assert ledger.live == 1
    release(buf)
    assert ledger.released == 1
    assert ledger.live == 0


def test_release_inside_other_ledger_is_not_counted_there():
    with track_allocations() as outer:
        buf = allocate(1)
        with track_allocations() as inner:
            release(buf)
    assert inner.released == 0
    assert outer.live == 0
