# tests/test_fibonacci.py
"""
Fibonacci generator: values, the sliding-window memory bound and failure
cleanup. gmpy2 / sympy act as independent oracles.

Run: pytest -v
"""

from __future__ import annotations

import gmpy2
import pytest
from sympy import fibonacci as sympy_fibonacci

from bigfib.arith import add
from bigfib.bign import AllocationError, BigN, release, track_allocations
from bigfib.fibonacci import FibonacciWindow, fibonacci
from bigfib.runtime import APPLY

# ---------- helpers -----------------------------------------------------------


def fib_int(k: int) -> int:
    buf = fibonacci(k)
    try:
        return buf.to_int()
    finally:
        release(buf)


def plain_fib(k: int) -> int:
    a, b = 0, 1
    for _ in range(k):
        a, b = b, a + b
    return a


KNOWN = [
    (0, 0),
    (1, 1),
    (2, 1),
    (3, 2),
    (10, 55),
    (20, 6765),
    (50, 12586269025),
    (92, 7540113804746346429),
    (93, 12200160415121876738),
    (94, 19740274219868223167),   # first value past one word
    (100, 354224848179261915075),
]


@pytest.mark.parametrize("k,expected", KNOWN, ids=[f"F{k}" for k, _ in KNOWN])
def test_known_values(k, expected):
    assert fib_int(k) == expected


def test_every_index_up_to_92():
    for k in range(93):
        assert fib_int(k) == plain_fib(k), k


def test_single_word_boundary():
    assert fibonacci(92).len == 1
    assert fibonacci(93).len == 1
    assert fibonacci(94).len == 2


@pytest.mark.parametrize("k", [187, 500, 1000, 2500])
def test_agrees_with_gmpy2_and_sympy(k):
    got = fib_int(k)
    assert got == int(gmpy2.fib(k))
    assert got == int(sympy_fibonacci(k))


def test_result_is_normalized():
    for k in (0, 1, 93, 94, 1000):
        buf = fibonacci(k)
        assert buf.num[-1] != 0 or buf.len == 1


def test_recurrence_bit_for_bit():
    prev2, prev1 = BigN.from_int(0), BigN.from_int(1)
    for i in range(2, 400):
        cur = add(prev1, prev2)
        assert cur.to_int() == plain_fib(i)
        release(prev2)
        prev2, prev1 = prev1, cur


@pytest.mark.parametrize("k", [-1, 2.0, "7", True])
def test_rejects_bad_index(k):
    with pytest.raises(ValueError):
        fibonacci(k)


# ---------- memory discipline -------------------------------------------------

@pytest.mark.parametrize("k", [0, 1, 2, 3, 50, 300])
def test_only_result_survives(k):
    with track_allocations() as ledger:
        buf = fibonacci(k)
    assert ledger.live == 1
    assert ledger.peak <= 3   # two retained terms + the transient add result
    release(buf)
    assert ledger.live == 0


def test_window_holds_two_buffers_between_steps():
    with track_allocations() as ledger:
        with FibonacciWindow() as w:
            assert ledger.live == 2
            for _ in range(200):
                w.advance()
                assert ledger.live == 2
                assert w.cur.to_int() == plain_fib(w.index)
                assert w.prev.to_int() == plain_fib(w.index - 1)
    assert ledger.live == 0


def test_retired_terms_are_released():
    w = FibonacciWindow()
    old_prev = w.prev
    w.advance()
    assert old_prev.released
    w.close()


def test_detach_hands_over_one_term():
    w = FibonacciWindow()
    w.advance()
    w.advance()          # window: F(2), F(3)
    f2_buf = w.prev
    f3 = w.detach(3)
    assert f3.to_int() == 2
    assert f2_buf.released
    w.close()
    release(f3)


def test_detach_rejects_index_outside_window():
    with track_allocations() as ledger:
        with FibonacciWindow() as w:
            with pytest.raises(ValueError):
                w.detach(7)
    assert ledger.live == 0


def test_on_step_reports_progress():
    seen = []
    fibonacci(95, on_step=lambda i, k, words: seen.append((i, k, words)))
    assert [i for i, _, _ in seen] == list(range(2, 96))
    assert all(k == 95 for _, k, _ in seen)
    assert seen[-1][2] == 2


def test_failure_releases_window():
    APPLY({"BEHAVIOUR": {"MAX_WORDS": 2}})
    with track_allocations() as ledger:
        with pytest.raises(AllocationError):
            fibonacci(200)   # add() needs a third word around F(94)
    assert ledger.live == 0


def test_callback_exception_releases_window():
    def stop(i, k, words):
        if i == 10:
            raise KeyboardInterrupt

    with track_allocations() as ledger:
        with pytest.raises(KeyboardInterrupt):
            fibonacci(50, on_step=stop)
    assert ledger.live == 0


def test_calls_are_independent():
    a = fibonacci(80)
    b = fibonacci(80)
    assert a is not b
    assert a.num == b.num
