# src/bigfib/fibonacci.py
"""
Bottom-up Fibonacci on block buffers.

Only the two most recent terms are retained: each step adds them, releases
the older one and slides the window. F(0)=0, F(1)=1.
"""

from __future__ import annotations

from collections.abc import Callable

from bigfib.arith import add
from bigfib.bign import AllocMode, BigN, allocate, release

StepCallback = Callable[[int, int, int], None]   # (i, k, words in F(i))


class FibonacciWindow:
    """Owns the pair (F(index-1), F(index)), starting at index 1."""

    def __init__(self) -> None:
        self.index = 1
        self.prev: BigN | None = None
        self.cur: BigN | None = None

        f0 = allocate(0, AllocMode.BY_INDEX)
        f0.num[0] = 0
        self.prev = f0
        try:
            f1 = allocate(1, AllocMode.BY_INDEX)
        except BaseException:
            self.close()
            raise
        f1.num[0] = 1
        self.cur = f1

    def advance(self) -> BigN:
        """Compute F(index+1), retire F(index-1), return the new term."""
        nxt = add(self.cur, self.prev)
        release(self.prev)
        self.prev, self.cur = self.cur, nxt
        self.index += 1
        return nxt

    def detach(self, k: int) -> BigN:
        """
        Hand F(k) to the caller (k must be index or index-1) and release the
        other retained term. The window is empty afterwards.
        """
        if k == self.index:
            keep, drop = self.cur, self.prev
        elif k == self.index - 1:
            keep, drop = self.prev, self.cur
        else:
            raise ValueError(f"F({k}) is not in the window (index={self.index})")
        self.prev = self.cur = None
        release(drop)
        return keep

    def close(self) -> None:
        for buf in (self.prev, self.cur):
            if buf is not None and not buf.released:
                release(buf)
        self.prev = self.cur = None

    def __enter__(self) -> FibonacciWindow:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def fibonacci(k: int, *, on_step: StepCallback | None = None) -> BigN:
    """
    Return F(k) as a normalized buffer; the caller owns it.

    Any failure (allocation, an exception raised by on_step, Ctrl-C) releases
    the window and propagates. There is no partial result.
    """
    if isinstance(k, bool) or not isinstance(k, int):
        raise ValueError(f"Fibonacci index must be an int (got {type(k).__name__})")
    if k < 0:
        raise ValueError(f"Fibonacci index must be >= 0 (got {k})")

    window = FibonacciWindow()
    try:
        while window.index < k:
            term = window.advance()
            if on_step is not None:
                on_step(window.index, k, term.len)
        return window.detach(k)
    except BaseException:
        window.close()
        raise
