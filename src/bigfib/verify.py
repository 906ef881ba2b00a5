# src/bigfib/verify.py
from __future__ import annotations

from dataclasses import dataclass

import gmpy2
from sympy import fibonacci as sympy_fibonacci

from bigfib.bign import release
from bigfib.fibonacci import fibonacci

BACKENDS = ("gmpy2", "sympy")


@dataclass(frozen=True)
class Mismatch:
    index: int
    got: int
    expected: int
    backend: str


def reference_fibonacci(k: int, backend: str = "gmpy2") -> int:
    """F(k) from an independent big-integer library."""
    if backend == "gmpy2":
        return int(gmpy2.fib(k))
    if backend == "sympy":
        return int(sympy_fibonacci(k))
    raise ValueError(f"unknown backend {backend!r} (expected one of {', '.join(BACKENDS)})")


def engine_value(k: int) -> int:
    """fibonacci(k) as a Python int; the buffer is released afterwards."""
    buf = fibonacci(k)
    try:
        return buf.to_int()
    finally:
        release(buf)


def verify_range(lo: int, hi: int, *, backends: tuple[str, ...] = BACKENDS) -> list[Mismatch]:
    """
    Compare the engine against every backend for lo <= k <= hi.
    Returns the mismatches (empty list = all good).
    """
    if lo < 0 or hi < lo:
        raise ValueError(f"invalid range {lo}..{hi}")
    out: list[Mismatch] = []
    for k in range(lo, hi + 1):
        got = engine_value(k)
        for b in backends:
            exp = reference_fibonacci(k, b)
            if got != exp:
                out.append(Mismatch(index=k, got=got, expected=exp, backend=b))
    return out
