# src/bigfib/arith.py
from __future__ import annotations

from bigfib.bign import (
    MAX_WORD,
    AllocMode,
    BigN,
    PreconditionViolation,
    allocate,
    require_live,
)

# ---------- Comparison --------------------------------------------------------


def greater(a: BigN, b: BigN) -> bool:
    """
    True iff a > b. Length decides first, so both buffers are expected to be
    normalized; equal values are "not greater" in both directions.
    """
    require_live(a, b)
    if a.len != b.len:
        return a.len > b.len
    i = a.len - 1
    while i >= 0 and a.num[i] == b.num[i]:
        i -= 1
    if i < 0:
        return False
    return a.num[i] > b.num[i]


def _significant_len(a: BigN) -> int:
    n = a.len
    while n > 1 and a.num[n - 1] == 0:
        n -= 1
    return n


def compare(a: BigN, b: BigN) -> int:
    """Return -1, 0 or 1 by value. Leading zero words are ignored."""
    require_live(a, b)
    la, lb = _significant_len(a), _significant_len(b)
    if la != lb:
        return 1 if la > lb else -1
    for i in range(la - 1, -1, -1):
        if a.num[i] != b.num[i]:
            return 1 if a.num[i] > b.num[i] else -1
    return 0


# ---------- Normalization -----------------------------------------------------


def normalize(a: BigN) -> BigN:
    """
    Drop leading (most significant) zero words, keeping at least one.
    The trimmed prefix is copied into a fresh list that replaces a.num.
    """
    require_live(a)
    n = _significant_len(a)
    if n < a.len:
        a.num = a.num[:n]
    return a


# ---------- Addition ----------------------------------------------------------


def carrying_add(x: int, y: int, carry: int) -> tuple[int, int]:
    """Word add with carry in/out: (x + y + carry) mod 2**64, carry out."""
    c1 = x > (MAX_WORD ^ y)          # x + y overflows
    s = (x + y) & MAX_WORD
    c2 = carry and s == MAX_WORD     # folding the carry overflows
    s = (s + carry) & MAX_WORD
    return s, int(c1 or c2)


def add(a: BigN, b: BigN) -> BigN:
    """a + b as a new normalized buffer; the operands are left untouched."""
    bigger, smaller = (a, b) if greater(a, b) else (b, a)
    result = allocate(bigger.len + 1, AllocMode.EXPLICIT)

    carry = 0
    n_small = smaller.len
    for i in range(bigger.len):
        s = smaller.num[i] if i < n_small else 0
        result.num[i], carry = carrying_add(bigger.num[i], s, carry)
    result.num[bigger.len] = carry

    return normalize(result)


# ---------- Subtraction -------------------------------------------------------


def borrowing_sub(x: int, y: int, borrow: int) -> tuple[int, int]:
    """Word subtract with borrow in/out: (x - y - borrow) mod 2**64, borrow out."""
    d = x - y - borrow
    return d & MAX_WORD, int(d < 0)


def sub(a: BigN, b: BigN) -> BigN:
    """
    a - b as a new normalized buffer owned by the caller.

    Requires a >= b; otherwise PreconditionViolation is raised and nothing is
    allocated. The shorter operand is treated as zero-padded on the most
    significant side. Operands are not modified.
    """
    if compare(a, b) < 0:
        raise PreconditionViolation("sub(a, b) requires a >= b")

    width = max(a.len, b.len)
    result = allocate(width, AllocMode.EXPLICIT)

    borrow = 0
    for i in range(width):
        x = a.num[i] if i < a.len else 0
        y = b.num[i] if i < b.len else 0
        result.num[i], borrow = borrowing_sub(x, y, borrow)

    if borrow:
        # unreachable while a >= b holds
        raise PreconditionViolation("borrow out of the most significant word")
    return normalize(result)
