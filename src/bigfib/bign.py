# src/bigfib/bign.py
"""
Block buffers: arbitrary-precision unsigned integers stored as a list of
64-bit words, least significant word first.

    value = sum(num[i] << (64 * i) for i in range(len))

Buffers are created with allocate() and retired with release(). Every
allocation is reported to the active AllocationLedger (if any), and its
release is counted by that same ledger even outside the tracked block. This
is how the Fibonacci window's memory bound is observed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum

from bigfib.runtime import CFG

WORD_BITS = 64
MAX_WORD = (1 << WORD_BITS) - 1


# --- Errors ------------------------------------------------------------------

class BigNError(Exception):
    pass


class AllocationError(BigNError):
    """Backing storage for a buffer could not be obtained."""


class PreconditionViolation(BigNError):
    """An operation was called with operands outside its domain."""


class ReleasedBufferError(BigNError):
    """A buffer was used (or released again) after release()."""


# --- Buffer ------------------------------------------------------------------

@dataclass(eq=False)
class BigN:
    num: list[int]
    released: bool = field(default=False, repr=False)
    _ledger: AllocationLedger | None = field(default=None, repr=False)

    @property
    def len(self) -> int:
        return len(self.num)

    def __len__(self) -> int:
        return len(self.num)

    def to_int(self) -> int:
        """Python int with the same value (host/test helper, no arithmetic)."""
        require_live(self)
        val = 0
        for i in range(len(self.num) - 1, -1, -1):
            val = (val << WORD_BITS) | self.num[i]
        return val

    @classmethod
    def from_int(cls, value: int) -> BigN:
        """Build a normalized buffer holding `value` (value >= 0)."""
        if value < 0:
            raise ValueError("BigN holds unsigned values only")
        words = [value & MAX_WORD]
        value >>= WORD_BITS
        while value:
            words.append(value & MAX_WORD)
            value >>= WORD_BITS
        buf = allocate(len(words), AllocMode.EXPLICIT)
        buf.num[:] = words
        return buf


def require_live(*bufs: BigN) -> None:
    for b in bufs:
        if b.released:
            raise ReleasedBufferError("buffer used after release")


# --- Allocation ledger -------------------------------------------------------

@dataclass
class AllocationLedger:
    allocated: int = 0
    released: int = 0
    peak: int = 0

    @property
    def live(self) -> int:
        return self.allocated - self.released

    def _on_alloc(self) -> None:
        self.allocated += 1
        self.peak = max(self.peak, self.live)

    def _on_release(self) -> None:
        self.released += 1


_LEDGER: ContextVar[AllocationLedger | None] = ContextVar("bigfib_ledger", default=None)


@contextmanager
def track_allocations() -> Iterator[AllocationLedger]:
    """Count allocate()/release() calls made inside the block."""
    ledger = AllocationLedger()
    token = _LEDGER.set(ledger)
    try:
        yield ledger
    finally:
        _LEDGER.reset(token)


# --- Lifecycle ---------------------------------------------------------------

class AllocMode(Enum):
    BY_INDEX = "by_index"   # size is a Fibonacci index, estimate the words
    EXPLICIT = "explicit"   # size is a word count


def estimate_words(index: int) -> int:
    """
    Words needed for F(index): bit length is about index * log2(phi)
    (~0.694), divided by 64 bits per word, plus one word of slack.
    """
    if index < 0:
        raise ValueError(f"Fibonacci index must be >= 0 (got {index})")
    return ((index * 695 // 1000) >> 6) + 1


def _word_ceiling() -> int | None:
    lim = CFG("BEHAVIOUR.MAX_WORDS", None)
    try:
        lim = int(lim) if lim is not None else None
    except (TypeError, ValueError):
        return None
    return lim if lim and lim > 0 else None


def allocate(size: int, mode: AllocMode = AllocMode.EXPLICIT) -> BigN:
    """Return a zero-filled buffer; raises AllocationError if no storage."""
    if mode is AllocMode.BY_INDEX:
        words = estimate_words(size)
    else:
        if size < 1:
            raise ValueError(f"explicit buffer size must be >= 1 (got {size})")
        words = size

    ceiling = _word_ceiling()
    if ceiling is not None and words > ceiling:
        raise AllocationError(
            f"buffer of {words} words exceeds BEHAVIOUR.MAX_WORDS={ceiling}"
        )
    try:
        buf = BigN([0] * words)
    except MemoryError:
        raise AllocationError(f"out of memory allocating {words} words") from None

    ledger = _LEDGER.get()
    if ledger is not None:
        ledger._on_alloc()
        buf._ledger = ledger
    return buf


def release(buf: BigN) -> None:
    if buf.released:
        raise ReleasedBufferError("buffer released twice")
    buf.num = []
    buf.released = True
    # counted by the allocating ledger
    if buf._ledger is not None:
        buf._ledger._on_release()
        buf._ledger = None
