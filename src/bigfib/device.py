# src/bigfib/device.py
"""
In-process stand-in for the fibdrv character device.

    dev = FibDevice()
    with dev.open() as fh:
        fh.seek(50)
        res = fh.read()        # res.payload == b"12586269025\\n"

Only one handle may be open at a time; the file position selects the index
and is clamped to [0, max_length].
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass

from bigfib.bign import release
from bigfib.fibonacci import fibonacci
from bigfib.fmt import format_positional
from bigfib.runtime import CFG

DEV_NAME = "fibdrv"
MAX_LENGTH = 100

SEEK_SET = os.SEEK_SET
SEEK_CUR = os.SEEK_CUR
SEEK_END = os.SEEK_END


class DeviceBusyError(Exception):
    pass


@dataclass(frozen=True)
class ReadResult:
    index: int
    payload: bytes
    low_word: int       # least significant word of F(index)
    elapsed: float      # seconds spent inside fibonacci()


class FibDevice:
    def __init__(self, max_length: int | None = None):
        if max_length is None:
            max_length = int(CFG("DEVICE.MAX_LENGTH", MAX_LENGTH))
        if max_length < 0:
            raise ValueError("max_length must be >= 0")
        self.max_length = max_length
        self._gate = threading.Lock()

    @property
    def in_use(self) -> bool:
        return self._gate.locked()

    def open(self) -> FibHandle:
        if not self._gate.acquire(blocking=False):
            raise DeviceBusyError(f"{DEV_NAME} is in use")
        return FibHandle(self)

    def _release(self) -> None:
        self._gate.release()


class FibHandle:
    def __init__(self, device: FibDevice):
        self._device = device
        self.pos = 0
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed handle")

    def seek(self, offset: int, whence: int = SEEK_SET) -> int:
        self._check_open()
        new_pos = 0
        if whence == SEEK_SET:
            new_pos = offset
        elif whence == SEEK_CUR:
            new_pos = self.pos + offset
        elif whence == SEEK_END:
            new_pos = self._device.max_length - offset

        new_pos = min(max(new_pos, 0), self._device.max_length)
        self.pos = new_pos
        return new_pos

    def tell(self) -> int:
        return self.pos

    def read(self) -> ReadResult:
        """Compute F(pos), render it positionally and release the buffer."""
        self._check_open()
        t0 = time.perf_counter()
        result = fibonacci(self.pos)
        elapsed = time.perf_counter() - t0
        try:
            payload = format_positional(result).encode("utf-8")
            low = result.num[0]
        finally:
            release(result)
        return ReadResult(index=self.pos, payload=payload, low_word=low, elapsed=elapsed)

    def write(self, data: bytes) -> int:
        """Writes are accepted and ignored."""
        self._check_open()
        return 1

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._device._release()

    def __enter__(self) -> FibHandle:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
