# src/bigfib/progress.py
from __future__ import annotations

import sys
import time


class Progress:
    """
    One-line spinner for long recurrences. Pass `progress.step` as the
    on_step callback of fibonacci(); call done() to wipe the line.
    """

    THROTTLE = 0.05
    BAR_LEN = 24

    def __init__(self, total: int, *, enabled: bool = True, stream=None):
        self.total = max(1, int(total))
        self.enabled = enabled
        self.stream = stream if stream is not None else sys.stdout
        self.last_draw = 0.0
        self.spin = "|/-\\"
        self.i = 0
        self.drawn = False

    def step(self, index: int, target: int, words: int) -> None:
        if not self.enabled:
            return
        now = time.perf_counter()
        if now - self.last_draw < self.THROTTLE and index < target:
            return
        self.last_draw = now
        self.i = (self.i + 1) % len(self.spin)
        frac = min(max(index / self.total, 0.0), 1.0)
        fill = int(frac * self.BAR_LEN)
        bar = "#" * fill + "-" * (self.BAR_LEN - fill)
        msg = f"\r[{self.spin[self.i]}] [{bar}] {int(frac * 100):3d}%  F({index}) {words} word(s)"
        self.stream.write(msg)
        self.stream.flush()
        self.drawn = True

    def done(self) -> None:
        if not (self.enabled and self.drawn):
            return
        self.stream.write("\r" + " " * 80 + "\r")
        self.stream.flush()
