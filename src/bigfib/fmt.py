# src/bigfib/fmt.py
from __future__ import annotations

from bigfib.bign import BigN, require_live
from bigfib.runtime import CFG
from bigfib.utility import stringify_guarded

SHIFT_TOKEN = "<<64"


def format_positional(n: BigN) -> str:
    """
    Render a buffer word by word, most significant first:

        [5, 1]    -> "1<<64+5\\n"
        [3, 0, 2] -> "2<<64<<64+0<<64+3\\n"

    Each word is printed in decimal and followed by one "<<64" per position.
    """
    require_live(n)
    terms = [f"{n.num[i]}{SHIFT_TOKEN * i}" for i in range(n.len - 1, -1, -1)]
    return "+".join(terms) + "\n"


def format_words(n: BigN) -> str:
    """Hex dump of the words, msb first (debug output)."""
    require_live(n)
    return "[" + ", ".join(f"0x{w:016x}" for w in reversed(n.num)) + "]"


def format_decimal(n: BigN) -> str:
    """Exact decimal string, subject to BEHAVIOUR.MAX_DIGITS."""
    return stringify_guarded(n.to_int(), label="result")


def abbreviate_decimal(text: str, head: int = 20, tail: int = 20, threshold: int = 60, ellipsis: str = "…") -> str:
    """Abbreviate a long decimal string as first<head>…last<tail>."""
    if len(text) <= threshold or head + tail >= len(text):
        return text
    return f"{text[:head]}{ellipsis}{text[-tail:]}"


def display_decimal(n: BigN) -> str:
    """format_decimal() plus the FORMATTING.* abbreviation settings."""
    text = format_decimal(n)
    if not CFG("FORMATTING.ABBREVIATE", False):
        return text
    head = int(CFG("FORMATTING.HEAD", 20))
    tail = int(CFG("FORMATTING.TAIL", 20))
    return abbreviate_decimal(text, head=head, tail=tail, threshold=head + tail + 20)


def format_duration(seconds: float) -> str:
    """ms if <1s; s with millis if <60s; else mm:ss.mmm (and hh:mm:ss.mmm if ≥1h)."""
    MAX_SECONDS = 60
    if seconds < 1:
        ms = seconds * 1000
        return f"{ms:.3f} ms"
    if seconds < MAX_SECONDS:
        return f"{seconds:.3f} s"
    m, s = divmod(seconds, MAX_SECONDS)
    if m < MAX_SECONDS:
        return f"{int(m)}:{s:06.3f}"               # mm:ss.mmm
    h, m = divmod(int(m), MAX_SECONDS)
    return f"{h}:{m:02d}:{s:06.3f}"                # hh:mm:ss.mmm
