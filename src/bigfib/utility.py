# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import re
import sys

from bigfib.runtime import CFG


class UserInputError(Exception):
    pass


_INDEX_RE = re.compile(r"^[+]?\d[\d_]*$")


def parse_index(text: str) -> int | None:
    """
    Parse a Fibonacci index typed by the user.

    Returns None when `text` does not look like a number at all (the CLI then
    treats it as a profile or command). Raises UserInputError for negative
    numbers.
    """
    s = (text or "").strip()
    if not s:
        return None
    if s.startswith("-") and _INDEX_RE.match(s[1:]):
        raise UserInputError(f"Invalid input: index must be >= 0 (got {s}).")
    if not _INDEX_RE.match(s) or s.endswith("_") or "__" in s:
        return None
    return int(s.replace("_", ""))


def dec_digits(n: int) -> int:
    """Exact decimal digit count without str(); handles n >= 0."""
    n = abs(n)
    if n == 0:
        return 1
    # floor(log10(n)) ~= floor(bitlen*log10(2))
    bl = n.bit_length()
    # 0.30102999566 ~ log10(2)
    est = int((bl * 30103) // 100000)
    # bring into correct decade with at most a couple of steps
    p10 = 10 ** est
    if n < p10:
        while n < p10:
            est -= 1
            p10 //= 10
    else:
        p10 *= 10
        while n >= p10:
            est += 1
            p10 *= 10
    return est + 1


def _effective_digit_limit() -> int | None:
    """
    Effective decimal-digit limit for stringifying values.

    - Primary source: profile setting BEHAVIOUR.MAX_DIGITS.
    - Secondary: Python's own guard (sys.get_int_max_str_digits).

    The tighter of the two wins. Python reports 0 for "no limit".
    """
    profile_limit = CFG("BEHAVIOUR.MAX_DIGITS", 100_000)
    try:
        py_limit = sys.get_int_max_str_digits() or None
    except Exception:
        py_limit = None

    try:
        profile_limit = int(profile_limit) or None
    except Exception:
        profile_limit = None

    if profile_limit is None:
        return py_limit
    if py_limit is None:
        return profile_limit
    return min(profile_limit, py_limit)


def stringify_guarded(n: int, label: str = "value") -> str:
    """Return str(n) or raise a friendly user error if it exceeds the digit guard."""
    limit = _effective_digit_limit()

    if limit is not None and dec_digits(n) > limit:
        raise UserInputError(
            f"{label} has more than {limit} decimal digits. "
            "Increase BEHAVIOUR.MAX_DIGITS in the profile or use the positional format."
        )

    try:
        return str(n)
    except ValueError:
        raise UserInputError(
            f"{label} is too large to be converted to a decimal string under "
            "the current settings. Use the positional format instead."
        ) from None


def clear_screen(keep_scrollback: bool = False) -> None:
    """
    Clear the terminal screen.
    - On Windows: uses 'cls'
    - On POSIX: ANSI sequences; optionally clear scrollback
    """
    try:
        if os.name == "nt":
            os.system("cls")
        else:
            seq = "\033[H\033[2J" if keep_scrollback else "\033[3J\033[H\033[2J"
            sys.stdout.write(seq)
            sys.stdout.flush()
    except Exception:
        pass


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
