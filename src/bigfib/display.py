# src/bigfib/display.py
from __future__ import annotations

import sys

from colorama import Fore, Style

from bigfib import __version__
from bigfib.bign import AllocationLedger, BigN
from bigfib.config import list_profiles_with_descriptions, read_current_profile
from bigfib.device import ReadResult
from bigfib.fmt import display_decimal, format_duration, format_positional, format_words
from bigfib.runtime import current as _rt_current
from bigfib.verify import Mismatch


def print_result(k: int, value: BigN, elapsed: float | None = None) -> None:
    """Print F(k) in the runtime's output format (positional/decimal/both)."""
    rt = _rt_current()
    label = f"{Fore.CYAN}{Style.BRIGHT}F({k}){Style.RESET_ALL}"
    words = f"{Style.DIM}({value.len} word{'s' if value.len != 1 else ''}){Style.RESET_ALL}"

    if rt.output_format in ("positional", "both"):
        print(f"{label} {words} = {format_positional(value).rstrip()}")
    if rt.output_format in ("decimal", "both"):
        prefix = label if rt.output_format == "decimal" else " " * len(f"F({k})")
        print(f"{prefix} = {display_decimal(value)}")

    if rt.debug:
        print(f"[debug] words (msb first): {format_words(value)}", file=sys.stderr)
    if elapsed is not None and (rt.show_timing or rt.debug):
        print(f"{Fore.YELLOW}Computed in {format_duration(elapsed)}{Style.RESET_ALL}")


def print_read_result(res: ReadResult) -> None:
    """Show one device read the way a user-space client would see it."""
    print(f"{Fore.CYAN}read(offset={res.index}){Style.RESET_ALL} -> {res.low_word}")
    print(res.payload.decode("utf-8"), end="")
    print(f"{Fore.YELLOW}kernel time {format_duration(res.elapsed)}{Style.RESET_ALL}")


def print_ledger(ledger: AllocationLedger) -> None:
    print(
        f"[debug] buffers: allocated={ledger.allocated} released={ledger.released} "
        f"live={ledger.live} peak={ledger.peak}",
        file=sys.stderr,
    )


def print_verify_report(lo: int, hi: int, mismatches: list[Mismatch], elapsed: float) -> None:
    span = f"F({lo})..F({hi})"
    if not mismatches:
        print(f"{Fore.GREEN}{Style.BRIGHT}OK{Style.RESET_ALL} {span} matches gmpy2 and sympy "
              f"({hi - lo + 1} values, {format_duration(elapsed)})")
        return
    print(f"{Fore.RED}{Style.BRIGHT}FAIL{Style.RESET_ALL} {span}: {len(mismatches)} mismatch(es)")
    for m in mismatches[:20]:
        print(f"  F({m.index}) [{m.backend}]: got {m.got}, expected {m.expected}")
    if len(mismatches) > 20:
        print(f"  ... {len(mismatches) - 20} more")


def show_intro_help() -> None:
    lines = [
        "",
        f"{Fore.GREEN}BigFib v{__version__}{Style.RESET_ALL} — exact Fibonacci numbers on 64-bit word buffers",
        f"{'-'*78}",
        "",
        f"{Fore.MAGENTA + Style.BRIGHT}Usage in interactive mode:{Style.RESET_ALL}",
        " • Enter an index k >= 0 to compute F(k). Underscores are allowed: 1_000.",
        "   Positional output reads  hi<<64+lo : one term per 64-bit word, msb first.",
        "",
        " • Valid commands are:",
        "   debug on|off|status              switch debug output (tracebacks, buffer counts).",
        "   format positional|decimal|both   choose how results are printed.",
        "   time on|off                      show the computation time.",
        "   hist or history                  list the indices computed this session.",
        "   p or profiles                    list available profiles.",
        "   <profile name>                   switch to that profile.",
        "   h or help                        show this screen.",
        "   q or quit (or empty line)        leave.",
        "",
    ]
    print("\n".join(lines))


def print_profiles_with_descriptions() -> None:
    pairs = list_profiles_with_descriptions()
    if not pairs:
        print("\nAvailable profiles: (none)")
        return

    current = read_current_profile()
    lines = []
    for name, desc in pairs:
        mark = ">" if current and name == current else " "
        lines.append(f"{mark} {name:13} — {desc}")
    print("\nAvailable profiles:\n  " + "\n  ".join(lines))
