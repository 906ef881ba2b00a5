# src/bigfib/cli.py

"""
BigFib - exact Fibonacci numbers on 64-bit word buffers

Description:
    Computes F(k) with a hand-rolled multi-word unsigned integer and a
    two-term sliding window, prints it positionally (hi<<64+lo) or in
    decimal, and can cross-check the engine against gmpy2 and sympy.

usage: see bigfib -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import sys
import textwrap
import time
import traceback
from importlib.resources import files as pkg_files
from typing import NamedTuple

from colorama import Fore, Style
from colorama import init as colorama_init

from bigfib import __version__ as _ver
from bigfib import config as CONFIG
from bigfib.bign import release, track_allocations
from bigfib.device import DeviceBusyError, FibDevice
from bigfib.display import (
    print_ledger,
    print_profiles_with_descriptions,
    print_read_result,
    print_result,
    print_verify_report,
    show_intro_help,
)
from bigfib.fibonacci import fibonacci
from bigfib.progress import Progress
from bigfib.runtime import APPLY, CFG, OUTPUT_FORMATS, ensure_runtime_deps
from bigfib.runtime import current as _rt_current
from bigfib.utility import (
    UserInputError,
    clear_screen,
    flatten_dotted,
    parse_index,
    typename,
)
from bigfib.verify import verify_range
from bigfib.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

COMMANDS = {"init", "where", "profiles", "verify", "device"}
PROGRESS_MIN_INDEX = 20_000
DEFAULT_MAX_INDEX = 100_000


# In memory session history
class HistoryItem(NamedTuple):
    k: int
    profile: str | None
    timestamp: float


_HISTORY: list[HistoryItem] = []


def add_to_history(k: int, profile: str | None = None) -> None:
    _HISTORY.append(HistoryItem(k=k, profile=profile, timestamp=time.time()))


def get_history() -> list[HistoryItem]:
    return list(_HISTORY)


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    try:
        faulthandler.enable()
    except (AttributeError, OSError, ValueError):
        pass  # stderr without a real file descriptor

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not (msg.startswith("Invalid input:") or msg.startswith("Error:")):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _resolve_inputs(items: list[str]) -> tuple[str | None, int | None]:
    """Return (profile, index) based on the first two positionals.

    Rules:
      - one item: index if it parses, else profile/command
      - two items: (profile, index) when the second parses as an index,
        (None, index) when only the first does
    """
    if not items:
        return None, None

    if len(items) == 1:
        k = parse_index(items[0])
        return (None, k) if k is not None else (items[0], None)

    a, b = items[0], items[1]
    ka, kb = parse_index(a), parse_index(b)
    if kb is not None and ka is None:
        return a, kb
    if ka is not None:
        return None, ka
    return a, None


def _check_index(k: int) -> int:
    limit = int(CFG("BEHAVIOUR.MAX_INDEX", DEFAULT_MAX_INDEX))
    if limit > 0 and k > limit:
        raise UserInputError(
            f"Invalid input: index {k} exceeds BEHAVIOUR.MAX_INDEX={limit}. "
            "Raise it in the profile (e.g. profile 'wide')."
        )
    return k


def compute_and_print(k: int) -> None:
    """Run the engine for F(k), print it, release it."""
    rt = _rt_current()
    _check_index(k)
    progress = Progress(k, enabled=sys.stdout.isatty() and k >= PROGRESS_MIN_INDEX)

    with track_allocations() as ledger:
        t0 = time.perf_counter()
        try:
            value = fibonacci(k, on_step=progress.step)
        finally:
            progress.done()
        elapsed = time.perf_counter() - t0
        try:
            print_result(k, value, elapsed)
        finally:
            release(value)

    if rt.debug:
        print_ledger(ledger)


def run_device_read(offset: int) -> int:
    """One open/seek/read/release cycle through the device emulation."""
    dev = FibDevice()
    try:
        with dev.open() as fh:
            pos = fh.seek(offset)
            if pos != offset:
                print(f"{Fore.YELLOW}offset {offset} clamped to {pos}{Style.RESET_ALL}")
            print_read_result(fh.read())
    except DeviceBusyError as e:
        _print_user_error(str(e))
        return 16  # EBUSY
    return 0


def run_verify(items: list[str]) -> int:
    if not ensure_runtime_deps(strict=True):
        return 1
    bounds = [parse_index(s) for s in items]
    if any(b is None for b in bounds) or len(bounds) > 2:
        raise UserInputError("Invalid input: usage: verify [lo] [hi]")
    if not bounds:
        lo, hi = 0, int(CFG("DEVICE.MAX_LENGTH", 100))
    elif len(bounds) == 1:
        lo, hi = 0, bounds[0]
    else:
        lo, hi = bounds
    if hi < lo:
        raise UserInputError(f"Invalid input: empty range {lo}..{hi}")
    _check_index(hi)

    t0 = time.perf_counter()
    mismatches = verify_range(lo, hi)
    print_verify_report(lo, hi, mismatches, time.perf_counter() - t0)
    return 1 if mismatches else 0


def _apply_profile(name: str, *, debug: bool) -> str:
    """Load and install a profile; returns the resolved name."""
    selected = CONFIG.load_settings(name)
    APPLY(selected)

    limit = int(CFG("BEHAVIOUR.MAX_DIGITS", 100_000))
    if not os.environ.get("PYTHONINTMAXSTRDIGITS"):
        try:
            sys.set_int_max_str_digits(max(limit, 640) if limit else 0)
        except ValueError:
            pass

    if debug:
        print(f"[debug] active profile: {selected.name}", file=sys.stderr)
        if selected._source:
            print(f"[debug] profile file: {selected._source}", file=sys.stderr)
        flat = flatten_dotted(_rt_current().settings)
        for k in sorted(flat.keys(), key=str.lower):
            v = flat[k]
            print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
        print(file=sys.stderr)
    return selected.name


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init [overwrite]
          Create the workspace and copy the packaged profiles if missing.
          'overwrite' replaces them (requires BIGFIB_DEV=1).

      where
          Show the workspace and package paths.

      profiles
          List available profiles.

      verify [lo] [hi]
          Cross-check F(lo)..F(hi) against gmpy2 and sympy (default 0..MAX_LENGTH).

      device [offset]
          Open the emulated fibonacci device, seek to offset, read once.
    """)

    p = argparse.ArgumentParser(
        prog="bigfib",
        description="BigFib — exact Fibonacci numbers on 64-bit word buffers",
        usage=(
            "bigfib [[profile] index] [--format FORMAT] [--time] [--debug]\n"
            "       bigfib init|where|profiles|verify|device ...\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[[profile] index]",
                   help="optional profile name followed by a Fibonacci index")
    p.add_argument("--format", choices=OUTPUT_FORMATS, default=None,
                   help="output format (overrides OUTPUT.FORMAT of the profile)")
    p.add_argument("--time", action="store_true", help="Show computation time")
    p.add_argument("--debug", action="store_true", help="Show buffer counts, word dumps and tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv)
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)
    _install_loud_error_handlers(args.debug)

    # --- commands that do not need a profile ---
    items = list(args.items)
    command = items[0] if items and items[0] in COMMANDS else None

    if command == "init":
        if len(items) > 1 and items[1] == "overwrite":
            if os.environ.get("BIGFIB_DEV") != "1":
                print("Refusing to overwrite: set BIGFIB_DEV=1 to enable overwrite.")
                return 2
            ws, copied = seed_workspace(overwrite=True)
            print(f"Workspace ready at: {ws} (overwrote existing files)")
        else:
            ws, _seeded, copied = ensure_workspace_seeded()
            print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied.get('profiles', 0)}")
        return 0

    if command == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('bigfib')}")
        return 0

    # Ensure a first-run workspace seed silently
    ensure_workspace_seeded()

    if command == "profiles":
        print_profiles_with_descriptions()
        return 0

    # --- profile: explicit → last used → default ---
    profile, k = (None, None) if command else _resolve_inputs(items)
    if profile and not CONFIG.has_profile(profile):
        print(f"Unknown profile or command: '{profile}'")
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()))
        return 2

    profile_name = profile or CONFIG.read_current_profile() or "default"
    if not CONFIG.has_profile(profile_name):
        profile_name = "default"
    if CONFIG.has_profile(profile_name):
        profile_name = _apply_profile(profile_name, debug=args.debug)

    # CLI flags override the profile
    rt.debug = rt.debug or bool(args.debug)
    if args.format:
        rt.output_format = args.format
    if args.time:
        rt.show_timing = True

    if command == "verify":
        return run_verify(items[1:])

    if command == "device":
        offset = parse_index(items[1]) if len(items) > 1 else 0
        if offset is None:
            raise UserInputError(f"Invalid input: offset '{items[1]}' is not a number")
        return run_device_read(offset)

    # --- one-shot index path ---
    if k is not None:
        compute_and_print(k)
        return 0

    return _repl(profile_name)


def _toggle(low: str, attr: str, name: str) -> None:
    rt = _rt_current()
    parts = low.split()
    if len(parts) == 1 or parts[1] == "status":
        print(f"{name} is currently {'ON' if getattr(rt, attr) else 'OFF'}.")
    elif parts[1] in {"on", "off"}:
        setattr(rt, attr, parts[1] == "on")
        print(f"{name} {'enabled' if parts[1] == 'on' else 'disabled'} for this session.")
    else:
        print(f"Usage: {parts[0].upper()} [on|off|status]")


def _repl(current_profile: str) -> int:
    if not _rt_current().debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}BigFib v{_ver} — exact Fibonacci numbers{Style.RESET_ALL}")

    while True:
        try:
            prompt = f"\nProfile: {current_profile} — Enter an index, command or profile (h=Help, q=Quit): "
            user_input = input(prompt).strip()

            low = user_input.lower()
            if low in {"", "q", "quit"}:
                break

            if low in {"h", "help"}:
                show_intro_help()
                continue

            if low in {"p", "profiles"}:
                print_profiles_with_descriptions()
                continue

            if low in {"hist", "history"}:
                hist = get_history()
                if not hist:
                    print("History is empty.")
                for item in hist:
                    ts = time.strftime("%H:%M:%S", time.localtime(item.timestamp))
                    print(f"{ts}  k={item.k:<10}  profile={item.profile or '-'}")
                continue

            if low.startswith("debug"):
                _toggle(low, "debug", "Debug")
                continue

            if low.startswith("time"):
                _toggle(low, "show_timing", "Timing")
                continue

            if low.startswith("format"):
                parts = low.split()
                if len(parts) == 2 and parts[1] in OUTPUT_FORMATS:
                    _rt_current().output_format = parts[1]
                    print(f"Output format: {parts[1]}")
                else:
                    print(f"Usage: FORMAT [{'|'.join(OUTPUT_FORMATS)}]  (now: {_rt_current().output_format})")
                continue

            try:
                k = parse_index(user_input)
                if k is not None:
                    compute_and_print(k)
                    add_to_history(k, current_profile)
                    continue
            except UserInputError as e:
                msg = str(e)
                prefix = f"{Fore.RED}Invalid input:{Style.RESET_ALL}"
                msg = msg.replace("Invalid input:", prefix, 1) if msg.startswith("Invalid input:") else f"{prefix} {msg}"
                print(msg, file=sys.stderr)
                continue

            # treat as profile switch
            if CONFIG.has_profile(user_input):
                try:
                    current_profile = _apply_profile(user_input, debug=_rt_current().debug)
                    CONFIG.write_current_profile(user_input)
                    print(f"Applied profile: {current_profile}")
                except UserInputError as e:
                    _print_user_error(str(e))
                continue

            print(f"{Fore.RED}Invalid input: {Style.RESET_ALL}'{user_input}'. Type H for help.")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_user_error(f"{e.__class__.__name__}: {e}")
            continue
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
