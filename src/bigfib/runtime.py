# runtime.py
from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

OUTPUT_FORMATS = ("positional", "decimal", "both")


@dataclass
class Runtime:
    """Active profile sections plus the flags the CLI toggles at run time."""
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False
    output_format: str = "positional"
    show_timing: bool = False

    def apply(self, profile: Any) -> None:
        """
        Install a loaded profile (config.Settings) or a bare mapping of
        sections such as {"DEVICE": {"MAX_LENGTH": 250}}.
        """
        if isinstance(profile, Mapping):
            self.profile_name = "(inline)"
            sections = profile
        else:
            self.profile_name = profile.name
            sections = profile.as_dict()
        self.settings = {k: v for k, v in sections.items()}
        self._sync_flags()

    def _sync_flags(self) -> None:
        dbg = self.get("BEHAVIOUR.DEBUG")
        if isinstance(dbg, bool):
            self.debug = dbg

        fmt = self.get("OUTPUT.FORMAT")
        if isinstance(fmt, str) and fmt.lower() in OUTPUT_FORMATS:
            self.output_format = fmt.lower()

        timing = self.get("OUTPUT.SHOW_TIMING")
        if isinstance(timing, bool):
            self.show_timing = timing

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. 'DEVICE.MAX_LENGTH'."""
        node: Any = self.settings
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node


_current_runtime: ContextVar[Runtime | None] = ContextVar("bigfib_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def APPLY(profile: Any) -> None:
    current().apply(profile)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    True when the gmpy2 and sympy reference backends are importable.
    Missing ones are reported with an install hint; with strict=False the
    caller may carry on anyway.
    """
    missing = [name for name in ("gmpy2", "sympy") if find_spec(name) is None]
    if not missing:
        return True
    print(
        f"{Fore.RED}{Style.BRIGHT}Missing reference backends:{Style.RESET_ALL} "
        f"{', '.join(missing)}\n"
        f"Install with: {Fore.YELLOW}pip install {' '.join(missing)}{Style.RESET_ALL}"
    )
    return not strict
