from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("bigfib")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .arith import add, compare, greater, normalize, sub
from .bign import (
    AllocationError,
    AllocMode,
    BigN,
    PreconditionViolation,
    allocate,
    estimate_words,
    release,
    track_allocations,
)
from .fibonacci import fibonacci
from .runtime import APPLY, CFG

__all__ = [
    "APPLY",
    "CFG",
    "AllocMode",
    "AllocationError",
    "BigN",
    "PreconditionViolation",
    "__version__",
    "add",
    "allocate",
    "compare",
    "estimate_words",
    "fibonacci",
    "greater",
    "normalize",
    "release",
    "sub",
    "track_allocations",
]
