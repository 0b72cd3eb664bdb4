"""Console UI helpers (color and messages).

Tiny, dependency-free helpers for terminal output:
 - ANSI color/style codes gated by a conservative capability check
 - Convenience printers for info/ok/warn/error with consistent prefixes

Respects ``NO_COLOR`` and only emits ANSI when stdout is a TTY.
"""

from __future__ import annotations

import os
import sys

RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
CYAN = "\033[36m"
GRAY = "\033[90m"


def supports_color() -> bool:
    """Return True when ANSI colors are likely supported.

    Honors ``NO_COLOR`` to disable color globally and requires ``sys.stdout``
    to be a TTY. Any errors during detection result in ``False``.
    """
    try:
        if os.environ.get("NO_COLOR"):
            return False
        return bool(getattr(sys.stdout, "isatty", lambda: False)())
    except Exception:
        return False


def c(s: str, color: str) -> str:
    """Colorize ``s`` with ``color`` when the terminal supports it."""
    return f"{color}{s}{RESET}" if supports_color() else s


def info(msg: str) -> None:
    """Print an informational message prefixed with "ℹ"."""
    print(c("ℹ ", BLUE) + msg)


def ok(msg: str) -> None:
    """Print a success message prefixed with "✓"."""
    print(c("✓ ", GREEN) + msg)


def warn(msg: str) -> None:
    """Print a warning message prefixed with "!"."""
    print(c("! ", YELLOW) + msg)


def err(msg: str) -> None:
    """Print an error message prefixed with "✗" to stderr."""
    print(c("✗ ", RED) + msg, file=sys.stderr)


__all__ = [
    "supports_color",
    "c",
    "info",
    "ok",
    "warn",
    "err",
    "RESET",
    "BOLD",
    "RED",
    "GREEN",
    "YELLOW",
    "BLUE",
    "CYAN",
    "GRAY",
]
