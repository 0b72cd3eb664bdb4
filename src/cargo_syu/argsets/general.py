"""Argument definitions: General flags and core behavior.

Mode switches (list, git, ask), logging, install-root override and resolution
tuning. Imported by args.parse_args to keep the top-level file concise.
"""

from __future__ import annotations

import argparse

from ..defaults import DEFAULT_FETCH_JOBS, DEFAULT_TIMEOUT


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value!r}")
    return number


def add_general_args(p: argparse.ArgumentParser) -> None:
    """Attach general arguments to the parser."""
    general = p.add_argument_group("General")
    general.add_argument(
        "-a", "--ask", action="store_true", help="Ask before installing packages"
    )
    general.add_argument(
        "-g", "--git", action="store_true", help="Include packages installed with --git"
    )
    general.add_argument(
        "-l",
        "--list",
        "--dry-run",
        dest="list",
        action="store_true",
        help="Print installed packages and available updates but don't update them",
    )
    general.add_argument(
        "-V", "--version", action="store_true", help="Print version and exit"
    )
    general.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable DEBUG logging and pass --verbose to cargo install",
    )
    general.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Explicit log level (overrides --verbose)",
    )
    general.add_argument("--log-file", help="Write logs to a file")
    general.add_argument(
        "--log-json", action="store_true", help="Also log JSON to stdout"
    )
    general.add_argument(
        "--root",
        help="Install root to inspect (default: CARGO_INSTALL_ROOT, cargo config, CARGO_HOME)",
    )
    general.add_argument(
        "--timeout",
        type=_positive_float,
        default=DEFAULT_TIMEOUT,
        help="Timeout in seconds for each registry or git query",
    )
    general.add_argument(
        "--fetch-jobs",
        type=_positive_int,
        default=DEFAULT_FETCH_JOBS,
        help="Number of packages resolved concurrently",
    )


__all__ = ["add_general_args"]
