"""Argument definitions: Options forwarded to ``cargo install``."""

from __future__ import annotations

import argparse

from .general import _positive_int


def add_install_args(p: argparse.ArgumentParser) -> None:
    """Attach installation arguments to the parser.

    Options
    - ``--jobs``: parallel build jobs passed as ``cargo install --jobs``
    - ``--no-locked``: drop the default ``--locked`` flag
    """
    install = p.add_argument_group("Installation Options")
    install.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        metavar="N",
        help="Number of parallel build jobs, defaults to # of CPUs",
    )
    install.add_argument(
        "--no-locked",
        action="store_true",
        help="Don't pass --locked to cargo install (used by default to minimize breakage)",
    )


__all__ = ["add_install_args"]
