"""Argument definitions: Package selection."""

from __future__ import annotations

import argparse


def add_selection_args(p: argparse.ArgumentParser) -> None:
    """Attach package-selection arguments to the parser.

    ``--exclude`` accepts a comma separated list and may be repeated; values
    are accumulated and split later by ``options_from_args``.
    """
    selection = p.add_argument_group("Package Selection")
    selection.add_argument(
        "-e",
        "--exclude",
        action="append",
        metavar="PACKAGE",
        help="Comma separated list of packages to exclude",
    )


__all__ = ["add_selection_args"]
