"""Argument parsing.

Cargo runs external subcommands as ``cargo-syu syu [ARGS]``; the leading
``syu`` token is dropped so both ``cargo syu`` and ``cargo-syu`` work.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .argsets import add_general_args, add_install_args, add_selection_args


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cargo syu",
        description="Update Rust binary crates installed with cargo install.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    add_general_args(p)
    add_selection_args(p)
    add_install_args(p)
    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    - ``argv``: Optional list of tokens (defaults to ``sys.argv[1:]``).
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    if argv and argv[0] == "syu":
        argv = argv[1:]
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args"]
