"""Interactive prompts."""

from __future__ import annotations

from .ui import err


def _safe_input(prompt: str) -> str:
    """input() that propagates Ctrl-C so callers can decide behavior."""
    try:
        return input(prompt)
    except KeyboardInterrupt:
        print()
        raise


def prompt_yes_no(question: str, default: bool = False) -> bool:
    """Prompt a yes/no question with a default, normalizing answers.

    End of input (e.g. a closed stdin) counts as the default answer.
    """
    suffix = "[Y/n]" if default else "[y/N]"
    while True:
        try:
            s = _safe_input(f"{question} {suffix} ").strip().lower()
        except EOFError:
            print()
            return default
        if not s:
            return default
        if s in ("y", "yes"):
            return True
        if s in ("n", "no"):
            return False
        err("Please answer y or n.")


__all__ = ["prompt_yes_no"]
