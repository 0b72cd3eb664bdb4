"""Run options threaded explicitly through planner, resolver and executor.

``RunOptions`` is the single configuration value for a run. It is built from
parsed CLI arguments once and passed down; nothing reads process-wide
switches.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from .defaults import DEFAULT_FETCH_JOBS, DEFAULT_TIMEOUT


@dataclass(frozen=True)
class RunOptions:
    """Abstract options for one invocation.

    - ``list_only``: report only, never install.
    - ``include_git``: resolve packages installed from git.
    - ``ask``: present the updatable list and require confirmation.
    - ``exclude``: package names left out of resolution and execution.
    - ``jobs``/``locked``/``verbose``: forwarded to ``cargo install``.
    - ``root``: explicit install root override.
    - ``timeout``: per network call, in seconds.
    - ``fetch_jobs``: worker threads used for resolution.
    """

    list_only: bool = False
    include_git: bool = False
    ask: bool = False
    exclude: FrozenSet[str] = frozenset()
    jobs: Optional[int] = None
    locked: bool = True
    verbose: bool = False
    root: Optional[Path] = None
    timeout: float = DEFAULT_TIMEOUT
    fetch_jobs: int = DEFAULT_FETCH_JOBS


def _split_csv(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    names = set()
    for value in values or ():
        for part in str(value).split(","):
            part = part.strip()
            if part:
                names.add(part)
    return frozenset(names)


def options_from_args(args: argparse.Namespace) -> RunOptions:
    """Build :class:`RunOptions` from a parsed argument namespace."""
    root = getattr(args, "root", None)
    fetch_jobs = getattr(args, "fetch_jobs", None) or DEFAULT_FETCH_JOBS
    timeout = getattr(args, "timeout", None) or DEFAULT_TIMEOUT
    return RunOptions(
        list_only=bool(getattr(args, "list", False)),
        include_git=bool(getattr(args, "git", False)),
        ask=bool(getattr(args, "ask", False)),
        exclude=_split_csv(getattr(args, "exclude", None)),
        jobs=getattr(args, "jobs", None),
        locked=not getattr(args, "no_locked", False),
        verbose=bool(getattr(args, "verbose", False)),
        root=Path(root).expanduser() if root else None,
        timeout=float(timeout),
        fetch_jobs=max(1, int(fetch_jobs)),
    )


__all__ = ["RunOptions", "options_from_args"]
