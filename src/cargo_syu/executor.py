"""Execution of planned updates through ``cargo install``.

Installs run one after another while holding an exclusive lock file in the
install root, so two cargo-syu processes never install into the same root at
once. A failed install is recorded and the remaining packages still run.
"""

from __future__ import annotations

import contextlib
import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from .defaults import (
    CRATES_IO_GIT_INDEX,
    CRATES_IO_SPARSE_INDEX,
    GIT_REFERENCE_FLAGS,
    LOCK_FILE,
)
from .errors import ExecutionError
from .logging_utils import log_event
from .models import KIND_GIT, ExecutionResult, UpdateDecision, UpdatePlan
from .options import RunOptions

Runner = Callable[..., subprocess.CompletedProcess]


def _is_crates_io(url: str) -> bool:
    base = url.rstrip("/")
    return base in (CRATES_IO_GIT_INDEX, CRATES_IO_SPARSE_INDEX.rstrip("/"))


def build_install_command(decision: UpdateDecision, options: RunOptions) -> List[str]:
    """Return the ``cargo install`` argv that updates ``decision``'s package.

    Install metadata from the manifest (features, target, profile) is carried
    over so the reinstalled binary matches the previous build configuration.
    """
    pkg = decision.package
    if pkg is None:
        raise ValueError(f"decision for {decision.name} carries no package")
    cmd = ["cargo", "install"]
    if options.jobs:
        cmd += ["--jobs", str(options.jobs)]
    if options.locked:
        cmd.append("--locked")
    if options.verbose:
        cmd.append("--verbose")
    if options.root:
        cmd += ["--root", str(options.root)]
    if pkg.features:
        cmd += ["--features", ",".join(pkg.features)]
    if pkg.all_features:
        cmd.append("--all-features")
    if pkg.no_default_features:
        cmd.append("--no-default-features")
    if pkg.target:
        cmd += ["--target", pkg.target]
    if pkg.profile and pkg.profile != "release":
        # cargo install builds with the release profile unless told otherwise
        cmd += ["--profile", pkg.profile]

    source = pkg.source
    if source.kind == KIND_GIT:
        cmd += ["--git", source.url]
        if source.reference is not None:
            cmd += [GIT_REFERENCE_FLAGS[source.reference.kind], source.reference.name]
        cmd.append(pkg.name)
        return cmd

    if source.protocol == "sparse" and not _is_crates_io(source.url):
        cmd += ["--index", f"sparse+{source.url}"]
    cmd.append(pkg.name)
    if decision.available:
        cmd += ["--version", f"={decision.available}"]
    return cmd


@contextlib.contextmanager
def install_lock(root: Path) -> Iterator[Path]:
    """Hold an exclusive lock on ``root`` for the duration of the block.

    Blocks until any other holder releases the lock. The lock file is removed
    again on release (except on Windows, where an open file cannot be
    unlinked). Raises :class:`ExecutionError` when the lock file cannot be
    created or locked, e.g. in a read-only install root.
    """
    path = root / LOCK_FILE
    try:
        fh = _acquire(path)
    except OSError as exc:
        raise ExecutionError(f"Cannot lock install root {root}: {exc}") from exc
    log_event("install_lock_acquired", level=logging.DEBUG, path=str(path))
    try:
        yield path
    finally:
        try:
            if os.name != "nt":
                # Unlink while still locked so waiters notice a stale file
                with contextlib.suppress(FileNotFoundError):
                    path.unlink()
            _set_lock(fh, False)
        finally:
            fh.close()


def _set_lock(fh, locked: bool) -> None:
    if os.name == "nt":
        import msvcrt

        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_LOCK if locked else msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(fh.fileno(), fcntl.LOCK_EX if locked else fcntl.LOCK_UN)


def _acquire(path: Path):
    while True:
        fh = open(path, "a+b")
        try:
            _set_lock(fh, True)
            if os.name == "nt":
                return fh
            try:
                current = os.stat(path)
            except FileNotFoundError:
                current = None
            if current is not None and os.path.samestat(os.fstat(fh.fileno()), current):
                return fh
        except BaseException:
            fh.close()
            raise
        # The previous holder removed the file while we waited; retry
        fh.close()


def install_one(
    decision: UpdateDecision, options: RunOptions, runner: Runner = subprocess.run
) -> ExecutionResult:
    """Install one package, converting failures into an ``ExecutionResult``."""
    cmd = build_install_command(decision, options)
    log_event("install_started", package=decision.name, command=" ".join(cmd))
    try:
        proc = runner(cmd)
        if proc.returncode != 0:
            raise ExecutionError(
                f"cargo install exited with status {proc.returncode}",
                package=decision.name,
                returncode=proc.returncode,
            )
    except ExecutionError as exc:
        log_event("install_failed", level=logging.ERROR, package=decision.name, error=str(exc))
        return ExecutionResult(decision.name, False, exc.returncode, str(exc))
    except OSError as exc:
        log_event("install_failed", level=logging.ERROR, package=decision.name, error=str(exc))
        return ExecutionResult(decision.name, False, None, f"cannot run cargo: {exc}")
    log_event("install_succeeded", package=decision.name)
    return ExecutionResult(decision.name, True, 0)


def run_updates(
    plan: UpdatePlan,
    options: RunOptions,
    root: Path,
    *,
    runner: Runner = subprocess.run,
    on_start: Optional[Callable[[UpdateDecision], None]] = None,
) -> List[ExecutionResult]:
    """Install every updatable package in ``plan`` sequentially.

    Returns one result per attempted package, in plan order.
    """
    results: List[ExecutionResult] = []
    updatable = plan.updatable
    if not updatable:
        return results
    with install_lock(root):
        for decision in updatable:
            if on_start is not None:
                on_start(decision)
            results.append(install_one(decision, options, runner))
    return results


__all__ = ["build_install_command", "install_lock", "install_one", "run_updates"]
