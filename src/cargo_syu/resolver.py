"""Upstream resolution for installed packages.

Two strategies, picked by the package's source kind through ``_FETCHERS``:

- registry: read the crate's file from the sparse index and pick the highest
  non-yanked version (pre-releases only when the installed version is one).
- git: ``git ls-remote`` the tracked reference and report its revision.

``resolve_all`` runs resolutions concurrently. Every package yields exactly
one :class:`ResolutionOutcome`; a failure for one package is recorded on its
own outcome and never stops the others.
"""

from __future__ import annotations

import concurrent.futures
import json
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

from . import utils
from .defaults import CRATES_IO_GIT_INDEX, CRATES_IO_SPARSE_INDEX
from .errors import ResolutionError
from .logging_utils import log_event
from .models import (
    KIND_GIT,
    KIND_REGISTRY,
    InstalledPackage,
    ResolutionOutcome,
    UpstreamInfo,
)
from .options import RunOptions
from .version import Version, select_latest

logger = logging.getLogger(__name__)

INTERRUPTED = "interrupted before resolution finished"

Fetcher = Callable[[InstalledPackage, RunOptions], UpstreamInfo]


def index_path(name: str) -> str:
    """Return the path of ``name`` inside a cargo index.

    >>> index_path("cargo-syu")
    'ca/rg/cargo-syu'
    """
    if not name:
        raise ValueError("package name must not be empty")
    name = name.lower()
    if len(name) == 1:
        return f"1/{name}"
    if len(name) == 2:
        return f"2/{name}"
    if len(name) == 3:
        return f"3/{name[0]}/{name}"
    return f"{name[:2]}/{name[2:4]}/{name}"


def index_url(package: InstalledPackage) -> str:
    """Return the sparse-index URL of ``package``'s index file."""
    source = package.source
    base = source.url.rstrip("/")
    if source.protocol == "registry":
        if base != CRATES_IO_GIT_INDEX:
            raise ResolutionError(
                f"git-protocol registry index is not supported: {source.url}",
                package=package.name,
            )
        base = CRATES_IO_SPARSE_INDEX.rstrip("/")
    return f"{base}/{index_path(package.name)}"


def parse_index(body: str) -> List[Version]:
    """Return the non-yanked versions listed in an index file.

    Each line is a JSON object; unparsable lines are skipped.
    """
    versions: List[Version] = []
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed index line: %.60s", line)
            continue
        if not isinstance(entry, dict) or entry.get("yanked"):
            continue
        try:
            versions.append(Version.parse(str(entry.get("vers", ""))))
        except ValueError:
            logger.debug("Skipping invalid version in index: %r", entry.get("vers"))
    return versions


def _fetch_registry(package: InstalledPackage, options: RunOptions) -> UpstreamInfo:
    url = index_url(package)
    body, error = utils.http_get_text(url, timeout=options.timeout)
    if body is None:
        if error and error.startswith("HTTP 404"):
            raise ResolutionError(
                f"package not found in registry index ({url})", package=package.name
            )
        raise ResolutionError(error or "empty response", package=package.name)
    installed = package.parsed_version
    allow_pre = bool(installed and installed.is_prerelease)
    latest = select_latest(parse_index(body), allow_prerelease=allow_pre)
    if latest is None:
        raise ResolutionError(
            "no published version found in registry index", package=package.name
        )
    return UpstreamInfo(
        name=package.name,
        kind=KIND_REGISTRY,
        version=str(latest),
        prerelease=latest.is_prerelease,
    )


def _fetch_git(package: InstalledPackage, options: RunOptions) -> UpstreamInfo:
    source = package.source
    reference = source.reference
    if reference is not None and reference.kind == "rev":
        # A pinned revision never moves
        if not source.revision:
            raise ResolutionError("pinned revision is missing", package=package.name)
        return UpstreamInfo(name=package.name, kind=KIND_GIT, revision=source.revision)

    if reference is None:
        wanted = ["HEAD"]
    elif reference.kind == "branch":
        wanted = [f"refs/heads/{reference.name}"]
    else:
        # Annotated tags list the peeled commit as "<ref>^{}" only when asked for
        tag = f"refs/tags/{reference.name}"
        wanted = [tag + "^{}", tag]

    refs, error = utils.git_ls_remote(source.url, wanted, timeout=options.timeout)
    if refs is None:
        raise ResolutionError(error or "git ls-remote failed", package=package.name)
    for ref_name in wanted:
        revisions = sorted({rev for rev, ref in refs if ref == ref_name})
        if len(revisions) > 1:
            raise ResolutionError(
                f"ambiguous reference {ref_name}: {', '.join(revisions)}",
                package=package.name,
            )
        if revisions:
            return UpstreamInfo(name=package.name, kind=KIND_GIT, revision=revisions[0])
    raise ResolutionError(
        f"reference not found: {wanted[-1]} in {source.url}", package=package.name
    )


_FETCHERS: Dict[str, Fetcher] = {
    KIND_REGISTRY: _fetch_registry,
    KIND_GIT: _fetch_git,
}


def resolve_package(package: InstalledPackage, options: RunOptions) -> UpstreamInfo:
    """Return upstream information for ``package``.

    Raises :class:`ResolutionError` when the source kind is unsupported or the
    lookup fails.
    """
    fetcher = _FETCHERS.get(package.source.kind)
    if fetcher is None:
        raise ResolutionError(
            f"unsupported source: {package.source.raw or package.source.kind}",
            package=package.name,
        )
    return fetcher(package, options)


def _resolve_one(
    resolve: Callable[[InstalledPackage, RunOptions], UpstreamInfo],
    package: InstalledPackage,
    options: RunOptions,
) -> ResolutionOutcome:
    start = time.perf_counter()
    try:
        upstream = resolve(package, options)
    except ResolutionError as exc:
        outcome = ResolutionOutcome(package, error=str(exc))
    except Exception as exc:
        logger.debug("Unexpected failure resolving %s", package.name, exc_info=True)
        outcome = ResolutionOutcome(package, error=f"unexpected error: {exc}")
    else:
        outcome = ResolutionOutcome(package, upstream=upstream)
    duration_ms = int((time.perf_counter() - start) * 1000)
    if outcome.error:
        log_event(
            "resolve_failed",
            level=logging.WARNING,
            package=package.name,
            kind=package.source.kind,
            error=outcome.error,
            duration_ms=duration_ms,
        )
    else:
        log_event(
            "resolve_succeeded",
            level=logging.DEBUG,
            package=package.name,
            kind=package.source.kind,
            duration_ms=duration_ms,
        )
    return outcome


def resolve_all(
    packages: Iterable[InstalledPackage],
    options: RunOptions,
    *,
    resolve: Optional[Callable[[InstalledPackage, RunOptions], UpstreamInfo]] = None,
) -> List[ResolutionOutcome]:
    """Resolve ``packages`` concurrently and return outcomes in name order.

    A ``KeyboardInterrupt`` cancels pending work; outcomes already computed
    are kept and every other package is recorded with :data:`INTERRUPTED`.
    """
    resolve = resolve or resolve_package
    pending = list(packages)
    if not pending:
        return []
    outcomes: Dict[str, ResolutionOutcome] = {}
    workers = max(1, min(options.fetch_jobs, len(pending)))
    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="cargo-syu-resolve"
    )
    interrupted = False
    try:
        futures = [executor.submit(_resolve_one, resolve, pkg, options) for pkg in pending]
        for fut in concurrent.futures.as_completed(futures):
            outcome = fut.result()
            outcomes[outcome.name] = outcome
    except KeyboardInterrupt:
        interrupted = True
        log_event("resolve_interrupted", level=logging.WARNING, count=len(outcomes))
    finally:
        executor.shutdown(wait=not interrupted, cancel_futures=True)

    for pkg in pending:
        if pkg.name not in outcomes:
            outcomes[pkg.name] = ResolutionOutcome(pkg, error=INTERRUPTED)
    return [outcomes[name] for name in sorted(outcomes)]


__all__ = [
    "INTERRUPTED",
    "index_path",
    "index_url",
    "parse_index",
    "resolve_package",
    "resolve_all",
    "_FETCHERS",
]
