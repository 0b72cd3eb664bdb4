"""Update planning.

Turns the installed set plus resolution outcomes into an ordered list of
decisions. Ordering depends only on package names, so the plan is the same no
matter in which order resolutions finished.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .logging_utils import log_event
from .models import (
    KIND_GIT,
    KIND_REGISTRY,
    STATUS_UNKNOWN,
    STATUS_UP_TO_DATE,
    STATUS_UPDATABLE,
    InstalledPackage,
    ResolutionOutcome,
    UpdateDecision,
    UpdatePlan,
)
from .options import RunOptions
from .resolver import INTERRUPTED, resolve_all
from .version import Version

Resolver = Callable[[Sequence[InstalledPackage], RunOptions], List[ResolutionOutcome]]


def select_packages(
    installed: Mapping[str, InstalledPackage], options: RunOptions
) -> Tuple[List[InstalledPackage], List[str], List[str]]:
    """Split ``installed`` into ``(candidates, skipped, excluded)``.

    Git packages are skipped unless ``options.include_git``; names listed in
    ``options.exclude`` are excluded. All three lists are in name order.
    """
    candidates: List[InstalledPackage] = []
    skipped: List[str] = []
    excluded: List[str] = []
    for name in sorted(installed):
        pkg = installed[name]
        if name in options.exclude:
            excluded.append(name)
        elif pkg.is_git and not options.include_git:
            skipped.append(name)
        else:
            candidates.append(pkg)
    return candidates, skipped, excluded


def _unknown(pkg: InstalledPackage, reason: str, installed: object = None) -> UpdateDecision:
    return UpdateDecision(
        name=pkg.name,
        status=STATUS_UNKNOWN,
        installed=installed if installed is not None else pkg.version,
        reason=reason,
        package=pkg,
    )


def _classify_registry(pkg: InstalledPackage, latest_text: str) -> UpdateDecision:
    current = pkg.parsed_version
    if current is None:
        reason = (
            f"installed version {pkg.version!r} is not a semantic version"
            if pkg.version
            else "installed version is missing"
        )
        return _unknown(pkg, reason)
    try:
        latest = Version.parse(latest_text)
    except ValueError:
        return _unknown(pkg, f"upstream version {latest_text!r} is not a semantic version")
    if current.same_as(latest):
        status = STATUS_UP_TO_DATE
    elif current < latest:
        status = STATUS_UPDATABLE
    else:
        # Ahead of the index, e.g. a yanked release or differing build metadata
        return _unknown(
            pkg, f"installed {current} is not published as latest ({latest})"
        )
    return UpdateDecision(
        name=pkg.name,
        status=status,
        installed=str(current),
        available=str(latest),
        package=pkg,
    )


def _classify_git(pkg: InstalledPackage, revision: str) -> UpdateDecision:
    installed = pkg.source.revision
    if not installed:
        return _unknown(pkg, "installed revision is missing from the manifest", "")
    status = STATUS_UP_TO_DATE if installed == revision.lower() else STATUS_UPDATABLE
    return UpdateDecision(
        name=pkg.name,
        status=status,
        installed=installed,
        available=revision.lower(),
        package=pkg,
    )


def classify(outcome: ResolutionOutcome) -> UpdateDecision:
    """Classify one resolution outcome."""
    pkg = outcome.package
    if outcome.error or outcome.upstream is None:
        installed = pkg.source.revision if pkg.is_git else pkg.version
        return _unknown(pkg, outcome.error or "no upstream information", installed or "")
    upstream = outcome.upstream
    if upstream.kind == KIND_REGISTRY and upstream.version:
        return _classify_registry(pkg, upstream.version)
    if upstream.kind == KIND_GIT and upstream.revision:
        return _classify_git(pkg, upstream.revision)
    return _unknown(pkg, f"unsupported upstream kind {upstream.kind!r}")


def build_plan(
    installed: Mapping[str, InstalledPackage],
    options: RunOptions,
    *,
    resolve: Resolver = resolve_all,
) -> UpdatePlan:
    """Select, resolve and classify ``installed`` into an :class:`UpdatePlan`."""
    candidates, skipped, excluded = select_packages(installed, options)
    outcomes = resolve(candidates, options)
    by_name: Dict[str, UpdateDecision] = {}
    for outcome in outcomes:
        by_name[outcome.name] = classify(outcome)
    decisions = tuple(by_name[name] for name in sorted(by_name))
    plan = UpdatePlan(
        decisions=decisions,
        skipped=tuple(skipped),
        excluded=tuple(excluded),
        interrupted=any(o.error == INTERRUPTED for o in outcomes),
    )
    log_event(
        "plan_built",
        level=logging.DEBUG,
        count=len(decisions),
        status=(
            f"updatable={len(plan.updatable)} unknown={len(plan.unknown)} "
            f"current={len(plan.up_to_date)} skipped={len(skipped)}"
        ),
    )
    return plan


def confirm_plan(plan: UpdatePlan, ask: bool, prompt: Callable[[str], bool]) -> bool:
    """Gate execution on one confirmation covering every updatable package.

    Returns True when execution may proceed. With nothing to update the
    prompt is never shown.
    """
    updatable = plan.updatable
    if not updatable:
        return False
    if not ask:
        return True
    names = ", ".join(d.name for d in updatable)
    return prompt(f"Install {len(updatable)} package(s): {names}?")


__all__ = ["select_packages", "classify", "build_plan", "confirm_plan"]
