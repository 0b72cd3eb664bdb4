"""Human-readable reporting of plans and installation results."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .defaults import REVISION_WIDTH
from .logging_utils import log_event
from .models import (
    KIND_GIT,
    STATUS_UNKNOWN,
    STATUS_UPDATABLE,
    ExecutionResult,
    UpdateDecision,
    UpdatePlan,
)
from .ui import BOLD, CYAN, GRAY, GREEN, YELLOW, c, err, info, ok, warn

_STATUS_LABELS = {
    STATUS_UPDATABLE: "Update",
    STATUS_UNKNOWN: "Unknown",
}


def _label_status(status: str) -> str:
    return _STATUS_LABELS.get(status, "Current")


def _style_status(label: str, status: str) -> str:
    if status == STATUS_UPDATABLE:
        return c(label, BOLD + GREEN)
    if status == STATUS_UNKNOWN:
        return c(label, BOLD + YELLOW)
    return c(label, BOLD + GRAY)


def _display_value(value: Optional[str], decision: UpdateDecision) -> str:
    if not value:
        return "-"
    pkg = decision.package
    if pkg is not None and pkg.source.kind == KIND_GIT:
        return value[:REVISION_WIDTH]
    return value


def format_table(plan: UpdatePlan) -> List[str]:
    """Return the report table lines (header first) for ``plan``."""
    rows = [
        (
            d,
            _label_status(d.status),
            _display_value(d.installed, d),
            _display_value(d.available, d),
        )
        for d in plan.decisions
    ]
    name_w = max([7] + [len(d.name) for d in plan.decisions])
    inst_w = max([REVISION_WIDTH] + [len(r[2]) for r in rows])
    avail_w = max([REVISION_WIDTH] + [len(r[3]) for r in rows])
    header = f"{'Status':>12} {'Package':<{name_w}} {'Installed':>{inst_w}} {'Available':>{avail_w}}"
    lines = [c(header, BOLD)]
    for decision, label, installed, available in rows:
        status = _style_status(f"{label:>12}", decision.status)
        avail_text = f"{available:>{avail_w}}"
        if decision.status == STATUS_UPDATABLE:
            avail_text = c(avail_text, BOLD + CYAN)
        lines.append(f"{status} {decision.name:<{name_w}} {installed:>{inst_w}} {avail_text}")
    return lines


def print_report(plan: UpdatePlan) -> None:
    """Print the table followed by Unknown reasons and a summary line."""
    if plan.decisions:
        for line in format_table(plan):
            print(line)
    else:
        info("No packages to check.")

    for decision in plan.unknown:
        warn(f"{decision.name}: {decision.reason}")
        log_event(
            "decision_unknown",
            level=logging.DEBUG,
            package=decision.name,
            error=decision.reason,
        )
    if plan.skipped:
        info(
            f"Skipped {len(plan.skipped)} git package(s): {', '.join(plan.skipped)}"
            " (pass --git to include them)"
        )
    if plan.excluded:
        info(f"Excluded: {', '.join(plan.excluded)}")
    if plan.interrupted:
        warn("Interrupted; results are partial.")
    if not plan.decisions:
        return

    updatable = len(plan.updatable)
    summary = (
        f"{updatable} update(s) available, {len(plan.up_to_date)} current, "
        f"{len(plan.unknown)} unknown."
    )
    if updatable:
        info(summary)
    elif plan.unknown:
        warn(summary)
    else:
        ok("All packages are up to date.")


def report_execution(results: Sequence[ExecutionResult]) -> None:
    """Summarize installation results; failures are listed individually."""
    failed = [r for r in results if not r.success]
    succeeded = len(results) - len(failed)
    for result in failed:
        err(f"{result.name}: {result.error}")
    if failed:
        warn(f"Updated {succeeded} package(s); {len(failed)} failed.")
    elif results:
        ok(f"Updated {succeeded} package(s).")


__all__ = ["format_table", "print_report", "report_execution"]
