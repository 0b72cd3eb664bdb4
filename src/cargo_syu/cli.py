"""Command-line entry point.

Flow: parse arguments, configure logging, locate the install root, read the
manifest, build the plan, report it, then (unless listing only) confirm and
run the installs.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, List, Optional

from . import executor, planner
from .args import parse_args
from .errors import ConfigError, ExecutionError, ManifestError
from .locate import locate_install_root
from .logging_utils import configure_logging, log_event
from .manifest import read_manifest
from .options import options_from_args
from .prompts import prompt_yes_no
from .report import print_report, report_execution
from .ui import err, info, warn
from .utils import get_version

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def run(
    argv: Optional[List[str]] = None,
    *,
    prompt: Callable[[str], bool] = prompt_yes_no,
) -> int:
    """Run cargo-syu and return the process exit code."""
    args = parse_args(argv)
    if args.version:
        print(get_version())
        return EXIT_OK
    configure_logging(args.verbose, args.log_file, args.log_json, args.log_level)
    options = options_from_args(args)

    try:
        root = locate_install_root(options.root)
        installed = read_manifest(root)
    except (ConfigError, ManifestError) as exc:
        log_event("run_aborted", level=logging.ERROR, error=str(exc))
        err(str(exc))
        return EXIT_FAILURE

    plan = planner.build_plan(installed, options)
    print_report(plan)
    if plan.interrupted:
        return EXIT_INTERRUPTED
    if options.list_only:
        return EXIT_OK

    try:
        proceed = planner.confirm_plan(plan, options.ask, prompt)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    if not proceed:
        if plan.updatable:
            info("Nothing installed.")
        return EXIT_OK

    try:
        results = executor.run_updates(
            plan,
            options,
            root,
            on_start=lambda d: info(f"Updating {d.name} ({d.installed} -> {d.available})"),
        )
    except KeyboardInterrupt:
        warn("Interrupted; remaining installs were not started.")
        return EXIT_INTERRUPTED
    except ExecutionError as exc:
        log_event("run_aborted", level=logging.ERROR, error=str(exc))
        err(str(exc))
        return EXIT_FAILURE
    report_execution(results)
    if any(not r.success for r in results):
        return EXIT_FAILURE
    return EXIT_OK


def main() -> None:
    """Console entrypoint."""
    sys.exit(run())


__all__ = ["run", "main"]
