"""cargo-syu: list and update binary crates installed with ``cargo install``.

The public surface re-exports the discovery and planning engine so callers can
use it without the CLI.
"""

from __future__ import annotations

from .errors import ConfigError, ExecutionError, ManifestError, ResolutionError, SyuError
from .locate import locate_install_root
from .manifest import read_manifest
from .options import RunOptions
from .planner import build_plan, classify
from .resolver import resolve_all, resolve_package
from .version import Version

__all__ = [
    "SyuError",
    "ConfigError",
    "ManifestError",
    "ResolutionError",
    "ExecutionError",
    "locate_install_root",
    "read_manifest",
    "RunOptions",
    "build_plan",
    "classify",
    "resolve_all",
    "resolve_package",
    "Version",
]
