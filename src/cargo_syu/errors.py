"""Error taxonomy for cargo-syu.

``ConfigError`` and ``ManifestError`` are fatal and abort a run before any
package work happens. ``ResolutionError`` and ``ExecutionError`` are scoped to
a single package: callers record them next to the package they belong to and
keep going.
"""

from __future__ import annotations

from typing import Optional


class SyuError(Exception):
    """Base class for all errors raised by cargo-syu."""


class ConfigError(SyuError):
    """The install root cannot be located or is not usable."""


class ManifestError(SyuError):
    """The install-tracking manifest is unreadable or malformed."""


class ResolutionError(SyuError):
    """Latest version or revision of one package could not be determined."""

    def __init__(self, message: str, *, package: Optional[str] = None) -> None:
        super().__init__(message)
        self.package = package


class ExecutionError(SyuError):
    """``cargo install`` failed for one package."""

    def __init__(
        self,
        message: str,
        *,
        package: Optional[str] = None,
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.package = package
        self.returncode = returncode


__all__ = [
    "SyuError",
    "ConfigError",
    "ManifestError",
    "ResolutionError",
    "ExecutionError",
]
