"""Typed records flowing through discovery, resolution, and planning.

Everything here is an immutable snapshot. Installed packages are read once per
run, upstream information is fetched once per package, and decisions are
derived from the two without mutating either.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .version import Version, parse_version

KIND_REGISTRY = "registry"
KIND_GIT = "git"
KIND_PATH = "path"
KIND_UNKNOWN = "unknown"

STATUS_UP_TO_DATE = "up-to-date"
STATUS_UPDATABLE = "updatable"
STATUS_UNKNOWN = "unknown"


@dataclass(frozen=True)
class GitReference:
    """A tracked git reference: ``branch``, ``tag`` or pinned ``rev``."""

    kind: str
    name: str


@dataclass(frozen=True)
class PackageSource:
    """Where an installed package came from.

    ``protocol`` is the scheme prefix from the package id (``registry``,
    ``sparse``, ``git``, ``path``). ``revision`` and ``reference`` are only
    set for git sources.
    """

    kind: str
    url: str = ""
    protocol: str = ""
    revision: Optional[str] = None
    reference: Optional[GitReference] = None
    raw: str = ""


@dataclass(frozen=True)
class InstalledPackage:
    """One entry of the install manifest."""

    name: str
    version: Optional[str]
    source: PackageSource
    bins: Tuple[str, ...] = ()
    features: Tuple[str, ...] = ()
    all_features: bool = False
    no_default_features: bool = False
    target: Optional[str] = None
    profile: Optional[str] = None

    @property
    def parsed_version(self) -> Optional[Version]:
        return parse_version(self.version)

    @property
    def is_git(self) -> bool:
        return self.source.kind == KIND_GIT


@dataclass(frozen=True)
class UpstreamInfo:
    """Latest registry version or current git revision of one package."""

    name: str
    kind: str
    version: Optional[str] = None
    revision: Optional[str] = None
    prerelease: bool = False


@dataclass(frozen=True)
class ResolutionOutcome:
    """Labeled result of resolving one package: upstream info or an error."""

    package: InstalledPackage
    upstream: Optional[UpstreamInfo] = None
    error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.package.name

    @property
    def ok(self) -> bool:
        return self.upstream is not None and self.error is None


@dataclass(frozen=True)
class UpdateDecision:
    """Classification of one package for list and update modes."""

    name: str
    status: str
    installed: Optional[str] = None
    available: Optional[str] = None
    reason: Optional[str] = None
    package: Optional[InstalledPackage] = field(default=None, compare=False)

    @property
    def is_updatable(self) -> bool:
        return self.status == STATUS_UPDATABLE


@dataclass(frozen=True)
class UpdatePlan:
    """Decisions in name order plus the packages left out of resolution."""

    decisions: Tuple[UpdateDecision, ...]
    skipped: Tuple[str, ...] = ()
    excluded: Tuple[str, ...] = ()
    interrupted: bool = False

    def _with_status(self, status: str) -> List[UpdateDecision]:
        return [d for d in self.decisions if d.status == status]

    @property
    def updatable(self) -> List[UpdateDecision]:
        return self._with_status(STATUS_UPDATABLE)

    @property
    def unknown(self) -> List[UpdateDecision]:
        return self._with_status(STATUS_UNKNOWN)

    @property
    def up_to_date(self) -> List[UpdateDecision]:
        return self._with_status(STATUS_UP_TO_DATE)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one ``cargo install`` invocation."""

    name: str
    success: bool
    returncode: Optional[int] = None
    error: Optional[str] = None


__all__ = [
    "KIND_REGISTRY",
    "KIND_GIT",
    "KIND_PATH",
    "KIND_UNKNOWN",
    "STATUS_UP_TO_DATE",
    "STATUS_UPDATABLE",
    "STATUS_UNKNOWN",
    "GitReference",
    "PackageSource",
    "InstalledPackage",
    "UpstreamInfo",
    "ResolutionOutcome",
    "UpdateDecision",
    "UpdatePlan",
    "ExecutionResult",
]
