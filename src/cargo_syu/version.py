"""Semantic version parsing and comparison.

Implements SemVer 2.0.0 precedence: numeric core first, a pre-release sorts
below its release, pre-release identifiers compare numerically when both are
numeric and lexically otherwise (numeric below alphanumeric), and build
metadata never affects precedence. Cargo versions are strict semver, so
inputs such as ``v1.2`` are rejected rather than guessed at.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from itertools import zip_longest
from typing import Iterable, Optional, Tuple, Union

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

Identifier = Union[int, str]


@total_ordering
@dataclass(frozen=True)
class Version:
    """A parsed semantic version."""

    major: int
    minor: int
    patch: int
    pre: Tuple[Identifier, ...] = ()
    build: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``text`` into a :class:`Version`.

        Raises ``ValueError`` when ``text`` is not a valid semantic version.
        """
        value = (text or "").strip()
        m = _SEMVER_RE.match(value)
        if not m:
            raise ValueError(f"invalid semantic version: {text!r}")
        major, minor, patch, pre, build = m.groups()
        pre_parts: Tuple[Identifier, ...] = ()
        if pre:
            pre_parts = tuple(_parse_identifier(chunk) for chunk in pre.split("."))
        build_parts = tuple(build.split(".")) if build else ()
        return cls(int(major), int(minor), int(patch), pre_parts, build_parts)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def same_as(self, other: "Version") -> bool:
        """Exact identity, build metadata included."""
        return self == other and self.build == other.build

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return _compare(self, other) < 0

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += "-" + ".".join(str(p) for p in self.pre)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def _parse_identifier(chunk: str) -> Identifier:
    if chunk.isdigit():
        if len(chunk) > 1 and chunk.startswith("0"):
            raise ValueError(f"numeric identifier with leading zero: {chunk!r}")
        return int(chunk)
    return chunk


def parse_version(text: Optional[str]) -> Optional[Version]:
    """Return a :class:`Version` or ``None`` when ``text`` is empty/invalid."""
    if not text:
        return None
    try:
        return Version.parse(text)
    except ValueError:
        return None


def is_version_newer(current: str, candidate: str) -> bool:
    """Return True if ``candidate`` has strictly higher precedence.

    An invalid candidate is never newer; an invalid current version is older
    than any valid candidate.
    """
    cand = parse_version(candidate)
    if cand is None:
        return False
    cur = parse_version(current)
    if cur is None:
        return True
    return cur < cand


def select_latest(
    candidates: Iterable[Version], *, allow_prerelease: bool = False
) -> Optional[Version]:
    """Return the highest version in ``candidates``.

    Pre-releases are skipped unless ``allow_prerelease`` is set. Returns
    ``None`` when nothing qualifies.
    """
    best: Optional[Version] = None
    for vers in candidates:
        if vers.is_prerelease and not allow_prerelease:
            continue
        if best is None or best < vers:
            best = vers
    return best


def _compare(a: Version, b: Version) -> int:
    core_a = (a.major, a.minor, a.patch)
    core_b = (b.major, b.minor, b.patch)
    if core_a != core_b:
        return -1 if core_a < core_b else 1
    if a.pre == b.pre:
        return 0
    # A release outranks any of its pre-releases
    if not a.pre:
        return 1
    if not b.pre:
        return -1
    for left, right in zip_longest(a.pre, b.pre):
        if left is None:
            return -1
        if right is None:
            return 1
        if left == right:
            continue
        if isinstance(left, int) and isinstance(right, int):
            return -1 if left < right else 1
        if isinstance(left, int):
            return -1
        if isinstance(right, int):
            return 1
        return -1 if left < right else 1
    return 0


__all__ = ["Version", "parse_version", "is_version_newer", "select_latest"]
