"""Install manifest reader.

Cargo tracks ``cargo install`` results in two files under the install root:

- ``.crates.toml``: a ``[v1]`` table mapping package ids to binary names.
- ``.crates2.json``: ``{"installs": {<package id>: {...}}}`` with the install
  metadata (features, target, profile, binaries).

A package id looks like ``ripgrep 14.1.0 (registry+https://...)``. Both files
are read when present; the JSON record only adds metadata. A structurally
broken manifest raises :class:`ManifestError` and aborts the run. Individual
records may lack a version or a recognised source; those are kept and
classified later instead of failing the read.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs, urlsplit, urlunsplit

from .defaults import CRATES2_JSON, CRATES_TOML
from .errors import ManifestError
from .logging_utils import log_event
from .models import (
    KIND_GIT,
    KIND_PATH,
    KIND_REGISTRY,
    KIND_UNKNOWN,
    GitReference,
    InstalledPackage,
    PackageSource,
)

logger = logging.getLogger(__name__)

_REGISTRY_PROTOCOLS = ("registry", "sparse")


def parse_source(text: str) -> PackageSource:
    """Parse the ``kind+url`` part of a package id (without parentheses)."""
    raw = text.strip()
    protocol, sep, url = raw.partition("+")
    if not sep or not url:
        return PackageSource(KIND_UNKNOWN, raw=raw)
    if protocol in _REGISTRY_PROTOCOLS:
        return PackageSource(KIND_REGISTRY, url=url, protocol=protocol, raw=raw)
    if protocol == "path":
        return PackageSource(KIND_PATH, url=url, protocol=protocol, raw=raw)
    if protocol == "git":
        return _parse_git_source(url, raw)
    return PackageSource(KIND_UNKNOWN, url=url, protocol=protocol, raw=raw)


def _parse_git_source(url: str, raw: str) -> PackageSource:
    parts = urlsplit(url)
    revision = parts.fragment.strip() or None
    reference = None
    query = parse_qs(parts.query)
    for kind in ("branch", "tag", "rev"):
        values = query.get(kind)
        if values and values[0]:
            reference = GitReference(kind, values[0])
            break
    clean = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return PackageSource(
        KIND_GIT,
        url=clean,
        protocol="git",
        revision=revision.lower() if revision else None,
        reference=reference,
        raw=raw,
    )


def parse_package_id(text: str) -> Tuple[str, Optional[str], PackageSource]:
    """Split a package id into ``(name, version, source)``.

    Tolerates a missing version and a missing or unrecognised source. Raises
    :class:`ManifestError` when no package name can be found.
    """
    value = (text or "").strip()
    if not value:
        raise ManifestError("Empty package id in install manifest")
    name, _, remainder = value.partition(" ")
    if not name or name.startswith("("):
        raise ManifestError(f"Missing package name in id {text!r}")
    remainder = remainder.strip()
    version: Optional[str] = None
    source_text = ""
    if remainder.startswith("("):
        source_text = remainder
    elif remainder:
        version, _, source_text = remainder.partition(" ")
        source_text = source_text.strip()
    if source_text.startswith("(") and source_text.endswith(")"):
        source = parse_source(source_text[1:-1])
    elif source_text:
        logger.debug("Source of %s is not parenthesised: %r", name, source_text)
        source = PackageSource(KIND_UNKNOWN, raw=source_text)
    else:
        source = PackageSource(KIND_UNKNOWN)
    return name, (version or None), source


def _string_list(value: object) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value if isinstance(v, str))


def _load_crates_toml(path: Path) -> Dict[str, dict]:
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ManifestError(f"Cannot read {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Invalid TOML in {path}: {exc}") from exc
    if "v1" not in data:
        raise ManifestError(f"Key `v1` not found in {path}")
    table = data["v1"]
    if not isinstance(table, dict):
        raise ManifestError(f"Key `v1` in {path} is not a table")
    return {pkg_id: {"bins": bins} for pkg_id, bins in table.items()}


def _load_crates2_json(path: Path) -> Dict[str, dict]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{path} does not contain a JSON object")
    installs = data.get("installs", {})
    if not isinstance(installs, dict):
        raise ManifestError(f"Key `installs` in {path} is not an object")
    records: Dict[str, dict] = {}
    for pkg_id, meta in installs.items():
        records[pkg_id] = meta if isinstance(meta, dict) else {}
    return records


def _index_by_name(records: Dict[str, dict], origin: Path) -> Dict[str, Tuple[str, dict]]:
    by_name: Dict[str, Tuple[str, dict]] = {}
    for pkg_id, meta in records.items():
        name, _, _ = parse_package_id(pkg_id)
        if name in by_name:
            raise ManifestError(f"Package {name!r} listed twice in {origin}")
        by_name[name] = (pkg_id, meta)
    return by_name


def _build_package(pkg_id: str, meta: dict, extra: dict) -> InstalledPackage:
    name, version, source = parse_package_id(pkg_id)
    bins = _string_list(extra.get("bins")) or _string_list(meta.get("bins"))
    target = extra.get("target")
    profile = extra.get("profile")
    return InstalledPackage(
        name=name,
        version=version,
        source=source,
        bins=bins,
        features=_string_list(extra.get("features")),
        all_features=bool(extra.get("all_features", False)),
        no_default_features=bool(extra.get("no_default_features", False)),
        target=target if isinstance(target, str) and target else None,
        profile=profile if isinstance(profile, str) and profile else None,
    )


def read_manifest(root: Path) -> Dict[str, InstalledPackage]:
    """Read the install manifest(s) in ``root``.

    Returns a mapping from package name to :class:`InstalledPackage`. Raises
    :class:`ManifestError` on unreadable or malformed files, or when neither
    manifest file exists.
    """
    toml_path = root / CRATES_TOML
    json_path = root / CRATES2_JSON
    if not toml_path.is_file() and not json_path.is_file():
        raise ManifestError(f"No install manifest found in {root}")

    primary: Dict[str, Tuple[str, dict]] = {}
    metadata: Dict[str, Tuple[str, dict]] = {}
    if toml_path.is_file():
        primary = _index_by_name(_load_crates_toml(toml_path), toml_path)
    if json_path.is_file():
        metadata = _index_by_name(_load_crates2_json(json_path), json_path)

    packages: Dict[str, InstalledPackage] = {}
    for name in sorted(set(primary) | set(metadata)):
        pkg_id, meta = primary.get(name) or metadata[name]
        _, extra = metadata.get(name, ("", {}))
        packages[name] = _build_package(pkg_id, meta, extra)

    log_event("manifest_loaded", path=str(root), count=len(packages))
    return packages


__all__ = ["parse_source", "parse_package_id", "read_manifest"]
