import json
from pathlib import Path

from cargo_syu.models import (
    KIND_GIT,
    KIND_REGISTRY,
    GitReference,
    InstalledPackage,
    PackageSource,
)

CRATES_IO = "https://github.com/rust-lang/crates.io-index"


def registry_pkg(name, version, url=CRATES_IO, protocol="registry", **kw):
    source = PackageSource(KIND_REGISTRY, url=url, protocol=protocol, raw=f"{protocol}+{url}")
    return InstalledPackage(name=name, version=version, source=source, **kw)


def git_pkg(name, revision, url="https://github.com/example/tool", reference=None, **kw):
    source = PackageSource(
        KIND_GIT,
        url=url,
        protocol="git",
        revision=revision,
        reference=GitReference(*reference) if reference else None,
        raw=f"git+{url}#{revision}",
    )
    return InstalledPackage(name=name, version="0.1.0", source=source, **kw)


def write_crates_toml(root: Path, entries: dict) -> Path:
    lines = ["[v1]"]
    for pkg_id, bins in entries.items():
        quoted = ", ".join(json.dumps(b) for b in bins)
        lines.append(f"{json.dumps(pkg_id)} = [{quoted}]")
    path = root / ".crates.toml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def write_crates2_json(root: Path, installs: dict) -> Path:
    path = root / ".crates2.json"
    path.write_text(json.dumps({"installs": installs}), encoding="utf-8")
    return path
