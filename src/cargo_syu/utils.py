"""Utility helpers for cargo-syu.

Small, dependency-free helpers used across the tool:
 - Version discovery for the installed/package build
 - Lightweight HTTP text fetch with short timeouts
 - ``git ls-remote`` wrapper for resolving remote references

Helpers return ``(value, error)`` pairs instead of raising, so callers decide
whether a failure is fatal or scoped to one package.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import urllib.error
import urllib.request
from pathlib import Path
from typing import List, Optional, Tuple

try:  # pragma: no cover
    from importlib.metadata import PackageNotFoundError, version as pkg_version
except Exception:  # pragma: no cover
    PackageNotFoundError = Exception  # type: ignore

    def pkg_version(_: str) -> str:  # type: ignore
        raise PackageNotFoundError


def get_version() -> str:
    """Return the tool version string.

    Lookup order (first match wins):
    1) ``importlib.metadata.version('cargo-syu')`` (installed package)
    2) ``project.version`` from ``pyproject.toml`` (source checkout)
    3) Fallback string ``"0.0.0+unknown"``
    """
    try:
        return pkg_version("cargo-syu")
    except Exception:
        pass

    pyproj = Path(__file__).resolve().parents[2] / "pyproject.toml"
    if pyproj.exists():
        try:
            import tomllib

            data = tomllib.loads(pyproj.read_text(encoding="utf-8"))
            ver = (data.get("project") or {}).get("version")
            if isinstance(ver, str) and ver:
                return ver
        except Exception:
            pass

    return "0.0.0+unknown"


def http_get_text(
    url: str, timeout: float = 10.0
) -> Tuple[Optional[str], Optional[str]]:
    """Fetch a small text document.

    Returns ``(text, None)`` on success, or ``(None, error)`` where ``error``
    is a short message such as ``"HTTP 404: Not Found"`` or ``"timed out"``.
    """
    req = urllib.request.Request(
        url, headers={"User-Agent": f"cargo-syu/{get_version()}"}
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.read().decode("utf-8", errors="replace"), None
    except urllib.error.HTTPError as e:
        return None, f"HTTP {e.code}: {e.reason}"
    except urllib.error.URLError as e:
        if isinstance(e.reason, TimeoutError):
            return None, f"timed out after {timeout:g}s"
        return None, f"network failure: {e.reason}"
    except TimeoutError:
        return None, f"timed out after {timeout:g}s"
    except OSError as e:
        return None, f"network failure: {e}"


def git_ls_remote(
    url: str, patterns: List[str], timeout: float = 10.0
) -> Tuple[Optional[List[Tuple[str, str]]], Optional[str]]:
    """Run ``git ls-remote`` and return ``[(revision, ref), ...]``.

    Returns ``(None, error)`` when git is missing, exits non-zero, or does not
    finish within ``timeout`` seconds.
    """
    git = shutil.which("git")
    if not git:
        return None, "git executable not found"
    cmd = [git, "ls-remote", url, *patterns]
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=_git_env(),
        )
    except subprocess.TimeoutExpired:
        return None, f"git ls-remote timed out after {timeout:g}s"
    except OSError as e:
        return None, f"git ls-remote failed: {e}"
    if proc.returncode != 0:
        detail = (proc.stderr or "").strip().splitlines()
        return None, detail[-1] if detail else f"git ls-remote exited {proc.returncode}"
    refs: List[Tuple[str, str]] = []
    for line in proc.stdout.splitlines():
        rev, _, ref = line.partition("\t")
        if rev and ref:
            refs.append((rev.strip().lower(), ref.strip()))
    return refs, None


def _git_env() -> dict:
    env = dict(os.environ)
    # Never block on a credential prompt
    env.setdefault("GIT_TERMINAL_PROMPT", "0")
    return env


__all__ = [
    "get_version",
    "http_get_text",
    "git_ls_remote",
    "pkg_version",
]
