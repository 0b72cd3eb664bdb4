"""Install-root discovery.

Finds the directory holding installed binaries and the install manifest,
following the same precedence cargo uses for ``cargo install``:

1. an explicit override (``--root``)
2. ``CARGO_INSTALL_ROOT``
3. ``install.root`` from ``$CARGO_HOME/config.toml``
4. ``$CARGO_HOME`` itself (``~/.cargo`` by default)

Only reads the filesystem; never creates anything.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Mapping, Optional

from .defaults import CARGO_CONFIG_NAMES, CRATES2_JSON, CRATES_TOML
from .errors import ConfigError
from .logging_utils import log_event

logger = logging.getLogger(__name__)


def find_cargo_home(
    environ: Optional[Mapping[str, str]] = None, home: Optional[Path] = None
) -> Path:
    """Return ``$CARGO_HOME`` or ``~/.cargo``."""
    env = os.environ if environ is None else environ
    value = (env.get("CARGO_HOME") or "").strip()
    if value:
        return Path(value).expanduser()
    return (home or Path.home()) / ".cargo"


def read_cargo_config(cargo_home: Path) -> dict:
    """Parse the cargo config file under ``cargo_home``.

    Returns an empty dict when no config file exists. Raises
    :class:`ConfigError` when the file exists but is not valid TOML.
    """
    for name in CARGO_CONFIG_NAMES:
        path = cargo_home / name
        if not path.is_file():
            continue
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Cannot read cargo config {path}: {exc}") from exc
        logger.debug("Loaded cargo config from %s", path)
        return data
    return {}


def _configured_root(config: dict, cargo_home: Path) -> Optional[Path]:
    install = config.get("install")
    if install is None:
        return None
    if not isinstance(install, dict):
        raise ConfigError("Cargo config key `install` is not a table")
    root = install.get("root")
    if root is None:
        return None
    if not isinstance(root, str) or not root.strip():
        raise ConfigError("Cargo config key `install.root` must be a non-empty string")
    path = Path(root).expanduser()
    if not path.is_absolute():
        # Relative to the directory that contains the .cargo directory
        path = cargo_home.parent / path
    return path


def locate_install_root(
    override: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Resolve and validate the install root.

    Parameters
    - ``override``: Explicit root (wins over everything else).
    - ``environ``: Environment mapping; defaults to ``os.environ``.
    - ``home``: User home directory, used for the ``~/.cargo`` default.

    Raises :class:`ConfigError` when the root does not exist, is unreadable,
    or contains no install manifest.
    """
    env = os.environ if environ is None else environ
    cargo_home = find_cargo_home(env, home)
    origin = "override"
    root: Optional[Path] = Path(override).expanduser() if override else None
    if root is None:
        value = (env.get("CARGO_INSTALL_ROOT") or "").strip()
        if value:
            root = Path(value).expanduser()
            origin = "environment"
    if root is None:
        root = _configured_root(read_cargo_config(cargo_home), cargo_home)
        origin = "config"
    if root is None:
        root = cargo_home
        origin = "default"

    root = root.resolve()
    if not root.is_dir():
        raise ConfigError(f"Install root {root} ({origin}) is not a directory")
    if not os.access(root, os.R_OK | os.X_OK):
        raise ConfigError(f"Install root {root} ({origin}) is not readable")
    if not (root / CRATES_TOML).is_file() and not (root / CRATES2_JSON).is_file():
        raise ConfigError(
            f"No {CRATES_TOML} or {CRATES2_JSON} found in install root {root}"
        )
    log_event("install_root_located", level=logging.DEBUG, path=str(root), origin=origin)
    return root


__all__ = ["find_cargo_home", "read_cargo_config", "locate_install_root"]
