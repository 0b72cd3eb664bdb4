"""Well-known locations, file names and defaults."""

from __future__ import annotations

from typing import Dict

CRATES_IO_GIT_INDEX = "https://github.com/rust-lang/crates.io-index"
CRATES_IO_SPARSE_INDEX = "https://index.crates.io/"

CRATES_TOML = ".crates.toml"
CRATES2_JSON = ".crates2.json"
LOCK_FILE = ".cargo-syu.lock"

CARGO_CONFIG_NAMES = ("config.toml", "config")

DEFAULT_TIMEOUT = 10.0
DEFAULT_FETCH_JOBS = 8
REVISION_WIDTH = 9

# Maps the manifest's git query keys to ``cargo install`` flags
GIT_REFERENCE_FLAGS: Dict[str, str] = {
    "branch": "--branch",
    "tag": "--tag",
    "rev": "--rev",
}

__all__ = [
    "CRATES_IO_GIT_INDEX",
    "CRATES_IO_SPARSE_INDEX",
    "CRATES_TOML",
    "CRATES2_JSON",
    "LOCK_FILE",
    "CARGO_CONFIG_NAMES",
    "DEFAULT_TIMEOUT",
    "DEFAULT_FETCH_JOBS",
    "REVISION_WIDTH",
    "GIT_REFERENCE_FLAGS",
]
