import pytest


@pytest.fixture
def install_root(tmp_path):
    """An install root with an empty ``.crates.toml``."""
    root = tmp_path / "cargo"
    (root / "bin").mkdir(parents=True)
    (root / ".crates.toml").write_text("[v1]\n", encoding="utf-8")
    return root
