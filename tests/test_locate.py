import json
import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from cargo_syu.errors import ConfigError
from cargo_syu.locate import find_cargo_home, locate_install_root, read_cargo_config


def _make_root(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    (path / ".crates.toml").write_text("[v1]\n", encoding="utf-8")
    return path


class LocateInstallRootTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.home = self.tmp / "home"
        self.cargo_home = _make_root(self.home / ".cargo")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_default_is_cargo_home(self) -> None:
        root = locate_install_root(environ={}, home=self.home)
        self.assertEqual(root, self.cargo_home.resolve())

    def test_cargo_home_env(self) -> None:
        custom = _make_root(self.tmp / "custom-cargo")
        root = locate_install_root(environ={"CARGO_HOME": str(custom)}, home=self.home)
        self.assertEqual(root, custom.resolve())

    def test_config_install_root_relative_to_home(self) -> None:
        _make_root(self.home / "tools")
        (self.cargo_home / "config.toml").write_text(
            '[install]\nroot = "tools"\n', encoding="utf-8"
        )
        root = locate_install_root(environ={}, home=self.home)
        self.assertEqual(root, (self.home / "tools").resolve())

    def test_config_install_root_absolute(self) -> None:
        target = _make_root(self.tmp / "abs-root")
        (self.cargo_home / "config.toml").write_text(
            f"[install]\nroot = {json.dumps(str(target))}\n", encoding="utf-8"
        )
        root = locate_install_root(environ={}, home=self.home)
        self.assertEqual(root, target.resolve())

    def test_environment_beats_config(self) -> None:
        from_env = _make_root(self.tmp / "env-root")
        _make_root(self.home / "tools")
        (self.cargo_home / "config.toml").write_text(
            '[install]\nroot = "tools"\n', encoding="utf-8"
        )
        root = locate_install_root(
            environ={"CARGO_INSTALL_ROOT": str(from_env)}, home=self.home
        )
        self.assertEqual(root, from_env.resolve())

    def test_override_beats_environment(self) -> None:
        override = _make_root(self.tmp / "override")
        from_env = _make_root(self.tmp / "env-root")
        root = locate_install_root(
            override, environ={"CARGO_INSTALL_ROOT": str(from_env)}, home=self.home
        )
        self.assertEqual(root, override.resolve())

    def test_missing_root_is_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            locate_install_root(self.tmp / "nope", environ={}, home=self.home)

    def test_root_without_manifest_is_config_error(self) -> None:
        empty = self.tmp / "empty"
        empty.mkdir()
        with self.assertRaises(ConfigError) as ctx:
            locate_install_root(empty, environ={}, home=self.home)
        self.assertIn(".crates.toml", str(ctx.exception))

    def test_crates2_json_alone_is_enough(self) -> None:
        only_json = self.tmp / "json-only"
        only_json.mkdir()
        (only_json / ".crates2.json").write_text('{"installs": {}}', encoding="utf-8")
        self.assertEqual(
            locate_install_root(only_json, environ={}, home=self.home),
            only_json.resolve(),
        )

    def test_invalid_config_toml(self) -> None:
        (self.cargo_home / "config.toml").write_text("[install\n", encoding="utf-8")
        with self.assertRaises(ConfigError):
            locate_install_root(environ={}, home=self.home)

    def test_install_root_must_be_string(self) -> None:
        (self.cargo_home / "config.toml").write_text(
            "[install]\nroot = 3\n", encoding="utf-8"
        )
        with self.assertRaises(ConfigError):
            locate_install_root(environ={}, home=self.home)


def test_find_cargo_home_defaults_to_dot_cargo(tmp_path):
    assert find_cargo_home({}, tmp_path) == tmp_path / ".cargo"
    assert find_cargo_home({"CARGO_HOME": str(tmp_path / "x")}, tmp_path) == tmp_path / "x"


def test_read_cargo_config_legacy_name(tmp_path):
    (tmp_path / "config").write_text('[install]\nroot = "r"\n', encoding="utf-8")
    assert read_cargo_config(tmp_path) == {"install": {"root": "r"}}
    assert read_cargo_config(tmp_path / "missing") == {}


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
def test_unreadable_root(tmp_path):
    root = _make_root(tmp_path / "locked")
    root.chmod(0)
    try:
        with pytest.raises(ConfigError):
            locate_install_root(root, environ={}, home=tmp_path)
    finally:
        root.chmod(0o755)
