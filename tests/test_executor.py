import os
import subprocess
import threading
import time
from pathlib import Path

import pytest

from cargo_syu import executor
from cargo_syu.errors import ExecutionError
from cargo_syu.models import (
    STATUS_UP_TO_DATE,
    STATUS_UPDATABLE,
    UpdateDecision,
    UpdatePlan,
)
from cargo_syu.options import RunOptions

from helpers import git_pkg, registry_pkg


def _decision(pkg, available="1.3.0", status=STATUS_UPDATABLE):
    return UpdateDecision(
        name=pkg.name,
        status=status,
        installed=pkg.version,
        available=available,
        package=pkg,
    )


class FakeRunner:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.commands = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        name = cmd[-3] if "--version" in cmd else cmd[-1]
        return subprocess.CompletedProcess(cmd, 101 if name in self.failing else 0)


def test_registry_command_defaults():
    cmd = executor.build_install_command(_decision(registry_pkg("pkga", "1.2.0")), RunOptions())
    assert cmd == ["cargo", "install", "--locked", "pkga", "--version", "=1.3.0"]


def test_registry_command_with_all_options(tmp_path):
    options = RunOptions(jobs=4, locked=False, verbose=True, root=tmp_path)
    cmd = executor.build_install_command(_decision(registry_pkg("pkga", "1.2.0")), options)
    assert cmd == [
        "cargo",
        "install",
        "--jobs",
        "4",
        "--verbose",
        "--root",
        str(tmp_path),
        "pkga",
        "--version",
        "=1.3.0",
    ]


def test_install_metadata_is_carried_over():
    pkg = registry_pkg(
        "rg",
        "14.0.0",
        features=("pcre2", "simd"),
        no_default_features=True,
        target="x86_64-unknown-linux-musl",
    )
    cmd = executor.build_install_command(_decision(pkg, "14.1.0"), RunOptions())
    assert cmd[:2] == ["cargo", "install"]
    assert "--features" in cmd and cmd[cmd.index("--features") + 1] == "pcre2,simd"
    assert "--no-default-features" in cmd
    assert cmd[cmd.index("--target") + 1] == "x86_64-unknown-linux-musl"
    assert cmd[-3:] == ["rg", "--version", "=14.1.0"]


def test_alternate_sparse_registry_passes_index():
    pkg = registry_pkg("tool", "1.0.0", url="https://my.registry/index/", protocol="sparse")
    cmd = executor.build_install_command(_decision(pkg, "1.1.0"), RunOptions())
    assert cmd[cmd.index("--index") + 1] == "sparse+https://my.registry/index/"


def test_crates_io_sparse_has_no_index_flag():
    pkg = registry_pkg("tool", "1.0.0", url="https://index.crates.io/", protocol="sparse")
    cmd = executor.build_install_command(_decision(pkg, "1.1.0"), RunOptions())
    assert "--index" not in cmd


def test_git_command_without_reference():
    pkg = git_pkg("pkgd", "abc123")
    cmd = executor.build_install_command(_decision(pkg, "def456"), RunOptions())
    assert cmd == [
        "cargo",
        "install",
        "--locked",
        "--git",
        "https://github.com/example/tool",
        "pkgd",
    ]


@pytest.mark.parametrize(
    "reference, flag",
    [(("branch", "dev"), "--branch"), (("tag", "v1.0"), "--tag"), (("rev", "abc"), "--rev")],
)
def test_git_command_keeps_reference(reference, flag):
    pkg = git_pkg("pkgd", "abc123", reference=reference)
    cmd = executor.build_install_command(_decision(pkg, "def456"), RunOptions())
    assert cmd[-3:] == [flag, reference[1], "pkgd"]
    assert "--version" not in cmd


def test_decision_without_package_is_rejected():
    with pytest.raises(ValueError):
        executor.build_install_command(
            UpdateDecision("x", STATUS_UPDATABLE, "1", "2"), RunOptions()
        )


def test_run_updates_isolates_failures(tmp_path):
    plan = UpdatePlan(
        decisions=(
            _decision(registry_pkg("pkga", "1.0.0")),
            _decision(registry_pkg("pkgb", "1.0.0"), "1.0.0", STATUS_UP_TO_DATE),
            _decision(registry_pkg("pkgc", "1.0.0")),
            _decision(git_pkg("pkgd", "abc"), "def"),
        )
    )
    runner = FakeRunner(failing={"pkgc"})
    started = []
    results = executor.run_updates(
        plan, RunOptions(), tmp_path, runner=runner, on_start=lambda d: started.append(d.name)
    )
    assert started == ["pkga", "pkgc", "pkgd"]
    assert [(r.name, r.success) for r in results] == [
        ("pkga", True),
        ("pkgc", False),
        ("pkgd", True),
    ]
    assert results[1].returncode == 101
    assert "101" in results[1].error
    assert len(runner.commands) == 3


def test_run_updates_with_nothing_to_do(tmp_path):
    runner = FakeRunner()
    assert executor.run_updates(UpdatePlan(decisions=()), RunOptions(), tmp_path, runner=runner) == []
    assert runner.commands == []
    assert not (tmp_path / ".cargo-syu.lock").exists()


def test_missing_cargo_is_a_failed_result():
    def runner(cmd, **kwargs):
        raise FileNotFoundError("cargo")

    result = executor.install_one(_decision(registry_pkg("pkga", "1.0.0")), RunOptions(), runner)
    assert not result.success
    assert result.returncode is None
    assert "cannot run cargo" in result.error


def test_install_lock_serializes_holders(tmp_path: Path):
    order = []
    entered = threading.Event()

    def second_holder():
        entered.wait(timeout=2)
        with executor.install_lock(tmp_path):
            order.append("second")

    worker = threading.Thread(target=second_holder)
    worker.start()
    with executor.install_lock(tmp_path) as lock_path:
        entered.set()
        time.sleep(0.2)
        order.append("first")
    worker.join(timeout=5)
    assert order == ["first", "second"]
    assert lock_path == tmp_path / ".cargo-syu.lock"


@pytest.mark.parametrize("profile, expected", [("dev", ["--profile", "dev"]), ("release", [])])
def test_profile_is_carried_over(profile, expected):
    pkg = registry_pkg("pkga", "1.2.0", profile=profile)
    cmd = executor.build_install_command(_decision(pkg), RunOptions())
    assert cmd == ["cargo", "install", "--locked", *expected, "pkga", "--version", "=1.3.0"]


@pytest.mark.skipif(os.name == "nt", reason="open lock files cannot be removed on Windows")
def test_lock_file_removed_on_release(tmp_path):
    with executor.install_lock(tmp_path) as lock_path:
        assert lock_path.exists()
    assert not lock_path.exists()


def test_unusable_lock_file_is_execution_error(tmp_path):
    (tmp_path / ".cargo-syu.lock").mkdir()
    runner = FakeRunner()
    plan = UpdatePlan(decisions=(_decision(registry_pkg("pkga", "1.2.0")),))
    with pytest.raises(ExecutionError, match="Cannot lock install root"):
        executor.run_updates(plan, RunOptions(), tmp_path, runner=runner)
    assert runner.commands == []
