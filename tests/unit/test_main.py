"""Unit tests for the command-line entrypoint and its exit codes."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from archsway_installer import __version__
from archsway_installer import main as main_mod
from archsway_installer import parameters as params_mod
from archsway_installer.errors import TaskError
from archsway_installer.lib.env import ExecutionContext
from archsway_installer.main import main
from archsway_installer.parameters import Parameters, save_parameters
from archsway_installer.pipeline import StageBoundary, TaskRunner
from archsway_installer.state_store import ProgressStore


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, context: ExecutionContext, parameters: Parameters) -> None:
    monkeypatch.setattr(main_mod, "current_context", lambda: context)
    monkeypatch.setattr(main_mod, "configure_logging", lambda log_path: log_path)
    save_parameters(context.parameters_file, parameters)


def _use_list(monkeypatch: pytest.MonkeyPatch, attr: str, tasks) -> None:
    monkeypatch.setattr(main_mod, attr, lambda parameters, store: TaskRunner(store, tasks))


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"v{__version__}"


def test_version_alias(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["v"]) == 0
    assert __version__ in capsys.readouterr().out


def test_missing_flag_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 2
    assert "missing flag" in capsys.readouterr().out


def test_unknown_flag_exits_with_usage() -> None:
    with pytest.raises(SystemExit) as exc:
        main(["frobnicate"])
    assert exc.value.code == 2


def test_list_prints_task_names(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["l"]) == 0

    out = capsys.readouterr().out
    assert "▒▒ create_partitions" in out
    assert "▒▒ user_stage_completed" in out


def test_install_completed(monkeypatch: pytest.MonkeyPatch, store: ProgressStore, task, journal: List[str]) -> None:
    _use_list(monkeypatch, "installation_list", [task("a"), task("b")])

    assert main(["install"]) == 0
    assert journal == ["a", "b"]
    assert store.load() == "b"


def test_install_failure_exit_code(monkeypatch: pytest.MonkeyPatch, task) -> None:
    _use_list(monkeypatch, "installation_list", [task("a", fail="pacman exploded")])

    assert main(["i"]) == 1


def test_install_stage_boundary_exits_zero(
    monkeypatch: pytest.MonkeyPatch, tmp_path, task, journal: List[str]
) -> None:
    target = ExecutionContext(chroot=str(tmp_path / "mnt"), user="root")
    _use_list(monkeypatch, "installation_list", [task("a", signal=StageBoundary(target)), task("b")])

    assert main(["install"]) == 0
    assert journal == ["a"]
    assert ProgressStore(target).load() == "a"


def test_start_from(monkeypatch: pytest.MonkeyPatch, task, journal: List[str]) -> None:
    _use_list(monkeypatch, "installation_list", [task("a"), task("b"), task("c")])

    assert main(["start-from", "a"]) == 0
    assert journal == ["b", "c"]


def test_start_from_unknown_task(monkeypatch: pytest.MonkeyPatch, task, journal: List[str]) -> None:
    _use_list(monkeypatch, "installation_list", [task("a")])

    assert main(["t", "zzz"]) == 1
    assert journal == []


def test_clear_progress(store: ProgressStore) -> None:
    store.save("a")

    assert main(["c"]) == 0
    assert store.load() is None


def test_sync_ignores_installation_progress(
    monkeypatch: pytest.MonkeyPatch, store: ProgressStore, task, journal: List[str]
) -> None:
    store.save("install_stage_completed")
    _use_list(monkeypatch, "sync_list", [task("vars"), task("sway")])

    assert main(["sync"]) == 0
    assert journal == ["vars", "sway"]


def test_qemu_ignores_installation_progress(
    monkeypatch: pytest.MonkeyPatch, store: ProgressStore, task, journal: List[str]
) -> None:
    store.save("user_stage_completed")
    _use_list(monkeypatch, "qemu_list", [task("setup_qemu_kvm")])

    assert main(["q"]) == 0
    assert journal == ["setup_qemu_kvm"]


def test_media_errors_map_to_exit_code() -> None:
    assert main(["format-dev", "/dev/sdb", "not-an-arch.iso"]) == 1


def test_steam_rejects_unknown_vga() -> None:
    with pytest.raises(SystemExit):
        main(["steam", "matrox"])


def test_steam_dry_run(monkeypatch: pytest.MonkeyPatch) -> None:
    installed: List[str] = []
    monkeypatch.setattr(main_mod, "install_steam", lambda vga, dry_run: installed.append(vga))

    assert main(["--dry-run", "e", "intel"]) == 0
    assert installed == ["intel"]


def test_install_parameter_collection_failure_exit_code(
    monkeypatch: pytest.MonkeyPatch, context: ExecutionContext, task, journal: List[str]
) -> None:
    def no_devices(**kwargs):
        raise TaskError("no block devices found")

    Path(context.parameters_file).unlink()
    monkeypatch.setattr(params_mod, "request_user_parameters", no_devices)
    _use_list(monkeypatch, "installation_list", [task("a")])

    assert main(["install"]) == 1
    assert journal == []


def test_install_parameter_save_failure_exit_code(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, parameters: Parameters, task, journal: List[str]
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setattr(main_mod, "current_context", lambda: ExecutionContext(chroot=str(blocker), user="root"))
    monkeypatch.setattr(params_mod, "request_user_parameters", lambda **kwargs: parameters)
    _use_list(monkeypatch, "installation_list", [task("a")])

    assert main(["install"]) == 1
    assert journal == []


def test_list_failure_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(parameters, store):
        raise TaskError("unable to determine current user")

    monkeypatch.setattr(main_mod, "installation_list", broken)

    assert main(["list"]) == 1
