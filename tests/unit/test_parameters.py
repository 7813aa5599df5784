"""Unit tests for installation parameters (YAML persistence, interactive collection)."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest
import yaml

from archsway_installer import parameters as params_mod
from archsway_installer.errors import TaskError
from archsway_installer.parameters import (
    AbortInstall,
    Parameters,
    ask_confirmation,
    load_parameters,
    request_user_parameters,
    save_parameters,
)


def scripted(answers: List[str]) -> Callable[[str], str]:
    it = iter(answers)

    def ask(msg: str) -> str:
        return next(it)

    return ask


def test_yaml_roundtrip(tmp_path: Path, parameters: Parameters) -> None:
    path = tmp_path / "conf" / "parameters.yaml"
    save_parameters(str(path), parameters)

    assert load_parameters(str(path)) == parameters


def test_from_mapping_coerces_types(parameters: Parameters) -> None:
    raw = parameters.to_dict()
    raw["part_num"] = "2"
    raw["user_id"] = 1000

    loaded = Parameters.from_mapping(raw)

    assert loaded.part_num == 2
    assert loaded.user_id == "1000"


def test_from_mapping_missing_keys() -> None:
    with pytest.raises(ValueError, match="block_device"):
        Parameters.from_mapping({"efi": True})


def test_load_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "parameters.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_parameters(str(path))


def test_build_uses_existing_file(tmp_path: Path, parameters: Parameters) -> None:
    path = tmp_path / "parameters.yaml"
    save_parameters(str(path), parameters)

    def ask(msg: str) -> str:
        raise AssertionError("should not prompt")

    assert Parameters.build(str(path), ask=ask) == parameters


def test_build_collects_and_saves_when_file_is_invalid(
    tmp_path: Path, parameters: Parameters, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "parameters.yaml"
    path.write_text("efi: [unclosed\n", encoding="utf-8")
    monkeypatch.setattr(params_mod, "request_user_parameters", lambda ask: parameters)

    assert Parameters.build(str(path)) == parameters
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["username"] == "alice"


def test_request_user_parameters_wifi(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WIFI_SSID", raising=False)
    monkeypatch.delenv("WIFI_PASSWD", raising=False)
    monkeypatch.setattr(params_mod, "predictable_name", lambda dev: "wlp1s0")

    ask = scripted(["", "", "box", "", "", "", "HomeNet", "secret", "y"])
    p = request_user_parameters(ask=ask, block_devices=["nvme0n1", "sda"], net_devices=["wlan0"], efi=True)

    assert p.block_device == "nvme0n1"
    assert p.part_num == 2
    assert p.part_num_prefix == "p"
    assert p.timezone == "America/Toronto"
    assert p.hostname == "box"
    assert p.username == "user"
    assert p.user_id == p.user_gid == "1000"
    assert p.net_dev_iso == "wlan0"
    assert p.net_dev == "wlp1s0"
    assert p.wifi_enabled
    assert (p.wifi_ssid, p.wifi_password) == ("HomeNet", "secret")


def test_request_user_parameters_ethernet_bios(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(params_mod, "predictable_name", lambda dev: "")

    ask = scripted(["sda", "", "", "bob", "", "", "y"])
    p = request_user_parameters(ask=ask, block_devices=["sda"], net_devices=["eth0"], efi=False)

    assert p.part_num == 1
    assert p.part_num_prefix == ""
    assert p.username == "bob"
    assert p.net_dev == "eth0"
    assert not p.wifi_enabled
    assert p.wifi_ssid == ""


def test_request_user_parameters_wifi_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIFI_SSID", "EnvNet")
    monkeypatch.setenv("WIFI_PASSWD", "envpass")
    monkeypatch.setattr(params_mod, "predictable_name", lambda dev: "")

    ask = scripted(["", "", "", "", "", "true", "y"])
    p = request_user_parameters(ask=ask, block_devices=["sda"], net_devices=["wlan0"], efi=True)

    assert (p.wifi_ssid, p.wifi_password) == ("EnvNet", "envpass")


def test_request_user_parameters_without_devices() -> None:
    with pytest.raises(TaskError, match="no block devices"):
        request_user_parameters(ask=scripted([]), block_devices=[], net_devices=["eth0"], efi=True)
    with pytest.raises(TaskError, match="network interface"):
        request_user_parameters(ask=scripted(["", "", "", ""]), block_devices=["sda"], net_devices=[], efi=True)


def test_save_parameters_unwritable_path(tmp_path: Path, parameters: Parameters) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(TaskError, match="failed to save parameters"):
        save_parameters(str(blocker / "parameters.yaml"), parameters)


def test_ask_confirmation_retries_then_aborts() -> None:
    with pytest.raises(AbortInstall) as exc:
        ask_confirmation("continue?", scripted(["maybe", "n"]))

    assert exc.value.code == 0


def test_ask_confirmation_accepts_yes() -> None:
    ask_confirmation("continue?", scripted(["Y"]))
