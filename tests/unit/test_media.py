"""Unit tests for install media helpers."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from archsway_installer import media
from archsway_installer.errors import TaskError
from archsway_installer.lib.env import ExecutionContext
from archsway_installer.media import (
    MediaCtx,
    build_bin,
    create_iso,
    enable_multilib,
    format_device,
    install_steam,
    iso_label,
    sha256sum,
)
from archsway_installer.parameters import AbortInstall, Parameters

PACMAN_CONF = """\
[options]
HoldPkg     = pacman glibc

[core]
Include = /etc/pacman.d/mirrorlist

#[multilib-testing]
#Include = /etc/pacman.d/mirrorlist

#[multilib]
#Include = /etc/pacman.d/mirrorlist
"""


def test_iso_label() -> None:
    assert iso_label("/tmp/isos/archlinux-2022.10.01-x86_64.iso") == "ARCH_202210"


@pytest.mark.parametrize("name", ["arch.iso", "archlinux-2022.10-x86_64.iso", "archlinux-2022.10.01-aarch64.iso"])
def test_iso_label_rejects_unexpected_names(name: str) -> None:
    with pytest.raises(TaskError):
        iso_label(name)


def test_enable_multilib(tmp_path: Path) -> None:
    conf = tmp_path / "pacman.conf"
    conf.write_text(PACMAN_CONF, encoding="utf-8")

    enable_multilib(str(conf))
    enable_multilib(str(conf))

    lines = conf.read_text(encoding="utf-8").splitlines()
    assert lines[-2:] == ["[multilib]", "Include = /etc/pacman.d/mirrorlist"]
    assert "#[multilib-testing]" in lines


def test_install_steam_unknown_vga() -> None:
    with pytest.raises(TaskError, match="unknown vga type"):
        install_steam("matrox", dry_run=True)


def test_install_steam_packages(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    installed: List[List[str]] = []
    monkeypatch.setattr(media, "pacman_install", lambda pkgs, **kwargs: installed.append(list(pkgs)))
    conf = tmp_path / "pacman.conf"
    conf.write_text(PACMAN_CONF, encoding="utf-8")

    install_steam("amd", pacman_conf=str(conf))

    assert installed == [["steam", "vulkan-radeon", "lib32-vulkan-radeon"]]
    assert "[multilib]" in conf.read_text(encoding="utf-8").splitlines()


def test_sha256sum(tmp_path: Path) -> None:
    f = tmp_path / "empty"
    f.write_bytes(b"")

    assert sha256sum(f) == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def _media_ctx(tmp_path: Path) -> MediaCtx:
    return MediaCtx(ExecutionContext(chroot=str(tmp_path), user="root"), dry_run=True)


def test_build_bin_dry_run(tmp_path: Path) -> None:
    ctx = _media_ctx(tmp_path)

    assert build_bin(ctx) == ctx.bin_path
    assert not ctx.zipapp_staging_dir.exists()


def test_create_iso_dry_run(tmp_path: Path, parameters: Parameters) -> None:
    assert create_iso(_media_ctx(tmp_path), parameters) == []


def test_format_device_declined(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[list] = []
    monkeypatch.setattr(media, "run_cmd", lambda argv, **kwargs: calls.append(list(argv)))

    with pytest.raises(AbortInstall):
        format_device(_media_ctx(tmp_path), "/dev/sdb", "archlinux-2022.10.01-x86_64.iso", ask=lambda msg: "n")

    assert calls == []


def test_format_device_labels_boot_partition(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[list] = []
    monkeypatch.setattr(media, "run_cmd", lambda argv, **kwargs: calls.append(list(argv)))

    format_device(_media_ctx(tmp_path), "/dev/sdb", "archlinux-2022.10.01-x86_64.iso", ask=lambda msg: "y")

    assert ["sudo", "fatlabel", "/dev/sdb1", "ARCH_202210"] in calls
    assert calls[-1] == ["sudo", "mkfs.ext4", "/dev/sdb2"]
