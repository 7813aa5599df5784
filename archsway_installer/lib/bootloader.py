from __future__ import annotations

import logging

from .chroot import chroot_cmd
from .command import run_cmd
from .env import DEFAULT_CHROOT
from .files import create_dir

logger = logging.getLogger(__name__)


def install_grub_efi(*, esp_part: str, target_root: str = DEFAULT_CHROOT, dry_run: bool = False) -> None:
    """Install GRUB for x86_64 EFI targets, mounting the ESP at /boot/EFI."""

    if not dry_run:
        create_dir(f"{target_root}/boot/EFI")
    chroot_cmd(["mount", esp_part, "/boot/EFI"], target_root=target_root, dry_run=dry_run)
    chroot_cmd(
        [
            "grub-install",
            "--target=x86_64-efi",
            "--bootloader-id=grub_uefi",
            "--recheck",
        ],
        target_root=target_root,
        dry_run=dry_run,
    )
    logger.info("GRUB EFI installed")


def install_grub_bios(*, disk: str, target_root: str = DEFAULT_CHROOT, dry_run: bool = False) -> None:
    chroot_cmd(["grub-install", "--recheck", "--target=i386-pc", disk], target_root=target_root, dry_run=dry_run)
    logger.info("GRUB BIOS installed on %s", disk)


def grub_mkconfig(*, target_root: str | None = None, dry_run: bool = False) -> None:
    argv = ["grub-mkconfig", "-o", "/boot/grub/grub.cfg"]
    if target_root:
        chroot_cmd(argv, target_root=target_root, dry_run=dry_run)
    else:
        run_cmd(argv, dry_run=dry_run)
