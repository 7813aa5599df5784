from __future__ import annotations

from pathlib import Path

EFI_SYSFS = "/sys/firmware/efi"


def is_efi(sysfs: str = EFI_SYSFS) -> bool:
    """Whether the *currently running* environment booted via UEFI."""

    return Path(sysfs).exists()
