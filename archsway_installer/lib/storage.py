from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .block import partition_path
from .command import run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartitionPlan:
    block_device: str
    efi: bool
    part_prefix: str = ""
    root_fs: str = "ext4"
    esp_end_mib: int = 512

    @property
    def disk(self) -> str:
        return f"/dev/{self.block_device}"

    @property
    def esp_part(self) -> Optional[str]:
        if not self.efi:
            return None
        return partition_path(self.block_device, self.part_prefix, 1)

    @property
    def root_part(self) -> str:
        # EFI: 1 = ESP, 2 = root; BIOS: 1 = root
        return partition_path(self.block_device, self.part_prefix, 2 if self.efi else 1)


def create_partitions(plan: PartitionPlan, *, dry_run: bool = False) -> None:
    """Write a fresh partition table.

    Layout:
    - EFI: GPT, FAT32 ESP up to 512MiB, root fs on the rest
    - BIOS: MBR, single root partition
    """

    parted = ["parted", "-s", plan.disk]
    logger.info("Partitioning disk=%s efi=%s", plan.disk, plan.efi)

    if plan.efi:
        run_cmd([*parted, "mklabel", "gpt"], dry_run=dry_run)
        run_cmd([*parted, "mkpart", "efi-system", "fat32", "1MiB", f"{plan.esp_end_mib}MiB"], dry_run=dry_run)
        run_cmd([*parted, "mkpart", "rootfs", plan.root_fs, f"{plan.esp_end_mib}MiB", "100%"], dry_run=dry_run)
    else:
        run_cmd([*parted, "mklabel", "msdos"], dry_run=dry_run)
        run_cmd([*parted, "mkpart", "primary", plan.root_fs, "1MiB", "100%"], dry_run=dry_run)

    run_cmd([*parted, "set", "1", "boot", "on"], dry_run=dry_run)


def create_filesystems(plan: PartitionPlan, *, target_root: str, dry_run: bool = False) -> str:
    """Format partitions, mount root at target_root and return the resulting table."""

    if plan.esp_part:
        run_cmd(["mkfs.fat", "-F", "32", plan.esp_part], dry_run=dry_run)
    run_cmd([f"mkfs.{plan.root_fs}", plan.root_part], dry_run=dry_run)
    run_cmd(["mount", plan.root_part, target_root], dry_run=dry_run)

    return run_cmd(["parted", "-s", plan.disk, "print"], dry_run=dry_run).stdout
