from __future__ import annotations

import logging
from pathlib import Path

from ..errors import TaskError
from ..lib.command import run_cmd
from ..lib.env import DEFAULT_CHROOT
from ..lib.files import line_in_file, set_mode
from ..lib.storage import PartitionPlan, create_filesystems, create_partitions
from ..parameters import Parameters
from ..pipeline import BaseTask

logger = logging.getLogger(__name__)

SWAP_FILE = "/swapfile"


def partition_plan(parameters: Parameters) -> PartitionPlan:
    return PartitionPlan(
        block_device=parameters.block_device,
        efi=parameters.efi,
        part_prefix=parameters.part_num_prefix,
    )


class Partitions(BaseTask):
    name = "create_partitions"

    def __init__(self, parameters: Parameters) -> None:
        self.parameters = parameters

    def run(self) -> str:
        if not self.parameters.block_device:
            raise TaskError("parameters.block_device is required for partitioning")
        create_partitions(partition_plan(self.parameters))
        return ""


class Filesystems(BaseTask):
    name = "create_filesystems"

    def __init__(self, parameters: Parameters, *, target_root: str = DEFAULT_CHROOT) -> None:
        self.parameters = parameters
        self.target_root = target_root

    def run(self) -> str:
        return create_filesystems(partition_plan(self.parameters), target_root=self.target_root)


def mem_total_kib(meminfo: str) -> str:
    # MemTotal:       32577276 kB
    for line in meminfo.splitlines():
        if line.startswith("MemTotal:"):
            return line.split()[1]
    raise TaskError("MemTotal not found in /proc/meminfo")


class Swap(BaseTask):
    """Swap file the size of RAM, large enough to hibernate into."""

    name = "create_swap_file"

    def __init__(self, path: str = SWAP_FILE) -> None:
        self.path = path

    def run(self) -> str:
        try:
            meminfo = Path("/proc/meminfo").read_text(encoding="utf-8")
        except OSError as e:
            raise TaskError(f"failed to read /proc/meminfo: {e}") from e

        run_cmd(["fallocate", "-l", f"{mem_total_kib(meminfo)}K", self.path])
        set_mode(self.path, 0o600)
        run_cmd(["mkswap", self.path])
        run_cmd(["swapon", self.path])
        line_in_file("/etc/fstab", f"{self.path} none swap defaults 0 0")
        return ""
