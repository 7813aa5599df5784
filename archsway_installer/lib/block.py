from __future__ import annotations

import logging
from typing import List

from ..errors import TaskError
from .command import run_cmd

logger = logging.getLogger(__name__)


def list_block_devices() -> List[str]:
    """Names of whole disks (no partitions), e.g. ['nvme0n1', 'sda']."""

    r = run_cmd(["lsblk", "--output=NAME", "--noheadings", "--nodeps"])
    return [line.strip() for line in r.stdout.splitlines() if line.strip()]


def partition_prefix(block_device: str) -> str:
    # nvme0n1p1 vs sda1
    if block_device.startswith("nvme") or block_device.startswith("mmcblk"):
        return "p"
    return ""


def partition_path(block_device: str, prefix: str, number: int) -> str:
    return f"/dev/{block_device}{prefix}{number}"


def file_uuid(path: str) -> str:
    """UUID of the filesystem holding ``path``."""

    uuid = run_cmd(["findmnt", "-no", "UUID", "-T", path]).stdout.strip()
    if not uuid:
        raise TaskError(f"unable to determine filesystem UUID for {path}")
    return uuid


def parse_first_extent_offset(filefrag_output: str) -> str:
    """Physical offset of the first extent from `filefrag -v` output.

    ``   0:        0..    4095:    1234567..   1238661:   4096:``
    """

    for line in filefrag_output.splitlines():
        fields = line.split()
        if fields and fields[0] == "0:" and len(fields) > 3:
            return fields[3].rstrip(".")
    raise TaskError("unable to find first extent in filefrag output")


def file_physical_offset(path: str) -> str:
    return parse_first_extent_offset(run_cmd(["filefrag", "-v", path]).stdout)
