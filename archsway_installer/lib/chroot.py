from __future__ import annotations

import logging
from typing import Sequence

from .command import CmdResult, run_cmd
from .env import DEFAULT_CHROOT, join_paths

logger = logging.getLogger(__name__)


def chroot_cmd(argv: Sequence[str], *, target_root: str = DEFAULT_CHROOT, dry_run: bool = False) -> CmdResult:
    """Run a command inside target root.

    arch-chroot sets up the /dev, /proc and /sys bind mounts itself.
    """

    return run_cmd(["arch-chroot", target_root, *argv], dry_run=dry_run)


def chroot_shell(script: str, *, target_root: str = DEFAULT_CHROOT, dry_run: bool = False) -> CmdResult:
    return chroot_cmd(["bash", "-ec", script], target_root=target_root, dry_run=dry_run)


def target_path(rel: str, *, target_root: str = DEFAULT_CHROOT) -> str:
    return join_paths(target_root, rel)
