from __future__ import annotations

import logging
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


def pacman_install(packages: Sequence[str], *, sudo: bool = False, dry_run: bool = False) -> None:
    if not packages:
        return
    argv = ["pacman", "-Sy", "--noconfirm", *packages]
    if sudo:
        argv.insert(0, "sudo")
    run_cmd(argv, dry_run=dry_run)


def systemctl_enable_now(*units: str, user: bool = False, dry_run: bool = False) -> None:
    scope = ["--user"] if user else []
    run_cmd(["systemctl", *scope, "enable", *units], dry_run=dry_run)
    run_cmd(["systemctl", *scope, "start", *units], dry_run=dry_run)
