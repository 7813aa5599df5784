from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import List, Optional

from .command import run_cmd

logger = logging.getLogger(__name__)

NETWORK_INTERFACES_REGEX = r"^(wlan|wlp|eth|enp).*"
NETWORK_SETTLE_SECONDS = 3


def has_default_route() -> bool:
    """Best-effort online check: `ip route show default` prints nothing without one."""

    r = run_cmd(["ip", "route", "show", "default"], check=False)
    return r.returncode == 0 and bool(r.stdout.strip())


def list_net_devices(sysfs: str = "/sys/class/net") -> List[str]:
    rx = re.compile(NETWORK_INTERFACES_REGEX)
    return sorted(p.name for p in Path(sysfs).iterdir() if rx.match(p.name))


def parse_udev_net_name(udev_output: str) -> Optional[str]:
    for line in udev_output.splitlines():
        if line.startswith("ID_NET_NAME_PATH="):
            return line.split("=", 1)[1].strip()
    return None


def predictable_name(iface: str) -> Optional[str]:
    """Name udev will give ``iface`` once the installed system boots.

    The live ISO uses kernel names (wlan0, eth0); the installed system renames
    them (wlp1s0, enp3s0).
    """

    r = run_cmd(["udevadm", "test-builtin", "net_id", f"/sys/class/net/{iface}"], check=False)
    return parse_udev_net_name(r.stdout)


def wait_for_network(seconds: float = NETWORK_SETTLE_SECONDS) -> None:
    logger.info("Waiting %ss for network to settle", seconds)
    time.sleep(seconds)
