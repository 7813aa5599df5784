from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from .errors import TaskError
from .lib.block import list_block_devices, partition_prefix
from .lib.firmware import is_efi
from .lib.net import NETWORK_INTERFACES_REGEX, list_net_devices, predictable_name

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Toronto"
DEFAULT_HOSTNAME = "dhost"
DEFAULT_USERNAME = "user"
DEFAULT_UID = "1000"


class AbortInstall(SystemExit):
    """The operator declined to proceed."""


@dataclass(frozen=True)
class Parameters:
    """Installation parameters, collected once and shared by every stage."""

    efi: bool
    block_device: str
    part_num: int  # root partition: 2 for EFI, 1 for BIOS
    part_num_prefix: str  # "" for sdaX, "p" for nvme0n1pX
    timezone: str  # relative to /usr/share/zoneinfo, e.g. "America/Toronto"
    hostname: str
    username: str
    user_id: str
    user_gid: str
    net_dev: str  # name in the installed system, e.g. wlp1s0
    net_dev_iso: str  # name on the live ISO, e.g. wlan0
    wifi_enabled: bool
    wifi_ssid: str
    wifi_password: str

    @classmethod
    def dummy(cls) -> "Parameters":
        """Placeholder values, enough to assemble task lists for display."""

        return cls(
            efi=True,
            block_device="",
            part_num=0,
            part_num_prefix="",
            timezone="",
            hostname="",
            username="",
            user_id="",
            user_gid="",
            net_dev="",
            net_dev_iso="",
            wifi_enabled=True,
            wifi_ssid="MyWiFi",
            wifi_password="",
        )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Parameters":
        missing = [f.name for f in fields(cls) if f.name not in raw]
        if missing:
            raise ValueError(f"parameters missing keys: {', '.join(missing)}")
        values = {f.name: raw[f.name] for f in fields(cls)}
        values["efi"] = bool(values["efi"])
        values["wifi_enabled"] = bool(values["wifi_enabled"])
        values["part_num"] = int(values["part_num"])
        for key in ("user_id", "user_gid"):
            values[key] = str(values[key])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)

    @classmethod
    def build(cls, path: str, *, ask: Optional[Callable[[str], str]] = None) -> "Parameters":
        """Load parameters from ``path``; otherwise collect them and save them there."""

        p = Path(path)
        if p.exists():
            try:
                params = load_parameters(path)
                logger.info("Got parameters from file '%s'", path)
                return params
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning("Ignoring unusable parameters file %s: %s", path, e)

        params = request_user_parameters(ask=ask or ask_user_input)
        save_parameters(path, params)
        return params


def load_parameters(path: str) -> Parameters:
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("parameters file must contain a mapping/object")
    return Parameters.from_mapping(raw)


def save_parameters(path: str, params: Parameters) -> None:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(params.to_yaml(), encoding="utf-8")
    except OSError as e:
        raise TaskError(f"failed to save parameters to `{path}`: {e}") from e
    logger.info("Saved parameters to %s", path)


def ask_user_input(msg: str) -> str:
    return input(f"{msg} ").strip()


def env_or_input(var: str, msg: str, ask: Callable[[str], str]) -> str:
    value = os.environ.get(var)
    if value:
        print(f"{msg} using value from '{var}' variable")
        return value
    return ask(msg)


def ask_confirmation(msg: str, ask: Callable[[str], str] = ask_user_input) -> None:
    """Loop until the operator answers y or n; n aborts the process."""

    while True:
        answer = ask(f"{msg} [yn]").lower()
        if answer == "y":
            return
        if answer == "n":
            print("exiting...")
            raise AbortInstall(0)
        print(f"unknown input '{answer}', please enter y or n")


def _with_default(ask: Callable[[str], str], msg: str, default: str) -> str:
    return ask(f"{msg} [{default}]:") or default


def _ask_bool(ask: Callable[[str], str], msg: str, default: bool) -> bool:
    while True:
        answer = ask(f"{msg} [{str(default).lower()}]").lower()
        if not answer:
            return default
        if answer in {"true", "yes", "y"}:
            return True
        if answer in {"false", "no", "n"}:
            return False
        print(f"'{answer}' is not a boolean, please enter true or false")


def request_user_parameters(
    *,
    ask: Callable[[str], str] = ask_user_input,
    block_devices: Optional[List[str]] = None,
    net_devices: Optional[List[str]] = None,
    efi: Optional[bool] = None,
) -> Parameters:
    print("enter parameters:")

    efi = is_efi() if efi is None else efi

    block_devices = list_block_devices() if block_devices is None else block_devices
    if not block_devices:
        raise TaskError("no block devices found")
    block_dev = ask(f"block device {block_devices}:") or block_devices[0]

    timezone = _with_default(ask, "timezone", DEFAULT_TIMEZONE)
    hostname = _with_default(ask, "hostname", DEFAULT_HOSTNAME)
    username = _with_default(ask, "username", DEFAULT_USERNAME)

    net_devices = list_net_devices() if net_devices is None else net_devices
    if not net_devices:
        raise TaskError(f"cannot find any network interface (regex: {NETWORK_INTERFACES_REGEX})")
    net_dev_iso = ask(f"network interface (available: {net_devices}) [{net_devices[0]}]:") or net_devices[0]

    wifi = _ask_bool(ask, "configure wifi", net_dev_iso.startswith(("wlan", "wlp")))
    wifi_ssid = ""
    wifi_password = ""
    if wifi:
        wifi_ssid = env_or_input("WIFI_SSID", "wifi ssid:", ask)
        wifi_password = env_or_input("WIFI_PASSWD", "wifi password:", ask)

    net_dev = predictable_name(net_dev_iso) or net_dev_iso
    if net_dev != net_dev_iso:
        print(f"{net_dev_iso} will be named {net_dev} after installation")

    params = Parameters(
        efi=efi,
        block_device=block_dev,
        part_num=2 if efi else 1,
        part_num_prefix=partition_prefix(block_dev),
        timezone=timezone,
        hostname=hostname,
        username=username,
        user_id=DEFAULT_UID,
        user_gid=DEFAULT_UID,
        net_dev=net_dev,
        net_dev_iso=net_dev_iso,
        wifi_enabled=wifi,
        wifi_ssid=wifi_ssid,
        wifi_password=wifi_password,
    )

    print(f"\n---\nparameters:\n{params.to_yaml()}")
    ask_confirmation("proceed with the installation?", ask)
    return params
