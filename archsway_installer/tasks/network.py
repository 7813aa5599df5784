from __future__ import annotations

import logging

from ..lib.command import output_of, run_cmd, run_shell
from ..lib.env import ExecutionContext, join_paths
from ..lib.files import copy_file, create_dir, line_in_file, render_template, text_file
from ..lib.net import has_default_route, wait_for_network
from ..lib.pkg import pacman_install, systemctl_enable_now
from ..parameters import Parameters
from ..pipeline import BaseTask

logger = logging.getLogger(__name__)


def render_networkd(net_dev: str) -> str:
    return f"[Match]\nName={net_dev}\n\n[Network]\nDHCP=yes\n"


class Network(BaseTask):
    """systemd-networkd with DHCP on the installed system's interface."""

    name = "configure_network"

    def __init__(self, parameters: Parameters, *, network_dir: str = "/etc/systemd/network") -> None:
        self.parameters = parameters
        self.network_dir = network_dir

    def run(self) -> str:
        net_dev = self.parameters.net_dev
        text_file(join_paths(self.network_dir, f"{net_dev}-dhcp.network"), render_networkd(net_dev))
        systemctl_enable_now("systemd-networkd")
        return ""


class Resolved(BaseTask):
    name = "configure_systemd_resolved"

    def __init__(self, context: ExecutionContext | None = None) -> None:
        self.context = context or ExecutionContext()

    def run(self) -> str:
        line_in_file("/etc/resolv.conf", "nameserver 127.0.0.53")
        create_dir("/etc/systemd/resolved.conf.d")
        copy_file(
            join_paths(self.context.repo_dir, "assets/files/dns_servers.conf"),
            "/etc/systemd/resolved.conf.d/dns_servers.conf",
        )
        systemctl_enable_now("systemd-resolved")
        return ""


class Netplan(BaseTask):
    """Render the wifi or ethernet netplan template from the repo and apply it."""

    name = "netplan_configuration"

    def __init__(
        self,
        parameters: Parameters,
        context: ExecutionContext | None = None,
        *,
        netplan_dir: str = "/etc/netplan",
    ) -> None:
        self.parameters = parameters
        self.context = context or ExecutionContext()
        self.netplan_dir = netplan_dir

    def config(self) -> tuple[str, str]:
        """Return (file name, rendered content) for the configured link type."""

        p = self.parameters
        files = join_paths(self.context.repo_dir, "assets/files")
        if p.wifi_enabled:
            content = render_template(
                join_paths(files, "netplan-wifi-config.yaml"),
                {
                    "_NETWORK_INTERFACE_": p.net_dev,
                    "_WIFI_SSID_": p.wifi_ssid,
                    "_WIFI_PASSWORD_": p.wifi_password,
                },
            )
            return "wifi-config.yaml", content
        content = render_template(
            join_paths(files, "netplan-eth-config.yaml"),
            {"_NETWORK_INTERFACE_": p.net_dev},
        )
        return "eth-config.yaml", content

    def run(self) -> str:
        pacman_install(["dbus-python", "python-rich"])
        create_dir(self.netplan_dir)

        filename, content = self.config()
        text_file(join_paths(self.netplan_dir, filename), content)

        run_cmd(["netplan", "apply"])
        wait_for_network()
        return output_of(["netplan", "get", "all"])


class WifiConnect(BaseTask):
    """Bring wifi up on the live ISO so the first stage can download packages."""

    def __init__(self, parameters: Parameters) -> None:
        self.parameters = parameters
        self.name = f"connect_to_wifi_ssid:{parameters.wifi_ssid}"

    def run(self) -> str:
        p = self.parameters
        if not p.wifi_enabled:
            return ""
        if has_default_route():
            return "network is already up"

        wlan = p.net_dev_iso
        run_shell(
            f"ip link set {wlan} up && "
            f"wpa_supplicant -B -i {wlan} -c <(wpa_passphrase '{p.wifi_ssid}' '{p.wifi_password}') && "
            "dhcpcd"
        )
        wait_for_network()
        return ""
