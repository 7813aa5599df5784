from __future__ import annotations

import logging

from ..lib.command import run_cmd
from ..lib.files import replace_line
from ..lib.pkg import pacman_install, systemctl_enable_now
from ..parameters import Parameters
from ..pipeline import BaseTask

logger = logging.getLogger(__name__)

QEMU_PACKAGES = ("qemu-full", "libvirt", "virt-manager", "dnsmasq", "edk2-ovmf", "swtpm")


class Bluetooth(BaseTask):
    name = "setup_bluetooth"

    def run(self) -> str:
        pacman_install(["bluez", "bluez-tools", "bluez-utils", "blueman"])
        # power on the adapter after boot
        replace_line("/etc/bluetooth/main.conf", r"# *AutoEnable *=.*", "AutoEnable = true")
        systemctl_enable_now("bluetooth")
        return ""


class Docker(BaseTask):
    name = "setup_docker"

    def __init__(self, parameters: Parameters) -> None:
        self.parameters = parameters

    def run(self) -> str:
        pacman_install(["docker", "docker-compose"])
        run_cmd(["usermod", "-aG", "docker", self.parameters.username])
        systemctl_enable_now("docker")
        return ""


class Qemu(BaseTask):
    """qemu/kvm with libvirt; the user manages VMs without sudo via the libvirt group."""

    name = "setup_qemu_kvm"

    def __init__(self, parameters: Parameters) -> None:
        self.parameters = parameters

    def run(self) -> str:
        pacman_install(list(QEMU_PACKAGES), sudo=True)
        run_cmd(["sudo", "usermod", "-aG", "libvirt,kvm", self.parameters.username])
        run_cmd(["sudo", "systemctl", "enable", "--now", "libvirtd.service"])
        run_cmd(["sudo", "virsh", "net-autostart", "default"], check=False)
        return "re-login for libvirt group membership to take effect"
