from __future__ import annotations

import logging
import re
from pathlib import Path

from ..errors import TaskError
from ..lib.block import file_physical_offset, file_uuid
from ..lib.bootloader import grub_mkconfig, install_grub_bios, install_grub_efi
from ..lib.chroot import chroot_cmd, chroot_shell, target_path
from ..lib.command import run_cmd
from ..lib.env import DEFAULT_CHROOT
from ..lib.files import create_dir, line_in_file, replace_line, text_file
from ..lib.pkg import pacman_install, systemctl_enable_now
from ..lib.storage import PartitionPlan
from ..parameters import Parameters
from ..pipeline import BaseTask
from .disk import SWAP_FILE, partition_plan

logger = logging.getLogger(__name__)

LOCALES = ("en_US.UTF-8 UTF-8", "ru_RU.UTF-8 UTF-8")
LANG = "en_US.UTF-8"
KEYMAP = "ru"
DEFAULT_PASSWORD = "1"


class Locales(BaseTask):
    name = "configure_locales"

    def __init__(self, *, target_root: str = DEFAULT_CHROOT) -> None:
        self.target_root = target_root

    def run(self) -> str:
        locale_gen = target_path("/etc/locale.gen", target_root=self.target_root)
        for locale in LOCALES:
            replace_line(locale_gen, rf"^# *{re.escape(locale)}", locale)
        chroot_cmd(["locale-gen"], target_root=self.target_root)

        line_in_file(target_path("/etc/locale.conf", target_root=self.target_root), f"LANG={LANG}")
        line_in_file(target_path("/etc/vconsole.conf", target_root=self.target_root), f"KEYMAP={KEYMAP}")
        return ""


def render_hosts(hostname: str) -> str:
    return "\n".join(
        [
            "# Static table lookup for hostnames.",
            "# See hosts(5) for details.",
            "127.0.0.1\tlocalhost",
            "::1\t\tlocalhost",
            f"127.0.1.1\t{hostname}.localdomain\t{hostname}",
            "",
        ]
    )


class Hostname(BaseTask):
    name = "set_hostname"

    def __init__(self, parameters: Parameters, *, target_root: str = DEFAULT_CHROOT) -> None:
        self.parameters = parameters
        self.target_root = target_root

    def run(self) -> str:
        hostname = self.parameters.hostname
        text_file(target_path("/etc/hostname", target_root=self.target_root), hostname + "\n")
        text_file(target_path("/etc/hosts", target_root=self.target_root), render_hosts(hostname))
        return ""


class User(BaseTask):
    """Create the regular user with passwordless sudo via the wheel group."""

    name = "create_user"

    def __init__(self, parameters: Parameters, *, target_root: str = DEFAULT_CHROOT) -> None:
        self.parameters = parameters
        self.target_root = target_root

    def run(self) -> str:
        p = self.parameters
        chroot_cmd(["groupadd", "-g", p.user_gid, p.username], target_root=self.target_root)
        chroot_cmd(["useradd", "-m", "-u", p.user_id, "-g", p.user_gid, p.username], target_root=self.target_root)
        chroot_cmd(["usermod", "-aG", "wheel,audio,video,storage", p.username], target_root=self.target_root)

        replace_line(
            target_path("/etc/sudoers", target_root=self.target_root),
            r"^# *%wheel.*NOPASSWD.*$",
            "%wheel ALL=(ALL:ALL) NOPASSWD: ALL",
        )

        for account in (p.username, "root"):
            chroot_shell(
                f"printf '%s\\n%s\\n' {DEFAULT_PASSWORD} {DEFAULT_PASSWORD} | passwd {account}",
                target_root=self.target_root,
            )

        return f"warning: root and {p.username} passwords are set to '{DEFAULT_PASSWORD}'"


class Grub(BaseTask):
    name = "install_grub_bootloader"

    def __init__(self, parameters: Parameters, *, target_root: str = DEFAULT_CHROOT) -> None:
        self.parameters = parameters
        self.target_root = target_root

    def run(self) -> str:
        create_dir(target_path("/boot/grub", target_root=self.target_root))

        plan: PartitionPlan = partition_plan(self.parameters)
        if plan.esp_part:
            install_grub_efi(esp_part=plan.esp_part, target_root=self.target_root)
        else:
            install_grub_bios(disk=plan.disk, target_root=self.target_root)

        grub_mkconfig(target_root=self.target_root)
        return ""


def add_resume_hook(mkinitcpio_conf: str) -> str:
    """Append the resume hook to HOOKS=(...); hook order matters, it goes last."""

    out = []
    for line in mkinitcpio_conf.splitlines():
        if line.startswith("HOOKS=") and not line.rstrip().endswith("resume)"):
            line = line.rstrip()[:-1] + " resume)"
        out.append(line)
    return "\n".join(out) + "\n"


class Hibernation(BaseTask):
    """Resume from the swap file: initramfs hook plus kernel parameters.

    Takes effect after the next reboot.
    """

    name = "enable_hibernation_and_suspend"

    def __init__(self, swap_file: str = SWAP_FILE) -> None:
        self.swap_file = swap_file

    def run(self) -> str:
        conf = Path("/etc/mkinitcpio.conf")
        try:
            conf.write_text(add_resume_hook(conf.read_text(encoding="utf-8")), encoding="utf-8")
        except OSError as e:
            raise TaskError(f"failed to update {conf}: {e}") from e
        run_cmd(["mkinitcpio", "-p", "linux"])

        uuid = file_uuid(self.swap_file)
        offset = file_physical_offset(self.swap_file)
        replace_line(
            "/etc/default/grub",
            r"GRUB_CMDLINE_LINUX_DEFAULT=.*",
            f'GRUB_CMDLINE_LINUX_DEFAULT="loglevel=3 quiet resume=UUID={uuid} resume_offset={offset}"',
        )
        grub_mkconfig()
        return ""


class CpuGovernor(BaseTask):
    name = "set_performance_cpu_governor"

    CPUFREQ = "/sys/devices/system/cpu/cpu0/cpufreq"

    def run(self) -> str:
        if not Path(self.CPUFREQ).exists():
            return f"cpu doesn't support cpufreq control - missing {self.CPUFREQ}"

        pacman_install(["cpupower"])
        replace_line("/etc/default/cpupower", r"#governor='ondemand'", "governor='performance'")
        systemctl_enable_now("cpupower")
        try:
            return Path(self.CPUFREQ, "scaling_governor").read_text(encoding="utf-8")
        except OSError as e:
            raise TaskError(f"failed to read scaling governor: {e}") from e
