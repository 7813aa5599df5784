from .base import Command, GitRepo, Info, RequireUser, StageCompleted, TextFile
from .desktop import Bashrc, SwayConfigs, Variables
from .disk import Filesystems, Partitions, Swap
from .network import Netplan, Network, Resolved, WifiConnect
from .services import Bluetooth, Docker, Qemu
from .system import CpuGovernor, Grub, Hibernation, Hostname, Locales, User

__all__ = [
    "Command",
    "GitRepo",
    "Info",
    "RequireUser",
    "StageCompleted",
    "TextFile",
    "Partitions",
    "Filesystems",
    "Swap",
    "Locales",
    "Hostname",
    "User",
    "Grub",
    "Hibernation",
    "CpuGovernor",
    "Network",
    "Resolved",
    "Netplan",
    "WifiConnect",
    "Variables",
    "SwayConfigs",
    "Bashrc",
    "Bluetooth",
    "Docker",
    "Qemu",
]
