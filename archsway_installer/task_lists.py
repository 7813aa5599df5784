from __future__ import annotations

from .lib.env import BIN_FILE, DEFAULT_CHROOT, ExecutionContext, repo_url
from .parameters import Parameters
from .pipeline import TaskRunner
from .state_store import ProgressStore
from .tasks import (
    Bashrc,
    Bluetooth,
    Command,
    CpuGovernor,
    Docker,
    Filesystems,
    GitRepo,
    Grub,
    Hibernation,
    Hostname,
    Info,
    Locales,
    Netplan,
    Network,
    Partitions,
    Qemu,
    RequireUser,
    Resolved,
    StageCompleted,
    Swap,
    SwayConfigs,
    TextFile,
    User,
    Variables,
    WifiConnect,
)


def installation_list(parameters: Parameters, store: ProgressStore) -> TaskRunner:
    """Full install, in three stages separated by reboots.

    1. chroot: on the live ISO as root, partition and bootstrap /mnt
    2. install: on the installed system as root, system services and desktop
    3. user: on the installed system as the regular user
    """

    ctx = store.context
    username = parameters.username
    r = TaskRunner(store)

    # Stage 1: chroot
    r.add(RequireUser("chroot", "root"))
    r.add(WifiConnect(parameters))
    r.add(Command("install_git", "pacman -Sy --noconfirm archlinux-keyring git"))
    r.add(GitRepo("clone_arch_sway_repo", repo_url(), ctx.repo_dir))
    r.add(Partitions(parameters))
    r.add(Filesystems(parameters))
    r.add(
        Command(
            "pacstrap_packages",
            "pacstrap /mnt base base-devel linux linux-firmware "
            "grub efibootmgr dosfstools os-prober mtools "
            "systemd-resolvconf wpa_supplicant netplan "
            "openssh dnsutils curl git unzip vim sudo man tmux "
            "sysstat bash-completion python python-yaml",
        )
    )
    r.add(Command("save_fstab", "genfstab -U /mnt >> /mnt/etc/fstab", shell=True))
    r.add(
        Command(
            "set_timezone",
            f"arch-chroot /mnt ln -sf /usr/share/zoneinfo/{parameters.timezone} /etc/localtime && "
            "arch-chroot /mnt hwclock --systohc",
            shell=True,
        )
    )
    r.add(Locales())
    r.add(Hostname(parameters))
    r.add(User(parameters))
    r.add(Grub(parameters))
    r.add(Info(f"next steps:\n\treboot, run as root:\n\t{BIN_FILE} install\n"))
    r.add(StageCompleted("chroot_stage_completed", ExecutionContext(chroot=DEFAULT_CHROOT, user="root"), source=ctx))

    # Stage 2: install
    r.add(RequireUser("install", "root"))
    r.add(Command("enable_ntp", "timedatectl set-ntp true"))
    r.add(Network(parameters))
    r.add(Resolved(ctx))
    r.add(Netplan(parameters, ctx))
    r.add(
        Command(
            "install_sway_packages",
            "pacman -Sy --noconfirm "
            "sway swaylock swayidle waybar light xorg-xwayland "
            "bemenu-wayland libnotify dunst wl-clipboard",
        )
    )
    r.add(
        Command(
            "install_fonts_themes_utilities",
            "pacman -Sy --noconfirm "
            "grim slurp ddcutil lxappearance "
            "lshw pciutils usbutils "
            "ttf-liberation ttf-roboto ttf-dejavu noto-fonts "
            "noto-fonts-emoji noto-fonts-extra opendesktop-fonts "
            "materia-gtk-theme papirus-icon-theme adwaita-qt5",
        )
    )
    r.add(Variables())
    r.add(SwayConfigs(parameters, ctx))
    r.add(
        Command(
            "install_desktop_apps",
            "pacman -Sy --noconfirm "
            "alacritty code telegram-desktop "
            "thunar evince xournalpp ristretto "
            "transmission-gtk audacious vlc",
        )
    )
    r.add(
        Command(
            "install_pipewire",
            "pacman -Sy --noconfirm "
            "pipewire pipewire-pulse wireplumber "
            "gst-plugin-pipewire xdg-desktop-portal-wlr "
            "pavucontrol",
        )
    )
    r.add(Swap())
    r.add(Hibernation())
    r.add(TextFile("/etc/sysctl.d/01-swappiness.conf", "vm.swappiness = 1\n"))
    r.add(CpuGovernor())
    r.add(Bluetooth())
    r.add(Docker(parameters))
    r.add(Info(f"next steps:\n\treboot and run as a regular user:\n\t{BIN_FILE} install\n"))
    r.add(StageCompleted("install_stage_completed", ExecutionContext(user=username), source=ctx))

    # Stage 3: user
    r.add(Command("chown_moved_files", f"sudo chown -R {username}:{username} ~/*", shell=True))
    r.add(RequireUser("nonroot", username))
    r.add(
        Command(
            "install_rust_toolchain",
            "sudo pacman -Sy --noconfirm rustup && rustup default stable",
            shell=True,
        )
    )
    r.add(
        Command(
            "install_yay_aur",
            "mkdir -p ~/projects && cd ~/projects && "
            "git clone https://aur.archlinux.org/yay-git.git && "
            "cd yay-git && makepkg --noconfirm -si",
            shell=True,
        )
    )
    r.add(
        Command(
            "install_aur_packages",
            "yes | yay --noconfirm -Sy wdisplays google-chrome libinput-gestures",
            shell=True,
        )
    )
    r.add(Command("add_user_to_input_group", f"sudo usermod -aG input {username}"))
    r.add(
        Command(
            "enable_and_start_pipewire",
            "systemctl --user enable pipewire.service pipewire-pulse.service && "
            "systemctl --user start pipewire.service pipewire-pulse.service",
            shell=True,
        )
    )
    r.add(Bashrc(parameters, ctx))
    r.add(Info("installation finished successfully!"))
    r.add(StageCompleted("user_stage_completed", ExecutionContext(), source=ctx))

    return r


def sync_list(parameters: Parameters, store: ProgressStore) -> TaskRunner:
    """Re-apply repo configs (environment, sway, bashrc) to an installed system."""

    ctx = store.context
    r = TaskRunner(store)
    r.add(RequireUser("sync", "root"))
    r.add(Variables())
    r.add(SwayConfigs(parameters, ctx))
    r.add(Bashrc(parameters, ctx))
    r.add(Info("configs synced"))
    return r


def qemu_list(parameters: Parameters, store: ProgressStore) -> TaskRunner:
    r = TaskRunner(store)
    r.add(RequireUser("qemu", parameters.username))
    r.add(Qemu(parameters))
    r.add(Info("qemu/kvm installed, run virt-manager to create VMs"))
    return r
