from __future__ import annotations

import hashlib
import logging
import re
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List

from .errors import TaskError
from .lib.command import output_of, run_cmd, run_shell
from .lib.env import BIN_FILE, ExecutionContext
from .lib.files import copy_file, create_dir, replace_line
from .lib.pkg import pacman_install
from .parameters import Parameters, ask_confirmation, ask_user_input

logger = logging.getLogger(__name__)

RELENG_DIR = "/usr/share/archiso/configs/releng"
ZIPAPP_INTERPRETER = "/usr/bin/env python3"
ISO_NAME_RX = re.compile(r"^archlinux-(\d{4})\.(\d{2})\.\d{2}-x86_64\.iso$")

# multilib is required for 32-bit steam runtime libraries
STEAM_VULKAN_DRIVERS: Dict[str, List[str]] = {
    "intel": ["vulkan-intel", "lib32-vulkan-intel"],
    "nvidia": ["nvidia-utils", "lib32-nvidia-utils"],
    "amd": ["vulkan-radeon", "lib32-vulkan-radeon"],
}


@dataclass(frozen=True)
class MediaCtx:
    context: ExecutionContext
    dry_run: bool = False

    @property
    def repo_dir(self) -> Path:
        return Path(self.context.repo_dir)

    @property
    def build_dir(self) -> Path:
        return self.repo_dir / "build"

    @property
    def zipapp_staging_dir(self) -> Path:
        return self.build_dir / "zipapp"

    @property
    def bin_path(self) -> Path:
        return self.build_dir / "archsway-installer"

    @property
    def archiso_dir(self) -> Path:
        return self.repo_dir / "archiso"

    @property
    def iso_builds_dir(self) -> Path:
        return self.repo_dir / "iso-builds"

    @property
    def iso_mount_dir(self) -> Path:
        return self.repo_dir / "iso-device-mnt"


def build_bin(ctx: MediaCtx) -> Path:
    """Build a self-contained zipapp of the installer from the repo checkout.

    Dependencies are vendored into the archive so the executable can be
    moved into a fresh chroot that only has a python interpreter.
    """

    staging = ctx.zipapp_staging_dir
    if staging.exists() and not ctx.dry_run:
        shutil.rmtree(staging)
    if not ctx.dry_run:
        create_dir(str(staging))

    run_cmd(
        [sys.executable, "-m", "pip", "install", "--quiet", "--no-compile", "--target", str(staging), str(ctx.repo_dir)],
        dry_run=ctx.dry_run,
    )
    if not ctx.dry_run:
        (staging / "__main__.py").write_text(
            "from archsway_installer.main import main\n\nraise SystemExit(main())\n",
            encoding="utf-8",
        )
    run_cmd(
        [sys.executable, "-m", "zipapp", str(staging), "-p", ZIPAPP_INTERPRETER, "-o", str(ctx.bin_path)],
        dry_run=ctx.dry_run,
    )
    logger.info("Built %s", ctx.bin_path)
    return ctx.bin_path


def update_bin(ctx: MediaCtx) -> str:
    bin_src = build_bin(ctx)
    bin_dest = ctx.context.bin_file
    run_cmd(["sudo", "cp", "-f", str(bin_src), bin_dest], dry_run=ctx.dry_run)
    return bin_dest


def sha256sum(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            h.update(chunk)
    return h.hexdigest()


def create_iso(ctx: MediaCtx, parameters: Parameters) -> List[Path]:
    """Build an archiso image with the installer preinstalled at BIN_FILE."""

    archiso = ctx.archiso_dir
    releng = archiso / "releng"
    bin_rel = BIN_FILE.lstrip("/")

    logger.info("Building a binary")
    bin_src = build_bin(ctx)

    # may be left behind by a failed build
    run_cmd(["sudo", "rm", "-rf", str(archiso)], dry_run=ctx.dry_run)
    run_cmd(["mkdir", "-p", str(archiso)], dry_run=ctx.dry_run)
    run_cmd(["cp", "-r", RELENG_DIR, str(archiso)], dry_run=ctx.dry_run)

    if not ctx.dry_run:
        create_dir(str((releng / "airootfs" / bin_rel).parent))
        copy_file(str(bin_src), str(releng / "airootfs" / bin_rel))
        replace_line(
            str(releng / "profiledef.sh"),
            r"file_permissions=\(",
            f'file_permissions=(\n  ["{BIN_FILE}"]="0:0:755"',
        )

    logger.info("Building iso, it may take a while...")
    # mkarchiso must be run as root
    run_shell(
        f"cd {archiso} && sudo mkarchiso -v -w . -o {ctx.iso_builds_dir} {releng}",
        dry_run=ctx.dry_run,
    )
    run_cmd(
        ["sudo", "chown", "-R", f"{parameters.user_id}:{parameters.user_gid}", str(ctx.iso_builds_dir)],
        dry_run=ctx.dry_run,
    )
    run_cmd(["sudo", "rm", "-rf", str(archiso)], dry_run=ctx.dry_run)

    if ctx.dry_run:
        return []

    isos = sorted(ctx.iso_builds_dir.glob("archlinux-*.iso"))
    sums = ctx.iso_builds_dir / "SHA256SUMS"
    sums.write_text("".join(f"{sha256sum(p)}  {p.name}\n" for p in isos), encoding="utf-8")
    return isos


def iso_label(iso_path: str) -> str:
    """Filesystem label archiso expects on the boot partition, e.g. ARCH_202210.

    Derived from an ISO named like archlinux-2022.10.01-x86_64.iso.
    """

    m = ISO_NAME_RX.match(Path(iso_path).name)
    if not m:
        raise TaskError(
            "unable to parse date from iso file name, expected format: archlinux-2022.10.01-x86_64.iso"
        )
    return f"ARCH_{m.group(1)}{m.group(2)}"


def format_device(
    ctx: MediaCtx,
    dev_path: str,
    iso_path: str,
    *,
    ask: Callable[[str], str] = ask_user_input,
) -> None:
    """Write the ISO to a USB drive (EFI/GPT only) and use the rest as storage."""

    label = iso_label(iso_path)
    ask_confirmation(f"warning: this will wipe data from {dev_path}, continue?", ask)

    parted = ["sudo", "parted", "-s", dev_path]
    boot_part = f"{dev_path}1"
    mnt_dir = ctx.iso_mount_dir

    logger.info("Creating partitions on %s", dev_path)
    run_cmd([*parted, "mklabel", "gpt"], dry_run=ctx.dry_run)
    run_cmd([*parted, "mkpart", "Arch_ISO", "fat32", "1MiB", "1024MiB"], dry_run=ctx.dry_run)
    run_cmd(["sudo", "mkfs.fat", "-F", "32", boot_part], dry_run=ctx.dry_run)
    run_cmd(["sudo", "fatlabel", boot_part, label], dry_run=ctx.dry_run)

    logger.info("Copying iso to %s", boot_part)
    if not ctx.dry_run:
        create_dir(str(mnt_dir))
    run_cmd(["sudo", "mount", boot_part, str(mnt_dir)], dry_run=ctx.dry_run)
    try:
        run_cmd(["sudo", "bsdtar", "-x", "-f", iso_path, "-C", str(mnt_dir)], dry_run=ctx.dry_run)
    finally:
        run_cmd(["sudo", "umount", str(mnt_dir)], check=False, dry_run=ctx.dry_run)

    run_cmd(["sudo", "syslinux", "--directory", "syslinux", "--install", boot_part], dry_run=ctx.dry_run)
    run_cmd(
        [
            "sudo",
            "dd",
            "bs=440",
            "count=1",
            "conv=notrunc",
            "if=/usr/lib/syslinux/bios/gptmbr.bin",
            f"of={dev_path}",
        ],
        dry_run=ctx.dry_run,
    )

    # remaining space becomes a plain storage partition
    run_cmd([*parted, "mkpart", "FlashDrive", "ext4", "1024MiB", "100%"], dry_run=ctx.dry_run)
    run_cmd(["sudo", "mkfs.ext4", f"{dev_path}2"], dry_run=ctx.dry_run)

    if not ctx.dry_run:
        try:
            mnt_dir.rmdir()
        except OSError as e:
            raise TaskError(f"failed to remove directory {mnt_dir}: {e}") from e
        logger.info("Block devices:\n%s", output_of(["lsblk"]))


def enable_multilib(pacman_conf: str = "/etc/pacman.conf") -> None:
    """Uncomment the [multilib] section header and its Include line."""

    try:
        lines = Path(pacman_conf).read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise TaskError(f"failed to read {pacman_conf}: {e}") from e

    out: List[str] = []
    in_multilib = False
    for line in lines:
        stripped = line.lstrip("#").strip()
        if stripped.startswith("["):
            in_multilib = stripped == "[multilib]"
            if in_multilib:
                line = stripped
        elif in_multilib and stripped.startswith("Include"):
            line = stripped
        out.append(line)

    text = "\n".join(out) + "\n"
    try:
        Path(pacman_conf).write_text(text, encoding="utf-8")
    except OSError as e:
        raise TaskError(f"failed to write {pacman_conf}: {e}") from e


def install_steam(vga: str, *, pacman_conf: str = "/etc/pacman.conf", dry_run: bool = False) -> None:
    drivers = STEAM_VULKAN_DRIVERS.get(vga)
    if drivers is None:
        raise TaskError(f"unknown vga type '{vga}', expected one of: {', '.join(STEAM_VULKAN_DRIVERS)}")

    if not dry_run:
        enable_multilib(pacman_conf)
    pacman_install(["steam", *drivers], dry_run=dry_run)
