from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..errors import TaskError

# Layout relative to an execution context:
#    chroot      /mnt
#    bin         /usr/local/bin/archsway-installer
#    repo        ~/src/arch-sway
#    progress    ~/.arch-sway/progress
#    parameters  ~/.arch-sway/parameters.yaml
BIN_FILE = "/usr/local/bin/archsway-installer"
SRC_DIR = "src"
REPO_DIR = "src/arch-sway"
CONF_DIR = ".arch-sway"
PROGRESS_FILE = "progress"
PARAMETERS_FILE = "parameters.yaml"

DEFAULT_CHROOT = "/mnt"
DEFAULT_REPO_URL = "https://github.com/dabealu/arch-sway.git"


def repo_url(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get("ARCHSWAY_REPO_URL") or DEFAULT_REPO_URL


def join_paths(a: str, b: str) -> str:
    return a.rstrip("/") + "/" + b.lstrip("/")


def prefix_chroot(chroot: str, path: str) -> str:
    if chroot:
        return join_paths(chroot, path)
    return path


def invoking_user(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the user the installer acts for.

    Under sudo this is the user who invoked sudo, not root.
    """

    env = os.environ if environ is None else environ
    user = env.get("SUDO_USER") or env.get("USER")
    if not user:
        raise TaskError("unable to determine current user: neither $SUDO_USER nor $USER is set")
    return user


def home_dir(user: str) -> str:
    if user == "root":
        return "/root"
    return f"/home/{user}"


@dataclass(frozen=True)
class ExecutionContext:
    """Where persisted state lives: a chroot root and the acting user.

    An empty ``chroot`` means the running system, an empty ``user`` means the
    invoking user (resolved from the environment when a path is computed).
    """

    chroot: str = ""
    user: str = ""

    def resolved_user(self, environ: Optional[Mapping[str, str]] = None) -> str:
        return self.user or invoking_user(environ)

    def is_current(self) -> bool:
        return not self.chroot and not self.user

    def _in_home(self, rel: str) -> str:
        return prefix_chroot(self.chroot, join_paths(home_dir(self.resolved_user()), rel))

    @property
    def bin_file(self) -> str:
        return prefix_chroot(self.chroot, BIN_FILE)

    @property
    def src_dir(self) -> str:
        return self._in_home(SRC_DIR)

    @property
    def repo_dir(self) -> str:
        return self._in_home(REPO_DIR)

    @property
    def conf_dir(self) -> str:
        return self._in_home(CONF_DIR)

    @property
    def progress_file(self) -> str:
        return join_paths(self.conf_dir, PROGRESS_FILE)

    @property
    def parameters_file(self) -> str:
        return join_paths(self.conf_dir, PARAMETERS_FILE)

    def __str__(self) -> str:
        return f"chroot={self.chroot or '/'} user={self.user or '<current>'}"


def current_context() -> ExecutionContext:
    return ExecutionContext()
