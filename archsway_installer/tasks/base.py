from __future__ import annotations

import logging
import os
import sys
import zipfile
from pathlib import Path
from typing import Optional

from ..lib.command import output_of, run_cmd, run_shell
from ..lib.env import ExecutionContext
from ..lib.files import copy_file, create_dir, move, symlink, text_file
from ..media import MediaCtx, build_bin
from ..pipeline import INFO, BaseTask, RequireUserIdentity, Signal, StageBoundary

logger = logging.getLogger(__name__)


class Command(BaseTask):
    """Run an external command; ``shell`` runs it through bash."""

    def __init__(self, name: str, command: str, *, output: bool = False, shell: bool = False) -> None:
        self.name = name
        self.command = command
        self.output = output
        self.shell = shell

    def run(self) -> str:
        if self.shell:
            r = run_shell(self.command)
        else:
            r = run_cmd(self.command)
        return r.stdout if self.output else ""


class Info(BaseTask):
    signal = INFO

    def __init__(self, message: str) -> None:
        self.message = message

    def run(self) -> str:
        return self.message


class RequireUser(BaseTask):
    """Report the acting user; the runner aborts unless it is ``user``."""

    def __init__(self, stage: str, user: str) -> None:
        self.stage = stage
        self.user = user
        self.name = f"check_required_user_{user}_for_{stage}"

    @property
    def signal(self) -> Signal:
        return RequireUserIdentity(self.user)

    def run(self) -> str:
        return output_of(["id", "-un"])


class TextFile(BaseTask):
    def __init__(self, path: str, content: str) -> None:
        self.path = path
        self.content = content
        self.name = f"text_file:{path}"

    def run(self) -> str:
        text_file(self.path, self.content)
        return ""


class GitRepo(BaseTask):
    """Clone the installer repository unless a checkout already exists."""

    def __init__(self, name: str, url: str, dest: str) -> None:
        self.name = name
        self.url = url
        self.dest = dest

    def run(self) -> str:
        if Path(self.dest).exists():
            return f"using local repo {self.dest}, note that it may have discrepancies with the remote"
        logger.info("Cloning %s to %s", self.url, self.dest)
        run_cmd(["git", "clone", self.url, self.dest])
        return ""


class StageCompleted(BaseTask):
    """End a stage, relocating installer state to where the next stage runs.

    Moves the executable into the target chroot, and the repository checkout
    and config dir (which holds the progress marker and parameters) into the
    target context. For a user target the moved dirs are chowned and the old
    locations become symlinks. An empty target relocates nothing.
    """

    def __init__(
        self,
        name: str,
        target: ExecutionContext,
        *,
        source: Optional[ExecutionContext] = None,
        executable: Optional[str] = None,
    ) -> None:
        self.name = name
        self.target = target
        self.source = source or ExecutionContext()
        self.executable = executable

    @property
    def signal(self) -> Signal:
        return StageBoundary(self.target)

    def _place_executable(self, dst: ExecutionContext) -> None:
        # only a zipapp runs inside a fresh chroot; a console-script shim
        # or `python -m` entry point would be left dangling there
        if self.executable:
            move(self.executable, dst.bin_file)
            return
        argv0 = Path(sys.argv[0])
        if argv0.is_file() and zipfile.is_zipfile(argv0):
            move(str(argv0.resolve()), dst.bin_file)
            return
        bin_file = self.source.bin_file
        if not (os.path.isfile(bin_file) and zipfile.is_zipfile(bin_file)):
            logger.info("No zipapp at %s, building one from %s", bin_file, self.source.repo_dir)
            bin_file = str(build_bin(MediaCtx(self.source)))
        logger.info("Copying binary %s -> %s", bin_file, dst.bin_file)
        create_dir(os.path.dirname(dst.bin_file))
        copy_file(bin_file, dst.bin_file)
        os.chmod(dst.bin_file, 0o755)

    def run(self) -> str:
        if self.target.is_current():
            return ""

        src, dst = self.source, self.target
        create_dir(dst.src_dir)

        if dst.chroot:
            self._place_executable(dst)

        # Move the repo itself, not src/, otherwise it ends up in src/src/arch-sway.
        for what, here, there in (
            ("repo dir", src.repo_dir, dst.repo_dir),
            ("conf dir", src.conf_dir, dst.conf_dir),
        ):
            if os.path.lexists(there):
                logger.info("%s already present at %s", what, there)
                continue
            move(here, there)

        if dst.user:
            run_cmd(["chown", "-R", f"{dst.user}:{dst.user}", dst.src_dir, dst.conf_dir])
            symlink(dst.conf_dir, src.conf_dir)
            symlink(dst.src_dir, src.src_dir)

        return ""
