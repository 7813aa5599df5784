from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Sequence

from ..errors import TaskError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str] | str,
    *,
    check: bool = True,
    dry_run: bool = False,
) -> CmdResult:
    """Run ``argv`` and capture its output as text.

    A string is split shell-style, no shell is involved. The command line is
    logged at INFO and its output at DEBUG. With ``check`` a non-zero exit
    raises TaskError carrying both streams. ``dry_run`` only logs.
    """

    argv_list = shlex.split(argv) if isinstance(argv, str) else list(argv)
    if not argv_list:
        raise TaskError("command cannot be empty")

    logger.info("CMD %s", _fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        raise TaskError(f"failed to run `{_fmt_argv(argv_list)}`: {e}") from e

    for stream, text in (("stdout", p.stdout), ("stderr", p.stderr)):
        if text:
            logger.debug("%s: %s", stream, text.strip())

    if check and p.returncode != 0:
        raise TaskError(
            f'failed to run "{_fmt_argv(argv_list)}" (exit {p.returncode})\n'
            f"stdout:\n{p.stdout}\nstderr:\n{p.stderr}"
        )

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def run_shell(script: str, *, check: bool = True, dry_run: bool = False) -> CmdResult:
    """Run a script in a bash subshell so pipes, `&&` and redirects work."""

    return run_cmd(["bash", "-ec", script], check=check, dry_run=dry_run)


def output_of(argv: Sequence[str] | str) -> str:
    return run_cmd(argv).stdout.strip()
