from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Mapping

from ..errors import TaskError

logger = logging.getLogger(__name__)


def text_file(path: str, content: str) -> None:
    """Create or overwrite a file with the given content."""

    try:
        Path(path).write_text(content, encoding="utf-8")
    except OSError as e:
        raise TaskError(f"failed to write `{path}`: {e}") from e


def append_line(path: str, line: str) -> None:
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError as e:
        raise TaskError(f"failed to append to `{path}`: {e}") from e


def line_in_file(path: str, line: str) -> None:
    """Append ``line`` unless the file already contains it verbatim."""

    p = Path(path)
    if not p.exists():
        text_file(path, line + "\n")
        return

    try:
        existing = p.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise TaskError(f"failed to read `{path}`: {e}") from e

    if line in existing:
        return
    append_line(path, line)


def replace_line(path: str, pattern: str, replacement: str) -> None:
    """Rewrite every line matching ``pattern``, replacing its first match."""

    rx = re.compile(pattern)
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise TaskError(f"failed to replace line in `{path}`: {e}") from e

    out = [rx.sub(lambda _m: replacement, line, count=1) for line in lines]
    text_file(path, "\n".join(out) + "\n")


def render_template(path: str, replacements: Mapping[str, str]) -> str:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TaskError(f"failed to read template `{path}`: {e}") from e
    for placeholder, value in replacements.items():
        content = content.replace(placeholder, value)
    return content


def copy_file(src: str, dst: str) -> None:
    try:
        shutil.copyfile(src, dst)
    except OSError as e:
        raise TaskError(f"failed to copy `{src}` to `{dst}`: {e}") from e


def copy_tree(src: str, dst: str, *, dry_run: bool = False) -> None:
    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise TaskError(f"source directory missing: {src}")

    if dry_run:
        logger.info("Would copy tree %s -> %s", str(s), str(d))
        return

    try:
        d.mkdir(parents=True, exist_ok=True)
        for item in s.rglob("*"):
            out = d / item.relative_to(s)
            if item.is_dir():
                out.mkdir(parents=True, exist_ok=True)
            else:
                out.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(item, out)
    except OSError as e:
        raise TaskError(f"failed to copy `{src}` to `{dst}`: {e}") from e


def move(src: str, dst: str) -> None:
    logger.info("Moving %s -> %s", src, dst)
    try:
        Path(dst).parent.mkdir(parents=True, exist_ok=True)
        shutil.move(src, dst)
    except OSError as e:
        raise TaskError(f"failed to move `{src}` to `{dst}`: {e}") from e


def symlink(origin: str, link: str) -> None:
    """Create ``link`` pointing at ``origin`` unless something is already there."""

    if os.path.lexists(link):
        return
    try:
        os.symlink(origin, link)
    except OSError as e:
        raise TaskError(f"failed to create symlink from `{origin}` to `{link}`: {e}") from e


def create_dir(path: str) -> None:
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise TaskError(f"failed to create directory {path}: {e}") from e


def set_mode(path: str, mode: int) -> None:
    try:
        os.chmod(path, mode)
    except OSError as e:
        raise TaskError(f"failed to chmod `{path}`: {e}") from e
