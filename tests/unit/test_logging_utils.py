"""Unit tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from archsway_installer.logging_utils import configure_logging


@pytest.fixture
def root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_archsway_configured", "_archsway_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


def test_configure_logging_writes_file(tmp_path: Path, root_logger: logging.Logger) -> None:
    log_path = tmp_path / "logs" / "installer.log"

    assert configure_logging(log_path=str(log_path), also_console=False) == str(log_path)
    logging.getLogger("archsway_installer.test").info("hello")

    assert "hello" in log_path.read_text(encoding="utf-8")


def test_configure_logging_is_idempotent(tmp_path: Path, root_logger: logging.Logger) -> None:
    first = configure_logging(log_path=str(tmp_path / "a.log"), also_console=False)
    count = len(root_logger.handlers)

    second = configure_logging(log_path=str(tmp_path / "b.log"), also_console=False)

    assert first == second
    assert len(root_logger.handlers) == count
