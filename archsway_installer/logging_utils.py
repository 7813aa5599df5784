from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

DEFAULT_LOG_PATH = "/var/log/archsway-installer.log"
FALLBACK_LOG_NAME = "archsway-installer.log"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _file_handler(log_path: str) -> Tuple[logging.Handler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        # /var/log is not writable in the user stage
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Attach file and console handlers to the root logger, once per process.

    The console shows bare messages, it is the operator's progress view; the
    file keeps timestamps and logger names. When ``log_path`` cannot be opened
    the log goes to the working directory instead.

    Returns the log file path actually in use.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if getattr(root, "_archsway_configured", False):
        return getattr(root, "_archsway_log_path", log_path)

    file_handler, chosen_path = _file_handler(log_path)
    file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=FILE_DATEFMT))
    root.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("%(message)s"))
        console.setLevel(level)
        root.addHandler(console)

    setattr(root, "_archsway_configured", True)
    setattr(root, "_archsway_log_path", chosen_path)

    logging.getLogger(__name__).info("Logging to %s (requested %s)", chosen_path, log_path)
    return chosen_path
