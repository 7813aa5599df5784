from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .errors import ProgressError
from .lib.env import ExecutionContext

logger = logging.getLogger(__name__)


class ProgressStore:
    """The progress marker: name of the last completed task, one line of text.

    The store is bound to the execution context the process runs in; ``save``
    may target another context when a stage boundary relocates the marker.
    """

    def __init__(self, context: ExecutionContext) -> None:
        self.context = context

    @property
    def path(self) -> Path:
        return Path(self.context.progress_file)

    def load(self) -> Optional[str]:
        """Return the stored marker, or None when there is no progress.

        Unreadable markers are treated as no progress (fail-open): the
        pipeline restarts from its first task rather than refusing to run.
        """

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("failed to load progress from %s: %s", self.path, e)
            return None

        # task names may carry significant whitespace (an SSID), keep it
        marker = text.rstrip("\r\n")
        if not marker.strip():
            return None
        return marker

    def save(self, name: str, *, target: Optional[ExecutionContext] = None) -> Path:
        """Write ``name`` as the marker, in ``target``'s context if given."""

        dest = Path((target or self.context).progress_file)
        if not name:
            return dest

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(name, encoding="utf-8")
        except OSError as e:
            raise ProgressError(f"failed to save progress to {dest}: {e}") from e

        logger.debug("Progress saved: %s -> %s", name, dest)
        return dest

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise ProgressError(f"failed to remove {self.path}: {e}") from e
        logger.info("Progress cleared (%s)", self.path)
