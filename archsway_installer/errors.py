from __future__ import annotations


class TaskError(RuntimeError):
    """A task's action failed; aborts the pipeline."""


class ProgressError(OSError):
    """The progress marker could not be read or written."""
