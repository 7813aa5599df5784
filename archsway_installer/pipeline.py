from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Protocol, Union

from .errors import ProgressError, TaskError
from .lib.env import ExecutionContext
from .state_store import ProgressStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Default:
    """Run, report, persist the marker and continue."""


@dataclass(frozen=True)
class Info:
    """Print the task's output; never persisted."""


@dataclass(frozen=True)
class RequireUserIdentity:
    """The task reports the acting user, which must equal ``user``. Never persisted."""

    user: str


@dataclass(frozen=True)
class StageBoundary:
    """Persist the marker in ``target``'s context and stop the pipeline."""

    target: ExecutionContext


Signal = Union[Default, Info, RequireUserIdentity, StageBoundary]

DEFAULT = Default()
INFO = Info()


class Task(Protocol):
    """A single provisioning action.

    ``name`` doubles as the resume key; an empty name never anchors progress.
    ``run`` performs the side effect and returns text for the operator, or
    raises TaskError. It is not assumed to be idempotent.
    """

    name: str
    signal: Signal

    def run(self) -> str:
        ...


class BaseTask:
    name: str = ""
    signal: Signal = DEFAULT

    def run(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Outcome(str, Enum):
    COMPLETED = "completed"
    PAUSED_FOR_STAGE_BOUNDARY = "paused_for_stage_boundary"
    FAILED = "failed"


@dataclass(frozen=True)
class RunOutcome:
    outcome: Outcome
    ran_tasks: List[str] = field(default_factory=list)
    skipped_tasks: List[str] = field(default_factory=list)
    # The failing task, or the stage boundary the run stopped at.
    task: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILED

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


def _label(task: Task) -> str:
    return task.name or type(task).__name__


class TaskRunner:
    """Runs an ordered task list, resuming after the last completed task.

    While a marker is pending the runner skips named tasks without running
    them; the task named by the marker is skipped too and execution resumes
    right after it. Unnamed tasks always run when reached.

    The first task failure ends the run. Progress write failures are only
    warnings: a lost checkpoint is recoverable, an aborted install is not.
    """

    def __init__(self, store: ProgressStore, tasks: Iterable[Task] = ()) -> None:
        self.store = store
        self._tasks: List[Task] = list(tasks)

    def add(self, task: Task) -> None:
        self._tasks.append(task)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def names(self) -> List[str]:
        return [t.name for t in self._tasks if t.name]

    def run_from(self, task_name: str) -> RunOutcome:
        """Pretend ``task_name`` was the last completed task, then run.

        Execution starts with the task *after* ``task_name``.
        """

        if task_name not in self.names():
            return self._failed([], [], task_name, f"unknown task '{task_name}'")
        try:
            self.store.save(task_name)
        except ProgressError as e:
            return self._failed([], [], task_name, f"failed to overwrite current task: {e}")
        return self.run()

    def run(self) -> RunOutcome:
        marker = self.store.load()
        skipping = bool(marker)
        if skipping:
            logger.info("Resuming after task %s (%s)", marker, self.store.path)

        ran: List[str] = []
        skipped: List[str] = []

        for task in self._tasks:
            name = task.name
            if name:
                logger.info("▒▒ %s", name)

            if skipping and name:
                if name == marker:
                    skipping = False
                logger.info("▒▒ skipped")
                skipped.append(name)
                continue

            try:
                output = task.run()
            except TaskError as e:
                return self._failed(ran, skipped, _label(task), str(e))
            ran.append(_label(task))

            signal = task.signal
            output = (output or "").strip()

            if isinstance(signal, RequireUserIdentity):
                if output != signal.user:
                    return self._failed(
                        ran,
                        skipped,
                        _label(task),
                        f"required user: {signal.user}, current user: {output or '<unknown>'}",
                    )
                logger.info("▒▒ ok")

            elif isinstance(signal, Info):
                if output:
                    logger.info("%s", output)

            elif isinstance(signal, StageBoundary):
                self._persist(name, target=signal.target)
                logger.info("Stage %s completed; continue in context %s", name, signal.target)
                return RunOutcome(
                    outcome=Outcome.PAUSED_FOR_STAGE_BOUNDARY,
                    ran_tasks=ran,
                    skipped_tasks=skipped,
                    task=name,
                )

            else:
                logger.info("▒▒ ok")
                if output:
                    logger.info("%s", output)
                self._persist(name)

        if skipping:
            logger.warning("Progress marker %s matched no task; nothing was run", marker)

        return RunOutcome(outcome=Outcome.COMPLETED, ran_tasks=ran, skipped_tasks=skipped)

    def _persist(self, name: str, *, target: Optional[ExecutionContext] = None) -> None:
        if not name:
            return
        try:
            self.store.save(name, target=target)
        except ProgressError as e:
            logger.warning("▒▒ warning: failed to save status: %s", e)

    def _failed(self, ran: List[str], skipped: List[str], task: str, reason: str) -> RunOutcome:
        logger.error("▒▒ error: %s: %s", task, reason)
        return RunOutcome(
            outcome=Outcome.FAILED,
            ran_tasks=ran,
            skipped_tasks=skipped,
            task=task,
            reason=reason,
        )
