"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from archsway_installer.errors import TaskError
from archsway_installer.lib.env import ExecutionContext
from archsway_installer.parameters import Parameters
from archsway_installer.pipeline import DEFAULT, BaseTask, Signal
from archsway_installer.state_store import ProgressStore


class FakeTask(BaseTask):
    """Records its invocations into a shared journal."""

    def __init__(
        self,
        name: str,
        journal: List[str],
        *,
        signal: Signal = DEFAULT,
        output: str = "",
        fail: Optional[str] = None,
    ) -> None:
        self.name = name
        self.signal = signal
        self.journal = journal
        self.output = output
        self.fail = fail

    def run(self) -> str:
        self.journal.append(self.name or "<unnamed>")
        if self.fail:
            raise TaskError(self.fail)
        return self.output


@pytest.fixture
def journal() -> List[str]:
    return []


@pytest.fixture
def task(journal: List[str]):
    """Build recording fake tasks that share the test's journal."""

    def make(name: str, **kwargs) -> FakeTask:
        return FakeTask(name, journal, **kwargs)

    return make


@pytest.fixture
def context(tmp_path: Path) -> ExecutionContext:
    """Provide an execution context rooted in a temporary directory."""
    return ExecutionContext(chroot=str(tmp_path / "current"), user="root")


@pytest.fixture
def store(context: ExecutionContext) -> ProgressStore:
    return ProgressStore(context)


@pytest.fixture
def parameters() -> Parameters:
    """Provide a complete set of installation parameters."""
    return Parameters(
        efi=True,
        block_device="nvme0n1",
        part_num=2,
        part_num_prefix="p",
        timezone="America/Toronto",
        hostname="dhost",
        username="alice",
        user_id="1000",
        user_gid="1000",
        net_dev="wlp1s0",
        net_dev_iso="wlan0",
        wifi_enabled=True,
        wifi_ssid="HomeNet",
        wifi_password="secret",
    )
