from __future__ import annotations

import argparse
import logging
from typing import Callable, Optional

from . import __version__
from .errors import ProgressError, TaskError
from .lib.env import current_context
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .media import MediaCtx, create_iso, format_device, install_steam, update_bin
from .parameters import Parameters
from .pipeline import RunOutcome, TaskRunner
from .state_store import ProgressStore
from .task_lists import installation_list, qemu_list, sync_list

logger = logging.getLogger(__name__)

ListBuilder = Callable[[Parameters, ProgressStore], TaskRunner]


def list_tasks() -> int:
    store = ProgressStore(current_context())
    for name in installation_list(Parameters.dummy(), store).names():
        print(f"▒▒ {name}")
    return 0


def run_list(build: ListBuilder, *, start_from: Optional[str] = None, clear_first: bool = False) -> RunOutcome:
    """Assemble a task list for the current context and run it.

    ``clear_first`` is for the standalone lists (sync, qemu), which must not
    resume from a marker left by the installation.
    """

    ctx = current_context()
    store = ProgressStore(ctx)
    if clear_first:
        store.clear()

    parameters = Parameters.build(ctx.parameters_file)
    runner = build(parameters, store)
    if start_from:
        return runner.run_from(start_from)
    return runner.run()


def clear_progress() -> int:
    ProgressStore(current_context()).clear()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="archsway-installer", description="Arch Linux + sway installer")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--dry-run", action="store_true", help="Log media commands without executing them")

    sub = p.add_subparsers(dest="command", metavar="<flag>")
    sub.add_parser("list", aliases=["l"], help="print tasks list without execution")
    sub.add_parser("install", aliases=["i"], help="run tasks to install the system")
    sp = sub.add_parser("start-from", aliases=["t"], help="start installation after a specific task")
    sp.add_argument("task", help="name of the last task to consider completed")
    sub.add_parser("clear-progress", aliases=["c"], help="remove file with saved progress")
    sub.add_parser("sync", aliases=["s"], help="(sudo) sync configs and desktop settings")
    sub.add_parser("qemu", aliases=["q"], help="install and configure qemu/kvm")
    sub.add_parser("update-bin", aliases=["u"], help="build new executable from local repo")
    sub.add_parser("build-iso", aliases=["b"], help="create iso with the installer included")
    fp = sub.add_parser("format-dev", aliases=["f"], help="format device creating storage and boot partitions")
    fp.add_argument("dev", help="path to storage device, e.g. /dev/sdb")
    fp.add_argument("iso", help="path to iso file")
    ep = sub.add_parser("steam", aliases=["e"], help="(sudo) install steam")
    ep.add_argument("vga", choices=["intel", "nvidia", "amd"])
    sub.add_parser("version", aliases=["v"], help="print version and exit")
    return p


# aliases are reported under the alias name by argparse
_CANONICAL = {
    "l": "list",
    "i": "install",
    "t": "start-from",
    "c": "clear-progress",
    "s": "sync",
    "q": "qemu",
    "u": "update-bin",
    "b": "build-iso",
    "f": "format-dev",
    "e": "steam",
    "v": "version",
}


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    command = _CANONICAL.get(args.command, args.command)

    if command is None:
        print("missing flag")
        p.print_help()
        return 2
    if command == "version":
        print(f"v{__version__}")
        return 0
    if command != "list":
        configure_logging(log_path=args.log)

    try:
        if command == "list":
            return list_tasks()
        if command == "clear-progress":
            return clear_progress()
        if command == "install":
            return run_list(installation_list).exit_code
        if command == "start-from":
            return run_list(installation_list, start_from=args.task).exit_code
        if command == "sync":
            return run_list(sync_list, clear_first=True).exit_code
        if command == "qemu":
            return run_list(qemu_list, clear_first=True).exit_code

        media = MediaCtx(current_context(), dry_run=args.dry_run)
        if command == "update-bin":
            dest = update_bin(media)
            logger.info("Installed new binary to %s", dest)
        elif command == "build-iso":
            parameters = Parameters.build(media.context.parameters_file)
            for iso in create_iso(media, parameters):
                logger.info("Built %s", iso)
        elif command == "format-dev":
            format_device(media, args.dev, args.iso)
        elif command == "steam":
            install_steam(args.vga, dry_run=args.dry_run)
        return 0
    except (TaskError, ProgressError) as e:
        logger.error("%s failed: %s", command, e)
        return 1
