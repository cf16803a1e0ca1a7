# src/postinstall/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.installer import InstallerState
from ..core.state import AppState
from ..errors import InstallerError
from ..executors.task_executors import run_next
from ..tasks.task_models import TaskStatus, TaskType

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error"


class CommandRegistry:
    """Slash-command registry used by the console (/help, /list, /install, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Installer errors are reported to the user, not raised.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                return cast(CommandHandler3, handler)(state, args, emit)
            return cast(CommandHandler2, handler)(state, args)
        except InstallerError as e:
            logger.warning("/%s failed: %s", name, e)
            return f"{ERROR_PREFIX} ({type(e).__name__}): {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _format_task(index: int, task) -> str:
    mark = "x" if task.status == TaskStatus.DONE else " "
    return f"{index:>3}. [{mark}] ({task.type}, {task.scope}) {task.label}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    installer = state.installer
    tasks = installer.get_install_tasks()
    settings = state.settings
    return (
        "Status:\n"
        f"  State: {installer.state().value}\n"
        f"  Tasks: {len(tasks)} total, {installer.todo_count()} todo\n"
        f"  Self edit: {'ON' if installer.self_edit else 'OFF'}\n"
        f"  Global file: {settings.global_install_file}\n"
        f"  Local file: {settings.local_install_file}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.installer.get_install_tasks()
    if not tasks:
        return "No install tasks declared by installed packages."
    return "\n".join(["Install tasks:"] + [_format_task(i, t) for i, t in enumerate(tasks, start=1)])


def cmd_reload(state: AppState, args: list[str]) -> str:
    tasks = state.installer.load()
    return f"Reloaded {len(tasks)} install tasks."


def cmd_install(state: AppState, args: list[str]) -> str:
    """
    /install N   -> start installing task N (see /list)
    """
    tasks = state.installer.get_install_tasks()
    if len(args) != 1 or not args[0].isdigit():
        return "Usage: /install N (task number from /list). Use /all for every pending task."
    idx = int(args[0])
    if not 1 <= idx <= len(tasks):
        return f"No task #{idx}. There are {len(tasks)} tasks."

    task = tasks[idx - 1]
    redirect = state.installer.install(task.to_record())
    return (
        f"Installing: {task.label}\n"
        f"  Continue at {redirect.location(state.settings.base_url)} or use /run."
    )


def cmd_all(state: AppState, args: list[str]) -> str:
    todo = state.installer.todo_count()
    if todo == 0:
        return "Nothing to install: every task is done."
    redirect = state.installer.install_all()
    return (
        f"Installing all pending tasks ({todo}).\n"
        f"  Continue at {redirect.location(state.settings.base_url)} or use /run."
    )


def cmd_next(state: AppState, args: list[str]) -> str:
    task = state.installer.get_next_install_task()
    if task is None:
        return "No install task pending."
    return f"Next: {task.label} ({task.type}: {task.locator})"


def cmd_run(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /run   -> run the next task of the current operation.
    URL tasks only open the page; confirm them with /done.
    """
    installer = state.installer
    if installer.state() == InstallerState.IDLE:
        return "No install in progress. Use /install N or /all first."

    pending = installer.get_next_install_task()
    if pending is not None and emit:
        emit(f"[RUN] {pending.label}")

    task = run_next(installer, state.executors, confirm_types={TaskType.URL})
    if task is None:
        return "Nothing left to run."
    if task.type == TaskType.URL:
        return f"Opened {task.locator}. Use /done when the step is complete."
    return f"Done: {task.label} ({installer.todo_count()} todo remaining)."


def cmd_done(state: AppState, args: list[str]) -> str:
    installer = state.installer
    installer.validate_current_install()
    if installer.state() == InstallerState.IDLE:
        return "Install step validated. No operation in progress."
    nxt = installer.get_next_install_task()
    return f"Install step validated. Next: {nxt.label if nxt else '-'}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show installer state and files.")
registry.register("list", cmd_list, help_text="List install tasks in execution order.", aliases=["ls"])
registry.register("reload", cmd_reload, help_text="Reload tasks from packages and status files.")
registry.register("install", cmd_install, help_text="Start installing one task: /install N.")
registry.register("all", cmd_all, help_text="Start installing every pending task.")
registry.register("next", cmd_next, help_text="Show the next task of the current operation.")
registry.register("run", cmd_run, help_text="Run the next task of the current operation.")
registry.register("done", cmd_done, help_text="Mark the current task as done.")
