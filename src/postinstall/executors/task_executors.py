# src/postinstall/executors/task_executors.py

from __future__ import annotations

"""
Task executors.

One strategy per task type:
- file: run a Python file shipped by the package,
- url: hand the URL to the user (browser); the user confirms when done,
- class: import a class, instantiate it, call its install().

The installer core only selects the strategy; executors never touch the status
files. Failures propagate so the operation stays in flight and can be retried.
"""

import importlib
import logging
import runpy
import webbrowser
from collections.abc import Callable, Collection
from pathlib import Path

from ..core.installer import InstallerController, InstallerState
from ..core.ports import TaskExecutor
from ..errors import ConfigurationError, InstallIOError
from ..tasks.task_models import InstallTask, TaskType

logger = logging.getLogger(__name__)


class FileExecutor:
    def __init__(self, root_dir: str | Path = ".") -> None:
        self.root_dir = Path(root_dir)

    def resolve(self, task: InstallTask) -> Path:
        path = Path(task.locator)
        if not path.is_absolute():
            path = self.root_dir / path
        return path

    def execute(self, task: InstallTask) -> None:
        path = self.resolve(task)
        if not path.is_file():
            raise InstallIOError(f"Install file not found for {task.package.name}: {path}")
        logger.info("Running install file %s", path)
        runpy.run_path(str(path), run_name="__postinstall__")


class UrlExecutor:
    def __init__(self, opener: Callable[[str], object] = webbrowser.open) -> None:
        self._open = opener

    def execute(self, task: InstallTask) -> None:
        logger.info("Opening install URL %s", task.locator)
        self._open(task.locator)


def import_object(dotted: str) -> object:
    """Import "pkg.mod:Attr" or "pkg.mod.Attr"."""
    if ":" in dotted:
        module_name, _, attr = dotted.partition(":")
    else:
        module_name, _, attr = dotted.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(f"Invalid class reference '{dotted}'.")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module '{module_name}' for '{dotted}': {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"Module '{module_name}' has no attribute '{attr}'.") from None


class ClassExecutor:
    def execute(self, task: InstallTask) -> None:
        cls = import_object(task.locator)
        if not callable(cls):
            raise ConfigurationError(f"'{task.locator}' is not a class.")
        instance = cls()
        install = getattr(instance, "install", None)
        logger.info("Running install class %s", task.locator)
        if callable(install):
            install()
        elif callable(instance):
            instance()
        else:
            raise ConfigurationError(f"'{task.locator}' has neither install() nor __call__.")


class ExecutorRegistry:
    """Maps a task type to the executor that performs it."""

    def __init__(self) -> None:
        self._executors: dict[TaskType, TaskExecutor] = {}

    def register(self, task_type: TaskType, executor: TaskExecutor) -> None:
        self._executors[TaskType(task_type)] = executor

    def get(self, task_type: TaskType) -> TaskExecutor:
        executor = self._executors.get(task_type)
        if executor is None:
            raise ConfigurationError(f"No executor registered for install tasks of type '{task_type}'.")
        return executor

    def dispatch(self, task: InstallTask) -> None:
        self.get(task.type).execute(task)


def default_registry(*, root_dir: str | Path = ".") -> ExecutorRegistry:
    registry = ExecutorRegistry()
    registry.register(TaskType.FILE, FileExecutor(root_dir))
    registry.register(TaskType.URL, UrlExecutor())
    registry.register(TaskType.CLASS, ClassExecutor())
    return registry


def run_next(
    controller: InstallerController,
    registry: ExecutorRegistry,
    *,
    confirm_types: Collection[TaskType] = (),
) -> InstallTask | None:
    """
    Run the next task of the operation in flight.

    The task is marked done right after its executor returns, unless its type is
    in confirm_types: then the caller validates later (e.g. once the user
    finished a URL step).
    Returns None when nothing is in flight or nothing is left to do.
    """
    task = controller.get_next_install_task()
    if task is None:
        if controller.state() == InstallerState.RUNNING_ALL:
            # Nothing left: validating retires the "all" operation.
            controller.validate_current_install()
        return None

    registry.dispatch(task)
    if task.type not in confirm_types:
        controller.validate_current_install()
    return task
