# src/postinstall/core/installer.py

"""
Installer controller.

Finds which install tasks the installed packages declare, tracks whether each
one has been run, and drives the "install one" / "install all" flow.

State is never kept in memory between invocations: tasks are rebuilt from
package metadata + status files, and the operation in flight is read from the
operation file. Idle means no operation file.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any
from urllib.parse import urlencode

from ..errors import NotFoundError, StateError
from ..tasks.operation_store import OperationKind, OperationRecord, OperationStore
from ..tasks.status_store import StatusStore
from ..tasks.task_loader import DEFAULT_NAMESPACE, apply_statuses, load_install_tasks
from ..tasks.task_models import InstallTask, TaskStatus
from .ports import PackageSource

logger = logging.getLogger(__name__)

INSTALL_SCREEN = "installer/printInstallationScreen"


class InstallerState(StrEnum):
    IDLE = "idle"
    RUNNING_ONE = "running_one"
    RUNNING_ALL = "running_all"


@dataclass(frozen=True, slots=True)
class InstallRedirect:
    """Tells the caller to hand over to the installation screen."""

    target: str = INSTALL_SCREEN
    self_edit: bool = False

    def location(self, base_url: str = "/") -> str:
        if not base_url.endswith("/"):
            base_url += "/"
        query = urlencode({"selfedit": "true" if self.self_edit else "false"})
        return f"{base_url}{self.target}?{query}"


class InstallerController:
    def __init__(
        self,
        package_source: PackageSource,
        status_store: StatusStore,
        operation_store: OperationStore,
        *,
        self_edit: bool = False,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.package_source = package_source
        self.status_store = status_store
        self.operation_store = operation_store
        self.self_edit = self_edit
        self.namespace = namespace
        self._tasks: list[InstallTask] | None = None

    @classmethod
    def from_settings(cls, settings, package_source: PackageSource) -> InstallerController:
        return cls(
            package_source,
            StatusStore(settings.global_install_file, settings.local_install_file),
            OperationStore(settings.install_status_file, lock_timeout=settings.lock_timeout),
            self_edit=settings.self_edit,
            namespace=settings.extra_namespace,
        )

    # ---- task list ----

    def load(self) -> list[InstallTask]:
        tasks = load_install_tasks(self.package_source.packages(), namespace=self.namespace)
        applied = apply_statuses(tasks, self.status_store.read_all())
        self._tasks = tasks
        logger.info(
            "Install tasks loaded total=%d todo=%d status_matches=%d",
            len(tasks),
            self.todo_count(tasks),
            applied,
        )
        return tasks

    def get_install_tasks(self) -> list[InstallTask]:
        """Ordered tasks (dependencies first), loaded on first access."""
        if self._tasks is None:
            return self.load()
        return self._tasks

    def save(self) -> None:
        """Write the in-memory statuses back (no lock taken here)."""
        self.status_store.save(self._tasks)

    def find_task(self, fields: Mapping[str, Any]) -> InstallTask:
        for task in self.get_install_tasks():
            if task.matches(fields):
                return task
        raise NotFoundError(f"Unable to find an install task matching {dict(fields)!r}.")

    def _first_todo(self) -> InstallTask | None:
        for task in self.get_install_tasks():
            if task.status == TaskStatus.TODO:
                return task
        return None

    # ---- state machine ----

    def state(self) -> InstallerState:
        record = self.operation_store.read()
        if record is None:
            return InstallerState.IDLE
        if record.kind == OperationKind.ONE:
            return InstallerState.RUNNING_ONE
        return InstallerState.RUNNING_ALL

    def _start(self, record: OperationRecord) -> InstallRedirect:
        with self.operation_store.lock():
            try:
                previous = self.operation_store.read()
            except StateError:
                logger.warning("Overwriting unreadable install status file %s", self.operation_store.path)
                previous = None
            if previous is not None:
                logger.warning("Replacing in-flight install operation type=%s", previous.kind.value)
            self.operation_store.write(record)
        return InstallRedirect(self_edit=self.self_edit)

    def install(self, task_fields: Mapping[str, Any]) -> InstallRedirect:
        """Start installing a single task (given as its flattened record)."""
        logger.info("Install requested for one task: %s", dict(task_fields))
        return self._start(OperationRecord(kind=OperationKind.ONE, task=dict(task_fields)))

    def install_all(self) -> InstallRedirect:
        """Start installing every task still marked todo."""
        logger.info("Install requested for all pending tasks")
        return self._start(OperationRecord(kind=OperationKind.ALL))

    def get_next_install_task(self) -> InstallTask | None:
        record = self.operation_store.read()
        if record is None:
            return None
        if record.kind == OperationKind.ONE:
            return self.find_task(record.task or {})
        return self._first_todo()

    def validate_current_install(self) -> None:
        """Mark the task currently being installed as done."""
        with self.operation_store.lock():
            record = self.operation_store.read()
            if record is None:
                raise StateError(
                    "No install operation in progress; cannot tell which task was run."
                )

            # Statuses may have been saved by another process since our last load.
            self.load()

            if record.kind == OperationKind.ONE:
                task = self.find_task(record.task or {})
                task.status = TaskStatus.DONE
                self.save()
                self.operation_store.delete()
                logger.info("Install task done: %s", task.label)
                return

            task = self._first_todo()
            if task is not None:
                task.status = TaskStatus.DONE
                self.save()
                logger.info("Install task done: %s", task.label)

            if self._first_todo() is None:
                self.operation_store.delete()
                logger.info("All install tasks done")

    def todo_count(self, tasks: Sequence[InstallTask] | None = None) -> int:
        tasks = self.get_install_tasks() if tasks is None else tasks
        return sum(1 for t in tasks if t.status == TaskStatus.TODO)
