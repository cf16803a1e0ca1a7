# src/postinstall/tasks/task_loader.py

"""
Build the ordered list of install tasks from package metadata.

Package order comes from the package manager (dependencies first) and is kept
as-is: it is the execution order of the tasks.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..core.ports import Package
from ..errors import ConfigurationError
from .task_models import TASK_TYPES, InstallTask, PackageRef, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "postinstall"


def _install_block(package: Package, namespace: str) -> Any:
    extra = getattr(package, "extra", None) or {}
    if not isinstance(extra, Mapping):
        return None
    section = extra.get(namespace)
    if not isinstance(section, Mapping):
        return None
    return section.get("install")


def parse_install_step(step: Any, package: PackageRef) -> InstallTask:
    """Turn one declared step into a descriptor of the right variant."""
    if not isinstance(step, Mapping):
        raise ConfigurationError(
            f"In package '{package.name}', each install step must be a mapping, got {type(step).__name__}."
        )
    if "type" not in step:
        raise ConfigurationError(f"No type found for install step in package '{package.name}'.")

    task_cls = TASK_TYPES.get(step["type"]) if isinstance(step["type"], str) else None
    if task_cls is None:
        raise ConfigurationError(
            f"Unknown type '{step['type']}' for install step in package '{package.name}'."
        )
    return task_cls.from_step(step, package)


def tasks_for_package(package: Package, *, namespace: str = DEFAULT_NAMESPACE) -> list[InstallTask]:
    steps = _install_block(package, namespace)
    if steps is None:
        return []

    ref = PackageRef.of(package)
    if not isinstance(steps, (Mapping, list, tuple)):
        raise ConfigurationError(
            f"Error in package '{ref.name}': extra.{namespace}.install should be a list "
            "of files/urls/classes to install."
        )
    if not steps:
        return []

    # A single mapping is shorthand for a one-element list.
    if isinstance(steps, Mapping):
        return [parse_install_step(steps, ref)]
    return [parse_install_step(step, ref) for step in steps]


def load_install_tasks(
    packages: Iterable[Package],
    *,
    namespace: str = DEFAULT_NAMESPACE,
) -> list[InstallTask]:
    tasks: list[InstallTask] = []
    for package in packages:
        tasks.extend(tasks_for_package(package, namespace=namespace))
    logger.debug("Loaded %d install tasks from package metadata", len(tasks))
    return tasks


def apply_statuses(tasks: Sequence[InstallTask], records: Iterable[Mapping[str, Any]]) -> int:
    """
    Copy the persisted status onto every structurally matching task.

    Returns the number of (task, record) matches applied.
    """
    applied = 0
    for record in records:
        for task in tasks:
            if task.matches(record):
                task.status = TaskStatus.from_record(record.get("status"))
                applied += 1
    return applied
