# src/postinstall/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

from ..errors import ConfigurationError


class TaskType(StrEnum):
    """Kind of install step; the value is also the key holding the locator."""

    FILE = "file"
    URL = "url"
    CLASS = "class"


class TaskScope(StrEnum):
    """
    Which status file tracks the task.

    - global: shared, committed with the project
    - local: machine specific, never committed
    """

    GLOBAL = "global"
    LOCAL = "local"

    @classmethod
    def normalize(cls, raw: Any) -> str:
        """Empty scope means global. Unknown values are kept so save() can reject them."""
        if raw is None or raw == "":
            return cls.GLOBAL
        try:
            return cls(raw)
        except ValueError:
            return str(raw)


class TaskStatus(StrEnum):
    TODO = "todo"
    DONE = "done"

    @classmethod
    def from_record(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


@dataclass(frozen=True, slots=True)
class PackageRef:
    """Identity of the package that declared a task."""

    name: str
    version: str = ""

    @classmethod
    def of(cls, package: Any) -> PackageRef:
        return cls(
            name=str(getattr(package, "pretty_name")),
            version=str(getattr(package, "version", "") or ""),
        )


@dataclass(slots=True)
class InstallTask:
    """
    One declared post-install step.

    Descriptors are rebuilt on every load, so two descriptors are "the same task"
    when their structural key matches (see `key` / `matches`), never by identity.
    """

    type: ClassVar[TaskType]

    locator: str
    package: PackageRef
    description: str | None = None
    scope: str = TaskScope.GLOBAL
    status: TaskStatus = TaskStatus.TODO

    def __post_init__(self) -> None:
        self.scope = TaskScope.normalize(self.scope)

    @classmethod
    def from_step(cls, step: Mapping[str, Any], package: PackageRef) -> InstallTask:
        """Build a descriptor from a declared step, requiring the variant's locator field."""
        field_name = cls.type.value
        locator = step.get(field_name)
        if locator is None:
            raise ConfigurationError(
                f"In package '{package.name}', install step of type '{cls.type}' "
                f"has no '{field_name}' field."
            )
        description = step.get("description")
        return cls(
            locator=str(locator),
            package=package,
            description=str(description) if description is not None else None,
            scope=step.get("scope") or TaskScope.GLOBAL,
        )

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.package.name, self.type.value, self.locator, self.scope)

    @property
    def label(self) -> str:
        return f"{self.package.name}: {self.description or self.locator}"

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Structural comparison against a flattened record (status file / operation file)."""
        if not isinstance(record, Mapping):
            return False
        return (
            record.get("package") == self.package.name
            and record.get("type") == self.type.value
            and record.get(self.type.value) == self.locator
            and TaskScope.normalize(record.get("scope")) == self.scope
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            self.type.value: self.locator,
            "description": self.description,
            "scope": str(self.scope),
            "status": self.status.value,
            "package": self.package.name,
            "version": self.package.version,
        }


@dataclass(slots=True)
class FileInstallTask(InstallTask):
    type: ClassVar[TaskType] = TaskType.FILE


@dataclass(slots=True)
class UrlInstallTask(InstallTask):
    type: ClassVar[TaskType] = TaskType.URL


@dataclass(slots=True)
class ClassInstallTask(InstallTask):
    type: ClassVar[TaskType] = TaskType.CLASS


TASK_TYPES: dict[str, type[InstallTask]] = {
    TaskType.FILE.value: FileInstallTask,
    TaskType.URL.value: UrlInstallTask,
    TaskType.CLASS.value: ClassInstallTask,
}
