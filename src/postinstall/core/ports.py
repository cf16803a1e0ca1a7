# src/postinstall/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The installer depends on Protocols rather than on a concrete package manager or
on concrete executors, so both can be swapped (and faked in tests).
"""

from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from ..tasks.task_models import InstallTask


class Package(Protocol):
    """A package as exposed by the package manager."""

    @property
    def pretty_name(self) -> str: ...

    @property
    def version(self) -> str: ...

    @property
    def extra(self) -> Mapping[str, Any]: ...


class PackageSource(Protocol):
    """
    Supplies installed packages ordered by dependencies (leaves first).

    Ordering is the package manager's job; the installer never re-sorts.
    """

    def packages(self) -> Sequence[Package]: ...


class TaskExecutor(Protocol):
    """Performs the effect of one install task (run a file, open a URL, call a class)."""

    def execute(self, task: InstallTask) -> None: ...
