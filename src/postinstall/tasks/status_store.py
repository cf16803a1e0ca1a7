# src/postinstall/tasks/status_store.py

from __future__ import annotations

import ast
import contextlib
import logging
import os
import pprint
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError, InstallIOError
from .task_models import InstallTask, TaskScope

logger = logging.getLogger(__name__)

STATUS_VAR = "INSTALLS"

_GLOBAL_HEADER = """\
# This file is automatically generated by postinstall. Do not modify it, as it could be overwritten.
# It contains the status of all global installation processes for the packages you have installed.
# If you are working with a source repository, this file should be committed.
"""

_LOCAL_HEADER = """\
# This file is automatically generated by postinstall. Do not modify it, as it could be overwritten.
# It contains the status of all local installation processes for the packages you have installed.
# If you are working with a source repository, this file should NOT be committed.
"""


def ensure_writable(path: str | Path) -> None:
    """
    Make sure `path` can be written.

    An existing file must be writable. Otherwise the containing directory is
    created if needed (recursively, mode 0777 with the umask cleared for the
    call) and must be writable.
    """
    path = Path(path)
    directory = path.parent

    if path.exists():
        if os.access(path, os.W_OK):
            return
        raise InstallIOError(f"File {path} is not writable.")

    if not directory.exists():
        old_umask = os.umask(0)
        try:
            directory.mkdir(mode=0o777, parents=True, exist_ok=True)
        except OSError as e:
            raise InstallIOError(f"Unable to create directory {directory}") from e
        finally:
            os.umask(old_umask)
        logger.debug("Created directory %s", directory)

    if not os.access(directory, os.W_OK):
        raise InstallIOError(f"Unable to create file {path}: the directory is not writable.")


def render_status_file(records: list[dict[str, Any]], *, header: str) -> str:
    body = pprint.pformat(records, indent=4, sort_dicts=False)
    return f"{header}\n{STATUS_VAR} = {body}\n"


def parse_status_file(text: str, *, source: str = "<status>") -> list[dict[str, Any]]:
    """Extract the `INSTALLS = [...]` literal without executing the file."""
    try:
        tree = ast.parse(text, filename=source)
    except SyntaxError as e:
        raise ConfigurationError(f"Status file {source} is not valid: {e}") from e

    for node in tree.body:
        if not isinstance(node, ast.Assign):
            continue
        if any(isinstance(t, ast.Name) and t.id == STATUS_VAR for t in node.targets):
            try:
                value = ast.literal_eval(node.value)
            except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError) as e:
                raise ConfigurationError(f"Status file {source} holds an invalid literal: {e}") from e
            if not isinstance(value, list) or not all(isinstance(r, dict) for r in value):
                raise ConfigurationError(f"Status file {source} must hold a list of records.")
            return value

    raise ConfigurationError(f"Status file {source} does not define {STATUS_VAR}.")


class StatusStore:
    """
    Global + local status files.

    Both are rewritten wholesale on every save. Tasks are split by scope:
    global (or empty) scope goes to the global file, local scope to the local one.
    """

    def __init__(self, global_path: str | Path, local_path: str | Path) -> None:
        self.global_path = Path(global_path)
        self.local_path = Path(local_path)

    def read(self, path: str | Path) -> list[dict[str, Any]]:
        path = Path(path)
        if not path.exists():
            return []
        return parse_status_file(path.read_text("utf-8"), source=str(path))

    def read_all(self) -> list[dict[str, Any]]:
        """Global records first, then local ones (so local entries win on conflicts)."""
        return self.read(self.global_path) + self.read(self.local_path)

    @staticmethod
    def partition(tasks: Sequence[InstallTask]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        global_records: list[dict[str, Any]] = []
        local_records: list[dict[str, Any]] = []
        for task in tasks:
            scope = TaskScope.normalize(task.scope)
            if scope == TaskScope.GLOBAL:
                global_records.append(task.to_record())
            elif scope == TaskScope.LOCAL:
                local_records.append(task.to_record())
            else:
                raise ConfigurationError(
                    f"Unknown install task scope '{task.scope}' in package '{task.package.name}'."
                )
        return global_records, local_records

    def save(self, tasks: Sequence[InstallTask] | None) -> None:
        if tasks is None:
            return

        global_records, local_records = self.partition(tasks)

        ensure_writable(self.global_path)
        ensure_writable(self.local_path)

        targets = [
            (self.global_path, render_status_file(global_records, header=_GLOBAL_HEADER)),
            (self.local_path, render_status_file(local_records, header=_LOCAL_HEADER)),
        ]

        # Write both temp files before touching either target.
        staged = [(target.with_name(target.name + ".tmp"), target, content) for target, content in targets]
        try:
            for tmp, _, content in staged:
                tmp.write_text(content, "utf-8")
        except OSError as e:
            for tmp, _, _ in staged:
                with contextlib.suppress(FileNotFoundError):
                    tmp.unlink()
            raise InstallIOError(f"Failed to write install status: {e}") from e

        for tmp, target, _ in staged:
            os.replace(tmp, target)

        logger.info(
            "Saved install status global=%d local=%d (%s, %s)",
            len(global_records),
            len(local_records),
            self.global_path,
            self.local_path,
        )
