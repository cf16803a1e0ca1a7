# src/postinstall/tasks/operation_store.py

"""
File-backed record of the install operation currently in flight.

The install flow spans several independent invocations (trigger, confirm,
validate), so "what are we installing right now" lives on disk:

    {"version": 1, "type": "one", "task": {...}}
    {"version": 1, "type": "all"}

No file means no install in progress.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import time
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ..errors import RetryableError, StateError
from .status_store import ensure_writable

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class OperationKind(StrEnum):
    ONE = "one"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class OperationRecord:
    kind: OperationKind
    task: dict[str, Any] | None = None
    version: int = SCHEMA_VERSION

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version, "type": self.kind.value}
        if self.kind == OperationKind.ONE:
            data["task"] = self.task
        return data

    @classmethod
    def from_json(cls, data: Any) -> OperationRecord:
        if not isinstance(data, dict):
            raise StateError("Install status file must contain a JSON object.")

        # Records written before versioning carry no version field.
        version = data.get("version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise StateError(f"Unsupported install status version: {version!r}")

        try:
            kind = OperationKind(data.get("type"))
        except ValueError:
            raise StateError(f"Unknown install operation type: {data.get('type')!r}") from None

        task = data.get("task")
        if kind == OperationKind.ONE and not isinstance(task, dict):
            raise StateError("Install operation of type 'one' has no task.")
        return cls(kind=kind, task=task if kind == OperationKind.ONE else None, version=version)


class OperationStore:
    def __init__(
        self,
        path: str | Path,
        *,
        lock_timeout: float = 2.0,
        stale_lock_seconds: float = 300.0,
    ) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = float(lock_timeout)
        self.stale_lock_seconds = float(stale_lock_seconds)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> OperationRecord | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text("utf-8"))
        except json.JSONDecodeError as e:
            raise StateError(f"Install status file {self.path} is not valid JSON: {e}") from e
        return OperationRecord.from_json(data)

    def write(self, record: OperationRecord) -> None:
        ensure_writable(self.path)
        self.path.write_text(json.dumps(record.to_json(), ensure_ascii=False), "utf-8")
        logger.debug("Install operation recorded: %s", record.kind.value)

    def delete(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()
        logger.debug("Install operation cleared (%s)", self.path)

    # ---- advisory lock ----

    def _break_stale_lock(self) -> None:
        try:
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            return
        if age > self.stale_lock_seconds:
            logger.warning("Removing stale installer lock %s (age=%.0fs)", self.lock_path, age)
            with contextlib.suppress(FileNotFoundError):
                self.lock_path.unlink()

    @contextlib.contextmanager
    def lock(self) -> Iterator[None]:
        """
        Exclusive-create lock around a read-modify-write of the installer files.

        Raises RetryableError when another process keeps the lock past the timeout.
        """
        ensure_writable(self.lock_path)
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                self._break_stale_lock()
                if time.monotonic() >= deadline:
                    raise RetryableError(
                        f"Another install is in progress (lock {self.lock_path}). Try again."
                    ) from None
                time.sleep(0.05)
                continue
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(str(os.getpid()))
            break

        try:
            yield
        finally:
            with contextlib.suppress(FileNotFoundError):
                self.lock_path.unlink()
