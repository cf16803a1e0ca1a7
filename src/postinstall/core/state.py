# src/postinstall/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..executors.task_executors import ExecutorRegistry
from .installer import InstallerController


@dataclass
class AppState:
    # Settings object (config.Settings or any object with the same attributes).
    settings: Any

    installer: InstallerController
    executors: ExecutorRegistry
