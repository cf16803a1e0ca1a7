# src/postinstall/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- wires the package manifest reader, status files and executors into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.installer import InstallerController
from ..core.state import AppState
from ..executors.task_executors import default_registry
from ..packages.installed_json import InstalledJsonPackageSource

logger = logging.getLogger(__name__)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Settings stay injectable so tests can point every file at a tmp dir.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    source = InstalledJsonPackageSource(settings.packages_file)
    installer = InstallerController.from_settings(settings, source)
    logger.debug(
        "Installer wired packages=%s global=%s local=%s status=%s self_edit=%s",
        settings.packages_file,
        settings.global_install_file,
        settings.local_install_file,
        settings.install_status_file,
        settings.self_edit,
    )

    return AppState(
        settings=settings,
        installer=installer,
        executors=default_registry(root_dir=settings.root_dir),
    )
