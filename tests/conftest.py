# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from postinstall.core.installer import InstallerController
from postinstall.core.state import AppState
from postinstall.executors.task_executors import ExecutorRegistry
from postinstall.tasks.task_models import TaskType

from .fakes import FakePackageSource, RecordingExecutor, make_controller, package_with_steps


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the installer and the CLI.

    A SimpleNamespace rather than config.Settings keeps tests independent of
    the environment and of any local .env file.
    """
    data_dir = tmp_path / ".postinstall"
    return SimpleNamespace(
        app_name="postinstall-test",
        log_level="INFO",
        packages_file=tmp_path / "installed.json",
        extra_namespace="postinstall",
        root_dir=tmp_path,
        self_edit=False,
        base_url="/",
        lock_timeout=0.2,
        data_dir=data_dir,
        global_install_file=data_dir / "installs_app.py",
        local_install_file=data_dir / "no_commit" / "local_installs_app.py",
        install_status_file=data_dir / "no_commit" / "install_status.json",
    )


@pytest.fixture()
def source() -> FakePackageSource:
    """Three packages, dependency order: lib-a (leaf) -> lib-b -> app."""
    return FakePackageSource(
        [
            package_with_steps("vendor/lib-a", {"type": "file", "file": "setup.sql", "scope": "global"}),
            package_with_steps("vendor/no-install", []),
            package_with_steps(
                "vendor/lib-b",
                [
                    {"type": "class", "class": "lib_b.install:Installer", "description": "Create tables"},
                    {"type": "url", "url": "http://localhost/lib-b/setup", "scope": "local"},
                ],
            ),
            package_with_steps("vendor/app", [{"type": "file", "file": "install/app.py"}]),
        ]
    )


@pytest.fixture()
def controller(settings: SimpleNamespace, source: FakePackageSource) -> InstallerController:
    return make_controller(settings, source)


@pytest.fixture()
def recorder() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def state(settings: SimpleNamespace, controller: InstallerController, recorder: RecordingExecutor) -> AppState:
    executors = ExecutorRegistry()
    for task_type in TaskType:
        executors.register(task_type, recorder)
    return AppState(settings=settings, installer=controller, executors=executors)
