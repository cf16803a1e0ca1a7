# tests/test_status_store.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from postinstall.errors import ConfigurationError, InstallIOError
from postinstall.tasks.status_store import StatusStore, ensure_writable, parse_status_file
from postinstall.tasks.task_models import FileInstallTask, PackageRef, TaskStatus, UrlInstallTask

PKG = PackageRef("vendor/lib-a", "1.0.0")

running_as_root = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0, reason="root bypasses file permissions"
)


def _store(tmp_path: Path) -> StatusStore:
    return StatusStore(tmp_path / "installs_app.py", tmp_path / "no_commit" / "local_installs_app.py")


def test_save_partitions_by_scope(tmp_path: Path) -> None:
    store = _store(tmp_path)
    tasks = [
        FileInstallTask(locator="setup.sql", package=PKG, scope="global", status=TaskStatus.DONE),
        UrlInstallTask(locator="http://x", package=PKG, scope="local"),
        FileInstallTask(locator="other.py", package=PKG, scope=""),
    ]
    store.save(tasks)

    global_records = store.read(store.global_path)
    local_records = store.read(store.local_path)
    assert [r.get("file") for r in global_records] == ["setup.sql", "other.py"]
    assert global_records[0]["status"] == "done"
    assert [r["url"] for r in local_records] == ["http://x"]
    assert store.read_all() == global_records + local_records


def test_files_carry_commit_guidance(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save([])

    global_text = store.global_path.read_text("utf-8")
    local_text = store.local_path.read_text("utf-8")
    assert global_text.startswith("# This file is automatically generated")
    assert "should be committed" in global_text
    assert "should NOT be committed" in local_text
    assert "INSTALLS = []" in global_text
    assert not list(tmp_path.rglob("*.tmp"))


def test_unknown_scope_fails_before_writing(tmp_path: Path) -> None:
    store = _store(tmp_path)
    task = FileInstallTask(locator="a.py", package=PKG, scope="galaxy")

    with pytest.raises(ConfigurationError, match="Unknown install task scope 'galaxy'"):
        store.save([task])
    assert not store.global_path.exists()
    assert not store.local_path.exists()


def test_save_none_is_a_noop(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(None)
    assert not store.global_path.exists()


def test_missing_file_reads_as_empty(tmp_path: Path) -> None:
    assert _store(tmp_path).read_all() == []


def test_status_file_is_not_executed() -> None:
    text = "import os\nos.remove('/nope')\nINSTALLS = [{'type': 'file', 'file': 'a.py', 'status': 'done'}]\n"
    assert parse_status_file(text) == [{"type": "file", "file": "a.py", "status": "done"}]


@pytest.mark.parametrize(
    "text",
    [
        "INSTALLS = [",
        "OTHER = []",
        "INSTALLS = {'a': 1}",
        "INSTALLS = [1, 2]",
        "INSTALLS = [open('x')]",
        "INSTALLS = [{[]: 1}]",
        "INSTALLS = [{'a': {[1]}}]",
    ],
)
def test_malformed_status_file(text: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_status_file(text)


def test_ensure_writable_creates_missing_directories(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "status.py"
    ensure_writable(target)
    assert target.parent.is_dir()
    assert not target.exists()


def test_ensure_writable_restores_umask(tmp_path: Path) -> None:
    previous = os.umask(0o022)
    try:
        ensure_writable(tmp_path / "new" / "file.py")
        assert os.umask(0o022) == 0o022
    finally:
        os.umask(previous)


def test_ensure_writable_fails_when_directory_cannot_be_created(tmp_path: Path) -> None:
    blocker = tmp_path / "f"
    blocker.write_text("", "utf-8")
    with pytest.raises(InstallIOError, match="Unable to create directory"):
        ensure_writable(blocker / "x" / "status.py")


def test_save_surfaces_unwritable_location(tmp_path: Path) -> None:
    blocker = tmp_path / "f"
    blocker.write_text("", "utf-8")
    store = StatusStore(tmp_path / "installs_app.py", blocker / "no_commit" / "local.py")
    with pytest.raises(InstallIOError):
        store.save([FileInstallTask(locator="a.py", package=PKG)])
    assert not store.global_path.exists()


@running_as_root
def test_ensure_writable_rejects_read_only_file(tmp_path: Path) -> None:
    target = tmp_path / "status.py"
    target.write_text("INSTALLS = []\n", "utf-8")
    target.chmod(0o444)
    try:
        with pytest.raises(InstallIOError, match="not writable"):
            ensure_writable(target)
    finally:
        target.chmod(0o644)


@running_as_root
def test_ensure_writable_rejects_read_only_directory(tmp_path: Path) -> None:
    directory = tmp_path / "locked"
    directory.mkdir()
    directory.chmod(0o555)
    try:
        with pytest.raises(InstallIOError, match="directory is not writable"):
            ensure_writable(directory / "status.py")
    finally:
        directory.chmod(0o755)
