# tests/test_commands.py

from __future__ import annotations

from postinstall.cli.commands import CommandRegistry
from postinstall.cli.commands import registry as commands
from postinstall.cli.console import run_command
from postinstall.core.installer import InstallerState
from postinstall.errors import StateError


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called == {"h2": 1, "h3": 1}


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_installer_errors_become_replies(state) -> None:
    reg = CommandRegistry()

    def failing(state, args):
        raise StateError("nothing in flight")

    reg.register("fail", failing, "fails")
    assert reg.handle(state, "/fail") == "Error (StateError): nothing in flight"


def test_list_shows_tasks_in_order(state) -> None:
    out = commands.handle(state, "/list") or ""
    lines = out.splitlines()
    assert lines[0] == "Install tasks:"
    assert "vendor/lib-a: setup.sql" in lines[1]
    assert "vendor/lib-b: Create tables" in lines[2]
    assert "(url, local)" in lines[3]
    assert all("[ ]" in line for line in lines[1:])


def test_install_run_flow(state, recorder) -> None:
    out = commands.handle(state, "/install 1") or ""
    assert "Installing: vendor/lib-a: setup.sql" in out
    assert "/installer/printInstallationScreen?selfedit=false" in out
    assert state.installer.state() == InstallerState.RUNNING_ONE

    assert (commands.handle(state, "/next") or "").startswith("Next: vendor/lib-a")

    out = commands.handle(state, "/run") or ""
    assert out.startswith("Done: vendor/lib-a: setup.sql")
    assert [t.locator for t in recorder.executed] == ["setup.sql"]
    assert state.installer.state() == InstallerState.IDLE
    assert "[x]" in (commands.handle(state, "/list") or "").splitlines()[1]


def test_url_task_needs_done(state, recorder) -> None:
    commands.handle(state, "/install 3")
    out = commands.handle(state, "/run") or ""
    assert "Use /done" in out
    assert state.installer.state() == InstallerState.RUNNING_ONE

    assert (commands.handle(state, "/done") or "").startswith("Install step validated.")
    assert state.installer.state() == InstallerState.IDLE


def test_all_then_run_until_finished(state) -> None:
    assert (commands.handle(state, "/all") or "").startswith("Installing all pending tasks (4)")

    assert (commands.handle(state, "/run") or "").startswith("Done: vendor/lib-a")
    assert (commands.handle(state, "/run") or "").startswith("Done: vendor/lib-b: Create tables")
    assert "Use /done" in (commands.handle(state, "/run") or "")
    assert "Next: vendor/app" in (commands.handle(state, "/done") or "")
    assert (commands.handle(state, "/run") or "").startswith("Done: vendor/app")

    assert state.installer.todo_count() == 0
    assert state.installer.state() == InstallerState.IDLE
    assert (commands.handle(state, "/all") or "") == "Nothing to install: every task is done."


def test_usage_and_errors(state) -> None:
    assert (commands.handle(state, "/install") or "").startswith("Usage:")
    assert (commands.handle(state, "/install 9") or "").startswith("No task #9")
    assert (commands.handle(state, "/run") or "").startswith("No install in progress")
    assert (commands.handle(state, "/done") or "").startswith("Error (StateError)")
    assert "State: idle" in (commands.handle(state, "/status") or "")


def test_one_shot_run_reports_package_code_crash(state, recorder) -> None:
    commands.handle(state, "/all")
    recorder.fail = True

    code, reply = run_command(state, "run")
    assert code == 1
    assert "Internal error" in reply
    assert state.installer.state() == InstallerState.RUNNING_ALL
    assert state.installer.todo_count() == 4


def test_one_shot_exit_codes(state) -> None:
    assert run_command(state, "list")[0] == 0
    code, reply = run_command(state, "done")
    assert code == 1
    assert reply.startswith("Error (StateError)")
