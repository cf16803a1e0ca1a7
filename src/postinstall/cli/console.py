# src/postinstall/cli/console.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.state import AppState
from .commands import ERROR_PREFIX
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def run_command(state: AppState, line: str) -> tuple[int, str]:
    """
    Run a single command line (used for non-interactive invocations).

    Returns (exit_code, reply). Failed commands give a non-zero exit code.
    """
    if not line.startswith("/"):
        line = "/" + line
    try:
        reply = command_registry.handle(state, line, emit=_print_ts) or ""
    except Exception:
        # Executors run arbitrary package code.
        logger.exception("Command handler crashed: %s", line)
        return 1, "Internal error while handling a command (see log)."
    if reply.startswith(f"{ERROR_PREFIX} ("):
        return 1, reply
    return 0, reply


def run_console_loop(state: AppState) -> None:
    logger.info("Console started (self_edit=%s).", state.installer.self_edit)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(state, line, emit=_print_ts)
        except Exception:
            # Executors run arbitrary package code; keep the console alive.
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command (see log)."

        if response is None:
            response = "Commands start with '/'. Use /help."
        _print_ts(response)

    logger.info("Console finished.")
