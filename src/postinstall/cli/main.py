# src/postinstall/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either runs the commands given on
the command line (`postinstall list`, `postinstall all`, `postinstall run`)
or starts the interactive console.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..logging_setup import setup_logging
from .console import run_command, run_console_loop

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    argv = sys.argv[1:] if argv is None else argv

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir / "no_commit", console_level=console_level)

    logger.info("Starting %s (self_edit=%s)...", settings.app_name, settings.self_edit)

    state = create_initial_state(settings=settings)

    if argv:
        code, reply = run_command(state, " ".join(argv))
        print(reply)
        return code

    run_console_loop(state)
    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
