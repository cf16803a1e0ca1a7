# src/postinstall/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "postinstall.log"


class _InstallerConsoleFilter(logging.Filter):
    """Console shows installer progress; code run by install steps only shows warnings."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "postinstall" or record.name.startswith("postinstall."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(*, log_dir: str | Path, console_level: int = logging.INFO) -> Path:
    """
    Route logs to stderr (filtered) and to <log_dir>/postinstall.log (everything).

    Returns the log file path. Calling it again replaces the handlers.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_InstallerConsoleFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
