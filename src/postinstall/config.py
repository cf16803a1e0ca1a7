# src/postinstall/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- All file locations derive from a single data dir unless overridden.
- Self-edit mode (the installer upgrading its own packages) uses a separate set of files.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "POSTINSTALL"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def install_file_names(self_edit: bool) -> tuple[str, str, str]:
    """(global status file, local status file, operation file) names."""
    suffix = "self" if self_edit else "app"
    status = "install_status_self.json" if self_edit else "install_status.json"
    return f"installs_{suffix}.py", f"local_installs_{suffix}.py", status


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Package manager ----
    packages_file: Path
    extra_namespace: str
    root_dir: Path

    # ---- Installer ----
    self_edit: bool
    base_url: str
    lock_timeout: float

    # ---- Files ----
    data_dir: Path
    global_install_file: Path
    local_install_file: Path
    install_status_file: Path

    @staticmethod
    def from_env(*, self_edit: bool | None = None) -> "Settings":
        app_name = _env(_k("APP_NAME"), "postinstall") or "postinstall"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        root_dir = _env_path(_k("ROOT_DIR"), Path("."))
        packages_file = _env_path(_k("PACKAGES_FILE"), root_dir / "vendor" / "composer" / "installed.json")
        extra_namespace = _env(_k("EXTRA_NAMESPACE"), "postinstall") or "postinstall"

        if self_edit is None:
            self_edit = _env_bool(_k("SELF_EDIT"), False)
        base_url = _env(_k("BASE_URL"), "/") or "/"
        lock_timeout = _env_float(_k("LOCK_TIMEOUT"), 2.0)

        # Global file is committed; local + operation files live under no_commit/.
        data_dir = _env_path(_k("DATA_DIR"), root_dir / ".postinstall")
        global_name, local_name, status_name = install_file_names(self_edit)
        global_install_file = _env_path(_k("GLOBAL_INSTALL_FILE"), data_dir / global_name)
        local_install_file = _env_path(_k("LOCAL_INSTALL_FILE"), data_dir / "no_commit" / local_name)
        install_status_file = _env_path(_k("INSTALL_STATUS_FILE"), data_dir / "no_commit" / status_name)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            packages_file=packages_file,
            extra_namespace=extra_namespace,
            root_dir=root_dir,
            self_edit=self_edit,
            base_url=base_url,
            lock_timeout=lock_timeout,
            data_dir=data_dir,
            global_install_file=global_install_file,
            local_install_file=local_install_file,
            install_status_file=install_status_file,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
