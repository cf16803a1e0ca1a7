# src/postinstall/packages/installed_json.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError, InstallIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Package:
    pretty_name: str
    version: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


def _package_from_json(item: Any, index: int, source: Path) -> Package:
    if not isinstance(item, dict) or not item.get("name"):
        raise ConfigurationError(f"{source}: package #{index} has no name.")
    extra = item.get("extra")
    # PHP-side writers encode an empty map as [].
    if extra is None or extra == []:
        extra = {}
    if not isinstance(extra, dict):
        raise ConfigurationError(f"{source}: package '{item['name']}' has a non-object 'extra'.")
    return Package(
        pretty_name=str(item["name"]),
        version=str(item.get("version") or ""),
        extra=extra,
    )


class InstalledJsonPackageSource:
    """
    Reads the package manager's installed-packages manifest.

    Accepts either a bare JSON list of packages or {"packages": [...]}.
    The manifest is expected to be in dependency order already.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def packages(self) -> list[Package]:
        try:
            raw = self.path.read_text("utf-8")
        except FileNotFoundError as e:
            raise InstallIOError(f"Package manifest not found: {self.path}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Package manifest {self.path} is not valid JSON: {e}") from e

        if isinstance(data, dict):
            data = data.get("packages")
        if not isinstance(data, list):
            raise ConfigurationError(f"Package manifest {self.path} must hold a list of packages.")

        packages = [_package_from_json(item, i, self.path) for i, item in enumerate(data)]
        logger.debug("Read %d packages from %s", len(packages), self.path)
        return packages
