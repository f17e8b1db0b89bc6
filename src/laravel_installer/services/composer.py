"""Composer manifest editing and PHP runtime probing."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from laravel_installer.services.file_manager import FileManager, FileManagerInterface
from laravel_installer.utils import run_command


class Composer:
    """Reads and rewrites an application's ``composer.json``."""

    def __init__(self, directory: str | Path, file_manager: FileManagerInterface | None = None) -> None:
        self.directory = Path(directory)
        self.file_manager = file_manager or FileManager()

    @property
    def path(self) -> Path:
        return self.directory / "composer.json"

    def exists(self) -> bool:
        return self.file_manager.exists(self.path)

    def read(self) -> dict[str, Any]:
        return json.loads(self.file_manager.read(self.path))

    def modify(self, callback: Callable[[dict[str, Any]], dict[str, Any]]) -> None:
        """Pass the decoded manifest through *callback* and write the result back.

        Raises:
            FileNotFoundError: If the project has no ``composer.json``.
        """
        content = callback(self.read())
        self.file_manager.write(self.path, json.dumps(content, indent=4, ensure_ascii=False) + "\n")

    def package_type(self) -> str | None:
        """Return the manifest's ``type`` (``project``, ``library`` ...), if any."""
        if not self.exists():
            return None
        value = self.read().get("type")
        return value if isinstance(value, str) else None


async def loaded_php_extensions(php_binary: str) -> set[str] | None:
    """Return the lowercase names of the extensions ``php -m`` reports.

    Returns ``None`` when PHP cannot be run, so callers can tell "unknown"
    apart from "nothing loaded".
    """
    returncode, stdout, _ = await run_command([php_binary, "-m"], timeout=15)
    if returncode != 0:
        return None

    return {
        line.strip().lower()
        for line in stdout.splitlines()
        if line.strip() and not line.startswith("[")
    }
