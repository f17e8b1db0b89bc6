"""Laravel Herd / Valet integration.

Herd and Valet serve every directory inside a "parked" path as
``http://<name>.<tld>``.  The installer asks them whether the new project's
parent directory is parked so it can write a matching ``APP_URL``.
"""

from __future__ import annotations

import asyncio
import json
import os
import socket
from pathlib import Path

from laravel_installer.utils import run_command

TOOLS: tuple[str, ...] = ("herd", "valet")
DEFAULT_TLD = "test"
FALLBACK_URL = "http://localhost:8000"


class HerdOrValet:
    """Queries the ``herd`` or ``valet`` CLI, whichever answers first."""

    def __init__(self, tools: tuple[str, ...] = TOOLS) -> None:
        self.tools = tools

    async def run(self, command: str) -> str | None:
        """Run ``<tool> <command> -v`` and return its trimmed output.

        Returns ``None`` when neither tool is installed or both fail.
        """
        for tool in self.tools:
            returncode, stdout, _ = await run_command([tool, command, "-v"], timeout=10)
            if returncode == 0:
                return stdout.strip()
        return None

    async def is_parked(self, directory: str | Path) -> bool:
        """Return ``True`` if the parent of *directory* is a parked path."""
        output = await self.run("paths")
        if output is None:
            return False

        try:
            paths = json.loads(output)
        except json.JSONDecodeError:
            return False

        parent = os.path.dirname(str(directory).rstrip("/\\"))
        return isinstance(paths, list) and parent in paths

    async def tld(self) -> str:
        return await self.run("tld") or DEFAULT_TLD

    async def generate_app_url(self, name: str, directory: str | Path) -> str:
        """Return the URL the new application will be served on.

        * Not parked: ``http://localhost:8000`` (``php artisan serve``).
        * Parked and ``<name>.<tld>`` resolves: ``http://<name>.<tld>``.
        * Parked but unresolvable: ``http://localhost``.
        """
        if not await self.is_parked(directory):
            return FALLBACK_URL

        hostname = f"{name.lower()}.{await self.tld()}"
        if await can_resolve_hostname(hostname):
            return f"http://{hostname}"
        return "http://localhost"


async def can_resolve_hostname(hostname: str) -> bool:
    """Return ``True`` if DNS resolves *hostname* (as a fully qualified name)."""
    loop = asyncio.get_running_loop()

    def _resolve() -> bool:
        try:
            socket.gethostbyname(f"{hostname}.")
        except (socket.gaierror, UnicodeError):
            return False
        return True

    return await loop.run_in_executor(None, _resolve)
