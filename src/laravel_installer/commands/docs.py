"""``laravel docs`` -- open the Laravel documentation in a browser."""

from __future__ import annotations

import sys

from rich.markup import escape

from laravel_installer.utils import print_info, print_warning, run_command

DOCS_URL = "https://laravel.com/docs/"

# Major versions whose docs live under a specific minor version.
VERSION_ALIASES: dict[str, str] = {
    "4": "4.2",
    "5": "5.8",
    "6": "6.x",
    "7": "7.x",
}


def docs_url(version: str | None = None) -> str:
    """Return the documentation URL for *version* (latest when omitted)."""
    if not version:
        return DOCS_URL
    return DOCS_URL + VERSION_ALIASES.get(version, version)


def open_command(url: str, platform: str | None = None) -> list[str]:
    """Return the argv that opens *url* with the platform's default handler."""
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open", url]
    if platform.startswith("win"):
        return ["cmd", "/c", "start", "", url]
    return ["xdg-open", url]


class DocsCommand:
    async def execute(self, version: str | None = None) -> int:
        url = docs_url(version)
        print_info(f"Opening Laravel Docs: {escape(url)}")

        returncode, _, stderr = await run_command(open_command(url))
        if returncode != 0:
            reason = stderr or f"exit code {returncode}"
            print_warning(escape(f"Unable to open a browser ({reason}). Visit {url} instead."))
        return 0
