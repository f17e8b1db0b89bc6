"""``laravel artisan`` -- run Artisan from anywhere inside a project."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path

from laravel_installer.services.runner import Command, CommandRunner
from laravel_installer.utils import print_error


def find_artisan_directory(start: str | Path | None = None) -> Path | None:
    """Walk up from *start* and return the first directory containing ``artisan``."""
    path = Path(start) if start else Path.cwd()
    path = path.resolve()

    for candidate in (path, *path.parents):
        if (candidate / "artisan").is_file():
            return candidate
    return None


class ArtisanCommand:
    def __init__(self, runner: CommandRunner | None = None, cwd: str | Path | None = None) -> None:
        self.runner = runner or CommandRunner()
        self.cwd = cwd

    def command(self, arguments: Sequence[str]) -> Command:
        line = " ".join(["./artisan", *(shlex.quote(argument) for argument in arguments)])
        return Command(line, accepts_output_flags=False)

    async def execute(self, arguments: Sequence[str]) -> int:
        directory = find_artisan_directory(self.cwd)
        if directory is None:
            print_error("Not in project directory")
            return 1

        result = await self.runner.run([self.command(arguments)], working_path=directory)
        return result.exit_code
