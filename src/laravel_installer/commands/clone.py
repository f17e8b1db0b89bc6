"""``laravel clone`` -- clone a Laravel repository and get it ready to run.

Steps: ``git clone``, ``composer install``, and for applications
(``"type": "project"`` in ``composer.json``) copy ``.env.example`` to
``.env`` and generate an application key.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from laravel_installer.config import InstallerSettings
from laravel_installer.services.composer import Composer
from laravel_installer.services.file_manager import FileManager, FileManagerInterface
from laravel_installer.services.runner import Command, CommandRunner
from laravel_installer.utils import print_info, quote


def repository_name(repository: str) -> str:
    """Return the directory name git would pick for *repository*.

    ``https://github.com/laravel/laravel.git`` and
    ``git@github.com:laravel/laravel.git`` both give ``laravel``.
    """
    name = repository.rstrip("/").replace(":", "/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


class CloneCommand:
    def __init__(
        self,
        settings: InstallerSettings | None = None,
        runner: CommandRunner | None = None,
        file_manager: FileManagerInterface | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.settings = settings or InstallerSettings()
        self.runner = runner or CommandRunner(tty=self.settings.tty)
        self.file_manager = file_manager or FileManager()
        self.cwd = Path(cwd) if cwd else Path.cwd()

    def clone_command(self, repository: str, directory: Path, branch: str | None = None) -> Command:
        parts = ["git", "clone"]
        if branch:
            parts.extend(["-b", branch])
        parts.extend([repository, quote(directory)])
        return Command.shell(" ".join(parts))

    async def execute(
        self,
        repository: str,
        branch: str | None = None,
        directory: str | None = None,
    ) -> int:
        target = self.cwd / (directory or repository_name(repository))

        if branch:
            print_info(f"Using branch {escape(branch)}")

        result = await self.runner.run(
            [self.clone_command(repository, target, branch)], working_path=self.cwd
        )
        if not result.successful:
            return result.exit_code

        result = await self.runner.run(
            [Command.shell(f"{self.settings.composer(self.cwd)} install")], working_path=target
        )
        if not result.successful:
            return result.exit_code

        package_type = Composer(target, self.file_manager).package_type()
        if package_type and package_type.lower() == "project":
            return await self.generate_key(target)

        return 0

    async def generate_key(self, target: Path) -> int:
        self.file_manager.copy(target / ".env.example", target / ".env")
        result = await self.runner.run(
            [Command.shell(f"{quote(self.settings.php_binary)} artisan key:generate")],
            working_path=target,
        )
        return result.exit_code
