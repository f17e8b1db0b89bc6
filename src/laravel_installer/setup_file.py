"""``laravel new --setup FILE`` support.

A setup file is JSON describing extra work to do on a freshly created
application::

    {
        "composer": {
            "require": {"laravel/sanctum": "^4.0"},
            "require-dev": {"laravel/pint": "^1.0"}
        },
        "env": {"APP_NAME": "Blog", "REDIS_HOST": null},
        "files": {
            "create": ["storage/app/.keep"],
            "copy": {"/path/to/ci.yml": ".github/workflows/ci.yml"}
        }
    }

``env`` values replace existing keys in ``.env``; ``null`` removes the key.
Keys that are not already present are left alone.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.markup import escape

from laravel_installer.options import InstallerError
from laravel_installer.services.file_manager import FileManagerInterface
from laravel_installer.services.runner import Command
from laravel_installer.utils import print_info, print_warning


class SetupFileError(InstallerError):
    """Raised when a setup file cannot be read or does not match the schema."""


class ComposerSetup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    require: dict[str, str] = Field(default_factory=dict)
    require_dev: dict[str, str] = Field(default_factory=dict, alias="require-dev")


class FilesSetup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    create: list[str] = Field(default_factory=list)
    copy_: dict[str, str] = Field(default_factory=dict, alias="copy")


class SetupFile(BaseModel):
    """Parsed contents of a ``--setup`` JSON file."""

    composer: ComposerSetup = Field(default_factory=ComposerSetup)
    env: dict[str, str | None] = Field(default_factory=dict)
    files: FilesSetup = Field(default_factory=FilesSetup)

    @classmethod
    def load(cls, path: str | Path) -> "SetupFile":
        """Read and validate *path*.

        Raises:
            SetupFileError: If the file is missing, is not JSON, or has the
                wrong shape.
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise SetupFileError(f"Unable to read setup file [{path}]: {exc}") from exc

        try:
            return cls.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise SetupFileError(f"Invalid setup file [{path}]: {exc}") from exc

    def composer_commands(self, composer: str) -> list[Command]:
        """Return one ``composer require`` command per package."""
        commands = []
        for package, version in self.composer.require.items():
            print_info(escape(f"Adding {package}:{version} as a composer dependency"))
            commands.append(Command.shell(f"{composer} require {package}:{version}"))

        for package, version in self.composer.require_dev.items():
            print_info(escape(f"Adding {package}:{version} as a composer dev dependency"))
            commands.append(Command.shell(f"{composer} require --dev {package}:{version}"))

        return commands

    def apply_env(self, directory: str | Path, file_manager: FileManagerInterface) -> None:
        """Rewrite or remove the configured keys in ``<directory>/.env``."""
        if not self.env:
            return

        env_path = f"{directory}/.env"
        contents = file_manager.read(env_path)
        newline = "\r\n" if "\r\n" in contents else "\n"
        lines = []
        for line in contents.splitlines():
            key = line.split("=", 1)[0].strip() if "=" in line else None

            if key is None or key not in self.env:
                lines.append(line)
                continue

            value = self.env[key]
            if value is None:
                print_warning(escape(f"Deleted {key} from {env_path}"))
                continue

            print_info(escape(f"Replaced {key} with {value}"))
            lines.append(f"{key}={value}")

        file_manager.write(env_path, newline.join(lines) + newline)

    def apply_files(self, directory: str | Path, file_manager: FileManagerInterface) -> None:
        """Create the empty files and copy the listed sources into *directory*."""
        for relative in self.files.create:
            target = Path(directory) / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.touch()
            print_info(escape(f"Created {target}"))

        for source, destination in self.files.copy_.items():
            target = Path(directory) / destination
            target.parent.mkdir(parents=True, exist_ok=True)
            file_manager.copy(source, target)
            print_info(escape(f"Copied {source} to {target}"))
