"""Resolved options for ``laravel new``.

``ApplicationOptions`` is built once per invocation from the parsed CLI
namespace (after saved defaults and interactive answers have been merged in)
and is read-only from then on.  All validation happens here, before any
external command runs.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from laravel_installer.package_managers import NodePackageManager
from laravel_installer.services.database import Database

STACKS: tuple[str, ...] = ("react", "vue", "livewire")


class InstallerError(Exception):
    """Base class for errors the CLI reports and exits on."""


class InvalidOptionError(InstallerError, ValueError):
    """Raised when a CLI option has an unsupported value or conflicts with another."""

    def __init__(self, message: str, option: str = "", value: Any = None) -> None:
        self.option = option
        self.value = value
        super().__init__(message)


def validate_database_option(database: str | None) -> Database | None:
    """Return the ``Database`` for *database*, or raise ``InvalidOptionError``."""
    if not database:
        return None

    if database not in Database.values():
        raise InvalidOptionError(
            f"Invalid database driver [{database}]. "
            f"Valid options are: {', '.join(Database.values())}.",
            option="database",
            value=database,
        )
    return Database(database)


def validate_stack_option(args: argparse.Namespace) -> str | None:
    """Return the selected starter kit stack, or raise on conflicting choices."""
    selected = [stack for stack in STACKS if getattr(args, stack, False)]

    if len(selected) > 1:
        raise InvalidOptionError(
            f"Only one starter kit stack may be selected, got [{', '.join(selected)}]. "
            f"Valid options are: {', '.join(STACKS)}.",
            option="stack",
            value=selected,
        )

    if selected and getattr(args, "using", None):
        raise InvalidOptionError(
            f"The --{selected[0]} option cannot be combined with --using.",
            option="using",
            value=args.using,
        )

    return selected[0] if selected else None


def resolve_directory(name: str, cwd: str | Path | None = None) -> str:
    """Return ``<cwd>/<name>``, or ``.`` when installing into the current directory."""
    if name == ".":
        return "."
    base = str(cwd) if cwd else os.getcwd()
    return f"{base.rstrip('/')}/{name}"


def resolve_starter_kit(args: argparse.Namespace) -> str | None:
    stack = validate_stack_option(args)

    if getattr(args, "using", None):
        return args.using

    if stack is None:
        return None

    prefix = "laravel/blank-" if getattr(args, "no_authentication", False) else "laravel/"
    return f"{prefix}{stack}-starter-kit"


def resolve_package_manager(args: argparse.Namespace) -> NodePackageManager | None:
    for manager in (
        NodePackageManager.PNPM,
        NodePackageManager.BUN,
        NodePackageManager.YARN,
        NodePackageManager.NPM,
    ):
        if getattr(args, manager.value, False):
            return manager
    return None


class ApplicationOptions(BaseModel):
    """Immutable snapshot of everything ``laravel new`` needs to know."""

    model_config = ConfigDict(frozen=True)

    name: str
    directory: str
    force: bool = False
    version: str | None = None
    starter_kit: str | None = None
    livewire_class_components: bool = False
    database: Database | None = None
    initialize_git: bool = False
    git_branch: str = "main"
    publish_to_github: bool = False
    github_flags: str = "--private"
    github_organization: str | None = None
    use_pest: bool = False
    use_phpunit: bool = False
    install_dependencies: bool = False
    package_manager: NodePackageManager | None = None
    interactive: bool = True
    quiet: bool = False
    no_ansi: bool = False
    setup_file: Path | None = Field(default=None, description="JSON setup file (composer/env/files)")

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        value = value.rstrip("/\\")
        if not value:
            raise ValueError("The project name must not be empty")
        return value

    @model_validator(mode="after")
    def _check_invariants(self) -> "ApplicationOptions":
        if self.use_pest and self.use_phpunit:
            raise ValueError("Pest and PHPUnit cannot both be selected")
        return self

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_namespace(
        cls,
        args: argparse.Namespace,
        cwd: str | Path | None = None,
        default_branch: str | None = None,
    ) -> "ApplicationOptions":
        """Resolve a parsed ``laravel new`` namespace into options.

        Args:
            args: Namespace produced by the ``new`` sub-parser.
            cwd: Directory the project is created relative to.
            default_branch: Branch from ``git config --global
                init.defaultBranch``; ``main`` when unset.

        Raises:
            InvalidOptionError: For an unknown database driver, conflicting
                stacks, both test frameworks, a missing name, or ``--force``
                combined with ``.``.
        """
        raw_name = (getattr(args, "name", None) or "").rstrip("/\\")
        if not raw_name:
            raise InvalidOptionError("A project name is required.", option="name", value=raw_name)

        database = validate_database_option(getattr(args, "database", None))
        starter_kit = resolve_starter_kit(args)

        use_pest = bool(getattr(args, "pest", False))
        use_phpunit = bool(getattr(args, "phpunit", False))
        if use_pest and use_phpunit:
            raise InvalidOptionError(
                "The --pest and --phpunit options cannot be used together.",
                option="pest",
                value=True,
            )

        force = bool(getattr(args, "force", False))
        directory = resolve_directory(raw_name, cwd)
        if force and directory == ".":
            raise InvalidOptionError(
                "Cannot use --force option when using current directory for installation!",
                option="force",
                value=True,
            )

        github = getattr(args, "github", False)
        package_manager = resolve_package_manager(args)

        return cls(
            name=raw_name,
            directory=directory,
            force=force,
            version="dev-master" if getattr(args, "dev", False) else None,
            starter_kit=starter_kit,
            livewire_class_components=bool(getattr(args, "livewire_class_components", False)),
            database=database,
            initialize_git=bool(getattr(args, "git", False)) or github is not False,
            git_branch=getattr(args, "branch", None) or default_branch or "main",
            publish_to_github=github is not False,
            github_flags=github or "--private",
            github_organization=getattr(args, "organization", None),
            use_pest=use_pest,
            use_phpunit=use_phpunit,
            install_dependencies=package_manager is not None,
            package_manager=package_manager,
            interactive=not getattr(args, "no_interaction", False),
            quiet=bool(getattr(args, "quiet", False)),
            no_ansi=bool(getattr(args, "no_ansi", False)),
            setup_file=Path(args.setup) if getattr(args, "setup", None) else None,
        )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_using_starter_kit(self) -> bool:
        return self.starter_kit is not None

    @property
    def is_using_laravel_starter_kit(self) -> bool:
        return bool(self.starter_kit) and self.starter_kit.startswith("laravel/")

    @property
    def is_remote_template(self) -> bool:
        """A non-Laravel kit given as a URL, fetched with ``tiged``."""
        return (
            self.starter_kit is not None
            and not self.is_using_laravel_starter_kit
            and "://" in self.starter_kit
        )

    @property
    def full_name(self) -> str:
        """``organization/name`` for GitHub, or just the name."""
        if self.github_organization:
            return f"{self.github_organization}/{self.name}"
        return self.name

    @property
    def test_framework(self) -> str:
        return "pest" if self.use_pest else "phpunit"
