"""Command-line entry point for the ``laravel`` executable.

Parses arguments, configures the shared console, picks a prompter and
dispatches to one of the sub-commands.  This is the only place exceptions
are turned into exit codes:

* ``0`` -- success
* the failing subprocess's exit code -- project creation or a later
  optional step failed
* ``1`` -- an :class:`InstallerError` (invalid option, existing directory,
  missing answer, bad setup file, unreadable saved defaults) or an I/O error
* ``2`` -- argument parsing error (raised by ``argparse``)
* ``130`` -- interrupted with Ctrl+C
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from rich.markup import escape

from laravel_installer import __version__
from laravel_installer.commands.artisan import ArtisanCommand
from laravel_installer.commands.clone import CloneCommand
from laravel_installer.commands.configure import ConfigureCommand, apply_saved_defaults
from laravel_installer.commands.docs import DocsCommand
from laravel_installer.commands.new import NewCommand, interact
from laravel_installer.config import ConfigRepository, InstallerSettings
from laravel_installer.options import (
    ApplicationOptions,
    InstallerError,
    validate_database_option,
    validate_stack_option,
)
from laravel_installer.prompts import NonInteractivePrompter, Prompter, RichPrompter
from laravel_installer.services.git import default_branch
from laravel_installer.services.updates import UpdateChecker
from laravel_installer.utils import configure_console, console, print_error, print_warning

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_default_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by ``new`` and ``configure``."""
    parser.add_argument("--git", action="store_true", help="Initialize a Git repository")
    parser.add_argument(
        "--branch",
        default=None,
        help="The branch that should be created for a new repository",
    )
    parser.add_argument(
        "--organization",
        default=None,
        help="The GitHub organization to create the new repository for",
    )
    parser.add_argument("--react", action="store_true", help="Install the React Starter Kit")
    parser.add_argument("--vue", action="store_true", help="Install the Vue Starter Kit")
    parser.add_argument("--livewire", action="store_true", help="Install the Livewire Starter Kit")
    parser.add_argument(
        "--no-authentication",
        action="store_true",
        help="Do not generate authentication scaffolding",
    )
    parser.add_argument("--pest", action="store_true", help="Install the Pest testing framework")
    parser.add_argument("--phpunit", action="store_true", help="Install the PHPUnit testing framework")
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Forces install even if the directory already exists",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="laravel",
        description="Laravel Installer -- create new Laravel applications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  laravel new example-app\n"
            "  laravel new example-app --react --pest --database=pgsql --git\n"
            "  laravel new example-app --no-interaction --npm\n"
        ),
    )
    parser.add_argument("--version", "-V", action="version", version=f"Laravel Installer {__version__}")

    output = argparse.ArgumentParser(add_help=False)
    output.add_argument("--quiet", "-q", action="store_true", help="Do not output any message")
    output.add_argument("--no-ansi", action="store_true", help="Disable ANSI output")
    output.add_argument(
        "--no-interaction", "-n",
        action="store_true",
        help="Do not ask any interactive question",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    new = subparsers.add_parser("new", parents=[output], help="Create a new Laravel application")
    new.add_argument("name", nargs="?", default=None)
    new.add_argument("--dev", action="store_true", help='Install the latest "development" release')
    _add_default_options(new)
    new.add_argument(
        "--github",
        nargs="?",
        const="",
        default=False,
        metavar="FLAGS",
        help="Create a new repository on GitHub (optionally with gh repo create flags)",
    )
    new.add_argument(
        "--database",
        default=None,
        metavar="DRIVER",
        help="The database driver your application will use (mysql, mariadb, pgsql, sqlite, sqlsrv)",
    )
    new.add_argument(
        "--livewire-class-components",
        action="store_true",
        help="Generate stand-alone Livewire class components",
    )
    new.add_argument("--using", default=None, metavar="PACKAGE", help="Install a custom starter kit")
    new.add_argument("--setup", default=None, metavar="FILE", help="Apply a JSON setup file")
    new.add_argument("--npm", action="store_true", help="Install and build NPM dependencies")
    new.add_argument("--pnpm", action="store_true", help="Install and build NPM dependencies via pnpm")
    new.add_argument("--bun", action="store_true", help="Install and build NPM dependencies via Bun")
    new.add_argument("--yarn", action="store_true", help="Install and build NPM dependencies via Yarn")

    configure = subparsers.add_parser(
        "configure",
        parents=[output],
        help="Configure default options for creating a new Laravel application",
    )
    _add_default_options(configure)
    configure.add_argument("--flush", action="store_true", help="Remove all saved defaults")

    docs = subparsers.add_parser("docs", parents=[output], help="Open the Laravel docs")
    docs.add_argument("version", nargs="?", default=None)

    artisan = subparsers.add_parser("artisan", help="Execute current project artisan commands")
    artisan.add_argument("arguments", nargs=argparse.REMAINDER)

    clone = subparsers.add_parser(
        "clone",
        parents=[output],
        help="Clone any Laravel repository, install Composer dependencies and generate a key",
    )
    clone.add_argument("repository", help="The repository URL to clone")
    clone.add_argument("--branch", default=None, help="The branch to clone")
    clone.add_argument("--dir", default=None, help="The directory to clone the repository into")

    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


async def check_for_updates() -> None:
    status = await UpdateChecker(__version__).check()
    if status.update_available:
        print_warning(
            escape(
                f"A new version of the Laravel installer is available [{status.latest}]."
                f" You are running [{status.current}]."
            )
        )
        console.print()


def is_interactive(args: argparse.Namespace) -> bool:
    """Interactive unless ``--no-interaction`` was given or stdin is not a terminal."""
    if getattr(args, "no_interaction", False):
        return False
    return sys.stdin is not None and sys.stdin.isatty()


async def run_new(args: argparse.Namespace, settings: InstallerSettings) -> int:
    cwd = os.getcwd()
    interactive = is_interactive(args)
    args.no_interaction = not interactive

    apply_saved_defaults(args, ConfigRepository(settings.config_path))

    # fail on bad values before any external command or network call
    validate_database_option(args.database)
    validate_stack_option(args)

    if settings.check_for_updates:
        await check_for_updates()

    prompter: Prompter = RichPrompter(console) if interactive else NonInteractivePrompter()
    interact(args, prompter, cwd=cwd, interactive=interactive)

    branch = None if args.branch else await default_branch()
    options = ApplicationOptions.from_namespace(args, cwd=cwd, default_branch=branch)

    return await NewCommand(options, settings=settings, prompter=prompter, cwd=cwd).execute()


async def dispatch(args: argparse.Namespace, settings: InstallerSettings) -> int:
    if args.command == "new":
        return await run_new(args, settings)

    if args.command == "configure":
        return ConfigureCommand(ConfigRepository(settings.config_path)).execute(args)

    if args.command == "docs":
        return await DocsCommand().execute(args.version)

    if args.command == "artisan":
        return await ArtisanCommand().execute(args.arguments)

    if args.command == "clone":
        return await CloneCommand(settings=settings).execute(args.repository, args.branch, args.dir)

    raise InstallerError(f"Unknown command [{args.command}].")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the ``laravel`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_console(
        no_ansi=getattr(args, "no_ansi", False),
        quiet=getattr(args, "quiet", False),
    )
    settings = InstallerSettings.from_env()

    try:
        return asyncio.run(dispatch(args, settings))
    except InstallerError as exc:
        print_error(escape(str(exc)))
        return EXIT_ERROR
    except OSError as exc:
        print_error(escape(str(exc)))
        return EXIT_ERROR
    except KeyboardInterrupt:
        console.print()
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
