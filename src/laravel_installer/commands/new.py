"""``laravel new`` -- create a new Laravel application.

The workflow runs strictly in order:

1. Guard: refuse to overwrite an existing directory unless ``--force``.
2. Create the project (Composer ``create-project``, a starter kit, or a
   remote template fetched with ``tiged``), run the post-install script,
   generate the app key and make ``artisan`` executable.
3. Only when step 2 succeeded:

   a. rewrite ``APP_URL`` and configure the default database connection,
      optionally running the migrations;
   b. apply the ``--setup`` file;
   c. initialise a git repository;
   d. swap PHPUnit for Pest;
   e. create and push a GitHub repository;
   f. adapt the Composer ``dev`` script, remove foreign lock files, and
      install and build the front-end assets.

The exit code is that of the last executed command, except that a failed
optional step is not masked by later successful ones.  A failed step 2 is
returned as-is and nothing after it runs.  Later optional steps never undo
earlier ones.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.markup import escape

from laravel_installer.config import InstallerSettings
from laravel_installer.options import ApplicationOptions, InstallerError, resolve_directory
from laravel_installer.package_managers import NodePackageManager
from laravel_installer.prompts import NonInteractivePrompter, Prompter
from laravel_installer.services.composer import Composer, loaded_php_extensions
from laravel_installer.services.database import PROMPT_ORDER, Database, DatabaseConfigurator
from laravel_installer.services.file_manager import FileManager, FileManagerInterface, replace_all
from laravel_installer.services.git import github_authenticated
from laravel_installer.services.herd import HerdOrValet
from laravel_installer.services.runner import Command, CommandRunner, RunResult
from laravel_installer.setup_file import SetupFile
from laravel_installer.utils import (
    console,
    is_decorated,
    is_valid_project_name,
    print_info,
    print_warning,
    quote,
)

SKELETON_PACKAGE = "laravel/laravel"
INITIAL_COMMIT_MESSAGE = "Set up a fresh Laravel app"
PEST_WORKFLOW = ".github/workflows/tests.yml"

GITHUB_AUTH_WARNING = (
    'Make sure the "gh" CLI tool is installed and that you\'re authenticated to GitHub. Skipping...'
)
MISSING_PDO_SUFFIX = " (Missing PDO extension)"

STARTER_KITS: dict[str, str] = {
    "none": "None",
    "react": "React",
    "vue": "Vue",
    "livewire": "Livewire",
}

AUTH_PROVIDERS: dict[str, str] = {
    "laravel": "Laravel's built-in authentication",
    "none": "No authentication scaffolding",
}


class ApplicationAlreadyExists(InstallerError):
    """Raised when the target directory exists and ``--force`` was not given."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = str(directory)
        super().__init__("Application already exists!")


def is_windows() -> bool:
    return sys.platform.startswith("win")


def verify_application_does_not_exist(directory: str | Path, cwd: str | Path | None = None) -> None:
    """Raise ``ApplicationAlreadyExists`` if *directory* exists and is not *cwd*."""
    base = Path(cwd) if cwd else Path.cwd()
    path = Path(directory)
    if not path.is_absolute():
        path = base / path

    if (path.is_dir() or path.is_file()) and path.resolve() != base.resolve():
        raise ApplicationAlreadyExists(directory)


def database_options(loaded_extensions: set[str] | None) -> dict[str, str]:
    """Return ``{driver: label}`` with drivers whose PDO extension is loaded first.

    Drivers without their extension are labelled ``(Missing PDO extension)``.
    When the loaded extensions are unknown every driver is offered as-is.
    """
    entries = []
    for database in PROMPT_ORDER:
        available = loaded_extensions is None or database.pdo_extension in loaded_extensions
        label = database.label if available else database.label + MISSING_PDO_SUFFIX
        entries.append((0 if available else 1, database.value, label))

    return {value: label for _, value, label in sorted(entries, key=lambda entry: entry[0])}


# ---------------------------------------------------------------------------
# Interactive questions
# ---------------------------------------------------------------------------


def interact(
    args: argparse.Namespace,
    prompter: Prompter,
    cwd: str | Path | None = None,
    interactive: bool = True,
) -> argparse.Namespace:
    """Fill in the answers the user did not give on the command line.

    The project name is always asked for (a non-interactive prompter fails
    when it is missing).  Starter kit, authentication and testing framework
    questions are only asked in interactive mode.
    """
    force = bool(getattr(args, "force", False))

    def validate_name(value: str) -> str | None:
        if not is_valid_project_name(value):
            return "The name may only contain letters, numbers, dashes, underscores, and periods."
        if not force:
            try:
                verify_application_does_not_exist(resolve_directory(value, cwd), cwd)
            except ApplicationAlreadyExists:
                return "Application already exists."
        return None

    if not getattr(args, "name", None):
        args.name = prompter.text(
            "What is the name of your project?",
            placeholder="E.g. example-app",
            required="The project name is required.",
            validate=validate_name,
        )

    if not interactive:
        return args

    if not (args.react or args.vue or args.livewire or args.using):
        kit = prompter.select("Which starter kit would you like to install?", STARTER_KITS, default="none")

        if kit != "none":
            setattr(args, kit, True)
            provider = prompter.select(
                "Which authentication provider do you prefer?", AUTH_PROVIDERS, default="laravel"
            )
            args.no_authentication = provider == "none"

        if args.livewire and not args.no_authentication:
            args.livewire_class_components = not prompter.confirm(
                "Would you like to use Laravel Volt?", default=True
            )

    if not (args.pest or args.phpunit):
        framework = prompter.select(
            "Which testing framework do you prefer?", ["Pest", "PHPUnit"], default="Pest"
        )
        args.pest = framework == "Pest"

    return args


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


class NewCommand:
    """Creates a new Laravel application from resolved options.

    Args:
        options: Validated, immutable options for this run.
        settings: PHP / Composer / TTY settings.
        prompter: Answers the database and dependency questions.
        runner: Executes command sequences; built from *options* when omitted.
        file_manager: Mutates generated files.
        herd: Herd / Valet integration used for ``APP_URL``.
        cwd: Directory the project is created relative to.
    """

    def __init__(
        self,
        options: ApplicationOptions,
        settings: InstallerSettings | None = None,
        prompter: Prompter | None = None,
        runner: CommandRunner | None = None,
        file_manager: FileManagerInterface | None = None,
        herd: HerdOrValet | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.options = options
        self.settings = settings or InstallerSettings()
        self.prompter = prompter or NonInteractivePrompter()
        self.runner = runner or CommandRunner(
            decorated=is_decorated() and not options.no_ansi,
            quiet=options.quiet,
            tty=self.settings.tty,
        )
        self.file_manager = file_manager or FileManager()
        self.herd = herd or HerdOrValet()
        self.cwd = Path(cwd) if cwd else Path.cwd()
        self.database_configurator = DatabaseConfigurator(self.file_manager)

    @property
    def project_path(self) -> Path:
        """Absolute application root, used as the working path after creation."""
        if self.options.directory == ".":
            return self.cwd
        return Path(self.options.directory)

    @property
    def composer(self) -> str:
        return self.settings.composer(self.cwd)

    @property
    def php(self) -> str:
        return quote(self.settings.php_binary)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def execute(self) -> int:
        """Run the whole workflow and return its exit code.

        Returns:
            The creation step's exit code when it failed; otherwise the exit
            code of the last failed optional step, or ``0``.

        Raises:
            ApplicationAlreadyExists: If the directory exists and ``force``
                is off.
            SetupFileError: If the ``--setup`` file is unreadable or invalid.
        """
        options = self.options

        if not options.force:
            verify_application_does_not_exist(options.directory, self.cwd)

        setup = SetupFile.load(options.setup_file) if options.setup_file else None

        result = await self.runner.run(self.create_project_commands(), working_path=self.cwd)
        if not result.successful:
            return result.exit_code

        steps: list[RunResult | None] = []

        if options.name != ".":
            steps.append(await self.configure_environment())

        if setup is not None:
            steps.append(await self.apply_setup(setup))

        if options.initialize_git:
            steps.append(await self.create_repository())

        if options.use_pest:
            steps.append(await self.install_pest())

        if options.publish_to_github:
            steps.append(await self.push_to_github())

        package_manager, installed, build = await self.install_node_dependencies()
        steps.append(build)

        await self.print_summary(package_manager, installed)

        for step in reversed(steps):
            if step is not None and not step.successful:
                return step.exit_code
        return result.exit_code

    # ------------------------------------------------------------------
    # Project creation
    # ------------------------------------------------------------------

    def create_project_commands(self) -> list[Command]:
        """Return the command sequence that creates the project."""
        options = self.options
        composer = self.composer
        directory = options.directory

        if options.is_remote_template:
            create = (
                f"npx tiged@latest {options.starter_kit} {quote(directory)}"
                f" && cd {quote(directory)} && {composer} install"
            )
        elif options.starter_kit:
            kit = options.starter_kit
            if options.is_using_laravel_starter_kit and options.livewire_class_components:
                kit = f"{kit}:dev-components"
            create = f"{composer} create-project {kit} {quote(directory)} --stability=dev"
        else:
            parts = [composer, "create-project", SKELETON_PACKAGE, quote(directory)]
            if options.version:
                parts.append(options.version)
            parts.extend(["--remove-vcs", "--prefer-dist", "--no-scripts"])
            create = " ".join(parts)

        commands = [
            Command.shell(create),
            Command.shell(f"{composer} run post-root-package-install -d {quote(directory)}"),
            Command.shell(f"{self.php} {quote(f'{directory}/artisan')} key:generate --ansi"),
        ]

        if directory != "." and options.force:
            if is_windows():
                remove = Command(
                    f"(if exist {quote(directory)} rd /s /q {quote(directory)})",
                    accepts_output_flags=False,
                )
            else:
                remove = Command.shell(f"rm -rf {quote(directory)}")
            commands.insert(0, remove)

        if not is_windows():
            commands.append(Command.shell(f"chmod 755 {quote(f'{directory}/artisan')}"))

        return commands

    # ------------------------------------------------------------------
    # Environment and database
    # ------------------------------------------------------------------

    async def configure_environment(self) -> RunResult | None:
        """Rewrite ``APP_URL`` and the database settings, then maybe migrate.

        Returns:
            The migration result, or ``None`` when no migration ran.
        """
        directory = self.options.directory

        url = await self.herd.generate_app_url(self.options.name, directory)
        self.file_manager.replace(f"{directory}/.env", "APP_URL=http://localhost", f"APP_URL={url}")

        database, migrate = await self.prompt_for_database_options()
        self.database_configurator.configure(directory, database, self.options.name)

        if migrate:
            return await self.migrate(database)
        return None

    async def prompt_for_database_options(self) -> tuple[str, bool]:
        """Return ``(database, migrate)``.

        Starter kits migrate during their own ``create-project`` scripts, so
        they default to SQLite without a migration.  Interactive runs without
        ``--database`` are asked; SQLite always migrates, other drivers ask
        for confirmation.
        """
        choices = database_options(await loaded_php_extensions(self.settings.php_binary))
        default = next(iter(choices))

        database = self.options.database.value if self.options.database else None
        migrate: bool | None = None

        if self.options.is_using_starter_kit:
            database = database or Database.SQLITE.value
            migrate = False

        if database is None and self.options.interactive:
            database = self.prompter.select(
                "Which database will your application use?", choices, default=default
            )
            if database != Database.SQLITE.value:
                migrate = self.prompter.confirm(
                    "Default database updated. Would you like to run the default database migrations?",
                    default=True,
                )
            else:
                migrate = True

        return database or default, True if migrate is None else migrate

    async def migrate(self, database: str) -> RunResult:
        if database == Database.SQLITE.value:
            sqlite_path = self.project_path / "database" / "database.sqlite"
            sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            sqlite_path.touch()

        command = f"{self.php} artisan migrate"
        if not self.options.interactive:
            command += " --no-interaction"

        return await self.runner.run([Command.shell(command)], working_path=self.project_path)

    # ------------------------------------------------------------------
    # Setup file
    # ------------------------------------------------------------------

    async def apply_setup(self, setup: SetupFile) -> RunResult | None:
        result = None
        commands = setup.composer_commands(self.composer)
        if commands:
            result = await self.runner.run(commands, working_path=self.project_path)
            if not result.successful:
                print_warning(f"Installing the setup file's Composer packages failed (exit code {result.exit_code}).")

        setup.apply_env(self.project_path, self.file_manager)
        setup.apply_files(self.project_path, self.file_manager)
        return result

    # ------------------------------------------------------------------
    # Git, Pest, GitHub
    # ------------------------------------------------------------------

    async def create_repository(self) -> RunResult:
        return await self.runner.run(
            [
                Command.shell("git init -q"),
                Command.shell("git add ."),
                Command.shell(f'git commit -q -m "{INITIAL_COMMIT_MESSAGE}"'),
                Command.shell(f"git branch -M {self.options.git_branch}"),
            ],
            working_path=self.project_path,
        )

    async def commit_changes(self, message: str) -> RunResult | None:
        """Commit everything with *message* when git is enabled."""
        if not self.options.initialize_git:
            return None

        return await self.runner.run(
            [Command.shell("git add ."), Command.shell(f'git commit -q -m "{message}"')],
            working_path=self.project_path,
        )

    def pest_commands(self) -> list[Command]:
        composer = self.composer
        return [
            Command.shell(f"{composer} remove phpunit/phpunit --dev --no-update"),
            Command.shell(f"{composer} require pestphp/pest pestphp/pest-plugin-laravel --no-update --dev"),
            Command.shell(f"{composer} update"),
            Command.shell(f"{self.php} ./vendor/bin/pest --init"),
            Command.shell(f"{composer} require pestphp/pest-plugin-drift --dev"),
            Command.shell(f"{self.php} ./vendor/bin/pest --drift"),
            Command.shell(f"{composer} remove pestphp/pest-plugin-drift --dev"),
        ]

    async def install_pest(self) -> RunResult:
        """Replace PHPUnit with Pest and convert the example tests.

        Returns:
            The failed Pest run, otherwise the "Install Pest" commit (or the
            Pest run itself when git is off).
        """
        result = await self.runner.run(
            self.pest_commands(),
            working_path=self.project_path,
            env={"PEST_NO_SUPPORT": "true"},
        )

        workflow = self.project_path / PEST_WORKFLOW
        if self.options.is_using_starter_kit and self.file_manager.exists(workflow):
            self.file_manager.replace(workflow, "./vendor/bin/phpunit", "./vendor/bin/pest")

        commit = await self.commit_changes("Install Pest")
        if not result.successful or commit is None:
            return result
        return commit

    async def push_to_github(self) -> RunResult | None:
        if not await github_authenticated():
            print_warning(GITHUB_AUTH_WARNING)
            console.print()
            return None

        options = self.options
        command = Command(
            f"gh repo create {options.full_name} --source=. --push {options.github_flags}",
            accepts_output_flags=False,
        )
        return await self.runner.run(
            [command],
            working_path=self.project_path,
            env={"GIT_TERMINAL_PROMPT": 0},
        )

    # ------------------------------------------------------------------
    # Front-end dependencies
    # ------------------------------------------------------------------

    def configure_composer_dev_script(self, package_manager: NodePackageManager) -> None:
        """Point the Composer ``dev`` script at *package_manager*."""
        composer = Composer(self.project_path, self.file_manager)
        if not composer.exists():
            return

        search = ["npx", "npm run dev"]
        replace = [package_manager.run_local_or_remote_command(), f"{package_manager.run_command()} dev"]

        def update(content: dict) -> dict:
            script = content.get("scripts", {}).get("dev")
            if isinstance(script, str):
                content["scripts"]["dev"] = replace_all(script, search, replace)
            elif isinstance(script, list):
                content["scripts"]["dev"] = [
                    replace_all(line, search, replace) if isinstance(line, str) else line
                    for line in script
                ]
            return content

        composer.modify(update)

    def delete_foreign_lock_files(self, package_manager: NodePackageManager) -> None:
        own = set(package_manager.lock_files())
        for lock_file in NodePackageManager.all_lock_files():
            path = self.project_path / lock_file
            if lock_file not in own and self.file_manager.exists(path):
                self.file_manager.delete(path)

    async def install_node_dependencies(
        self,
    ) -> tuple[NodePackageManager, bool, RunResult | None]:
        """Install and build the front-end assets when asked to.

        Returns:
            The package manager used, whether install/build ran, and the
            install/build result (``None`` when it did not run).
        """
        package_manager = self.options.package_manager or NodePackageManager.detect()

        self.configure_composer_dev_script(package_manager)
        self.delete_foreign_lock_files(package_manager)

        run = self.options.install_dependencies
        if not run and self.options.interactive:
            run = self.prompter.confirm(
                f"Would you like to run {package_manager.install_command()}"
                f" and {package_manager.build_command()}?",
                default=True,
            )

        result = None
        if run:
            result = await self.runner.run(
                [
                    Command.shell(package_manager.install_command()),
                    Command.shell(package_manager.build_command()),
                ],
                working_path=self.project_path,
            )

        return package_manager, run, result

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    async def print_summary(self, package_manager: NodePackageManager, installed: bool) -> None:
        name = self.options.name

        console.print()
        print_info(
            f"Application ready in [bold]{escape(f'[{name}]')}[/bold]."
            " You can start your local development using:"
        )
        console.print()

        if name != ".":
            console.print(f"[dim]➜[/dim] [bold]cd {escape(name)}[/bold]")

        if not installed:
            console.print(
                f"[dim]➜[/dim] [bold]{package_manager.install_command()}"
                f" && {package_manager.build_command()}[/bold]"
            )

        if await self.herd.is_parked(self.project_path):
            url = await self.herd.generate_app_url(name, self.project_path)
            console.print(f"[dim]➜[/dim] Open: [bold link={url}]{escape(url)}[/]")
        else:
            console.print("[dim]➜[/dim] [bold]composer run dev[/bold]")

        console.print()
        console.print(
            "  New to Laravel? Check out our "
            "[link=https://laravel.com/docs/installation#next-steps]documentation[/link]."
            " [bold]Build something amazing![/bold]"
        )
        console.print()
