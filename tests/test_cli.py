"""Unit tests for the ``laravel`` entry point (laravel_installer.cli)."""

from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from laravel_installer import __version__, utils
from laravel_installer.cli import (
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    build_parser,
    check_for_updates,
    is_interactive,
    main,
)
from laravel_installer.services.updates import UpdateStatus


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep config writes in *tmp_path* and restore the shared console afterwards."""
    monkeypatch.setenv("LARAVEL_INSTALLER_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("LARAVEL_INSTALLER_SKIP_UPDATE_CHECK", "1")
    monkeypatch.chdir(tmp_path)
    no_color, quiet = utils.console.no_color, utils.console.quiet
    error_no_color = utils.error_console.no_color
    yield
    utils.console.no_color, utils.console.quiet = no_color, quiet
    utils.error_console.no_color = error_no_color


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestBuildParser:
    @pytest.mark.unit
    def test_new_defaults(self):
        args = build_parser().parse_args(["new", "blog"])

        assert args.command == "new"
        assert args.name == "blog"
        assert args.github is False
        assert args.database is None
        assert args.no_interaction is False

    @pytest.mark.unit
    def test_github_flag_forms(self):
        parser = build_parser()
        assert parser.parse_args(["new", "blog", "--github"]).github == ""
        assert parser.parse_args(["new", "blog", "--github=--public"]).github == "--public"

    @pytest.mark.unit
    def test_new_options(self):
        args = build_parser().parse_args(
            ["new", "blog", "--react", "--pest", "--database", "pgsql", "--git", "-n", "--bun", "-f"]
        )

        assert args.react is True
        assert args.pest is True
        assert args.database == "pgsql"
        assert args.git is True
        assert args.no_interaction is True
        assert args.bun is True
        assert args.force is True

    @pytest.mark.unit
    def test_artisan_keeps_remaining_arguments(self):
        args = build_parser().parse_args(["artisan", "make:model", "Post", "--migration"])
        assert args.arguments == ["make:model", "Post", "--migration"]

    @pytest.mark.unit
    def test_clone_options(self):
        args = build_parser().parse_args(["clone", "https://github.com/acme/app", "--branch", "dev", "--dir", "x"])
        assert (args.repository, args.branch, args.dir) == ("https://github.com/acme/app", "dev", "x")

    @pytest.mark.unit
    def test_version(self, capsys: pytest.CaptureFixture):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestIsInteractive:
    @pytest.mark.unit
    def test_no_interaction_flag(self):
        assert is_interactive(argparse.Namespace(no_interaction=True)) is False

    @pytest.mark.unit
    def test_follows_stdin(self):
        with patch("laravel_installer.cli.sys.stdin") as stdin:
            stdin.isatty.return_value = True
            assert is_interactive(argparse.Namespace(no_interaction=False)) is True
            stdin.isatty.return_value = False
            assert is_interactive(argparse.Namespace(no_interaction=False)) is False


# ---------------------------------------------------------------------------
# Update check
# ---------------------------------------------------------------------------


class TestCheckForUpdates:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_warns_when_outdated(self):
        checker = MagicMock()
        checker.check = AsyncMock(return_value=UpdateStatus(current="5.0.0", latest="v9.0.0"))

        with (
            patch("laravel_installer.cli.UpdateChecker", return_value=checker),
            patch("laravel_installer.cli.print_warning") as warning,
        ):
            await check_for_updates()

        assert "v9.0.0" in warning.call_args[0][0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_silent_when_current(self):
        checker = MagicMock()
        checker.check = AsyncMock(return_value=UpdateStatus(current="5.0.0", latest="v5.0.0"))

        with (
            patch("laravel_installer.cli.UpdateChecker", return_value=checker),
            patch("laravel_installer.cli.print_warning") as warning,
        ):
            await check_for_updates()

        warning.assert_not_called()


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.mark.unit
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture):
        assert main([]) == 0
        assert "usage: laravel" in capsys.readouterr().out

    @pytest.mark.unit
    def test_invalid_database_exits_with_error(self):
        with (
            patch("laravel_installer.cli.default_branch", AsyncMock(return_value="main")),
            patch("laravel_installer.cli.print_error") as error,
        ):
            assert main(["new", "blog", "--database=oracle", "-n"]) == EXIT_ERROR

        assert "Invalid database driver" in error.call_args[0][0]
        assert not (Path.cwd() / "blog").exists()

    @pytest.mark.unit
    def test_force_with_current_directory(self):
        with (
            patch("laravel_installer.cli.default_branch", AsyncMock(return_value="main")),
            patch("laravel_installer.cli.print_error") as error,
        ):
            assert main(["new", ".", "--force", "-n"]) == EXIT_ERROR

        assert "Cannot use --force option" in error.call_args[0][0]

    @pytest.mark.unit
    def test_missing_name_without_interaction(self):
        with patch("laravel_installer.cli.print_error") as error:
            assert main(["new", "-n"]) == EXIT_ERROR

        assert "The project name is required." in error.call_args[0][0]

    @pytest.mark.unit
    def test_existing_directory(self, tmp_path: Path):
        (tmp_path / "blog").mkdir()
        with (
            patch("laravel_installer.cli.default_branch", AsyncMock(return_value="main")),
            patch("laravel_installer.cli.print_error") as error,
        ):
            assert main(["new", "blog", "-n"]) == EXIT_ERROR

        assert "Application already exists!" in error.call_args[0][0]

    @pytest.mark.unit
    def test_error_text_is_escaped(self):
        with (
            patch("laravel_installer.cli.default_branch", AsyncMock(return_value="main")),
            patch("laravel_installer.cli.print_error") as error,
        ):
            main(["new", "blog", "--database=[bold]x", "-n"])

        assert "\\[bold]" in error.call_args[0][0]

    @pytest.mark.unit
    def test_configure_writes_config(self, tmp_path: Path):
        assert main(["configure", "--git", "--branch", "develop"]) == 0

        config = (tmp_path / "config.json").read_text(encoding="utf-8")
        assert '"branch": "develop"' in config
        assert '"git": true' in config

    @pytest.mark.unit
    def test_saved_defaults_reach_new(self, tmp_path: Path):
        main(["configure", "--git"])

        with (
            patch("laravel_installer.cli.default_branch", AsyncMock(return_value="main")),
            patch("laravel_installer.cli.NewCommand") as new_command,
        ):
            new_command.return_value.execute = AsyncMock(return_value=0)
            assert main(["new", "blog", "-n"]) == 0

        options = new_command.call_args.args[0]
        assert options.initialize_git is True
        assert options.name == "blog"

    @pytest.mark.unit
    def test_docs(self):
        with patch("laravel_installer.commands.docs.run_command", AsyncMock(return_value=(0, "", ""))):
            assert main(["docs", "6"]) == 0

    @pytest.mark.unit
    def test_keyboard_interrupt(self):
        def interrupted(coroutine):
            coroutine.close()
            raise KeyboardInterrupt

        with patch("laravel_installer.cli.asyncio.run", side_effect=interrupted):
            assert main(["docs"]) == EXIT_INTERRUPTED

    @pytest.mark.unit
    def test_no_ansi_configures_console(self):
        with patch("laravel_installer.commands.docs.run_command", AsyncMock(return_value=(0, "", ""))):
            main(["docs", "--no-ansi"])

        assert utils.console.no_color is True

    @pytest.mark.unit
    def test_errors_go_to_stderr(self, capsys: pytest.CaptureFixture):
        assert main(["new", "blog", "--database=oracle", "-n"]) == EXIT_ERROR

        captured = capsys.readouterr()
        assert "ERROR" in captured.err
        assert "Invalid database driver" in captured.err
        assert "Invalid database driver" not in captured.out

    @pytest.mark.unit
    def test_quiet_keeps_errors(self, capsys: pytest.CaptureFixture):
        assert main(["new", "blog", "--database=oracle", "-n", "--quiet"]) == EXIT_ERROR

        assert "Invalid database driver" in capsys.readouterr().err

    @pytest.mark.unit
    def test_invalid_options_fail_before_branch_lookup(self):
        lookup = AsyncMock(return_value="main")
        with patch("laravel_installer.cli.default_branch", lookup):
            assert main(["new", "blog", "--react", "--vue", "-n"]) == EXIT_ERROR
            assert main(["new", "blog", "--database=oracle", "-n"]) == EXIT_ERROR

        lookup.assert_not_called()

    @pytest.mark.unit
    def test_corrupt_config_is_reported(self, tmp_path: Path, capsys: pytest.CaptureFixture):
        (tmp_path / "config.json").write_text("{not json", encoding="utf-8")

        assert main(["new", "blog", "-n"]) == EXIT_ERROR

        err = capsys.readouterr().err
        assert "Invalid configuration file" in err
        assert not (tmp_path / "blog").exists()
