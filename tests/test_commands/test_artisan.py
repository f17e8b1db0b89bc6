"""Unit tests for ``laravel artisan``."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from laravel_installer.commands.artisan import ArtisanCommand, find_artisan_directory


class TestFindArtisanDirectory:
    @pytest.mark.unit
    def test_project_root(self, app_dir: Path):
        assert find_artisan_directory(app_dir) == app_dir.resolve()

    @pytest.mark.unit
    def test_nested_directory(self, app_dir: Path):
        nested = app_dir / "app" / "Http"
        nested.mkdir(parents=True)
        assert find_artisan_directory(nested) == app_dir.resolve()

    @pytest.mark.unit
    def test_outside_project(self, tmp_path: Path):
        with patch("laravel_installer.commands.artisan.Path.is_file", return_value=False):
            assert find_artisan_directory(tmp_path) is None


class TestArtisanCommand:
    @pytest.mark.unit
    def test_command_quotes_arguments(self):
        command = ArtisanCommand().command(["make:model", "Post", "--migration", "a b"])

        assert command.line == "./artisan make:model Post --migration 'a b'"
        assert command.accepts_output_flags is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_in_project_root(self, app_dir: Path, recording_runner):
        runner = recording_runner()
        nested = app_dir / "routes"
        nested.mkdir()

        assert await ArtisanCommand(runner, cwd=nested).execute(["migrate"]) == 0

        assert runner.calls[0]["commands"] == ["./artisan migrate"]
        assert runner.calls[0]["working_path"] == app_dir.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exit_code_is_propagated(self, app_dir: Path, recording_runner):
        runner = recording_runner(exit_codes=[2])
        assert await ArtisanCommand(runner, cwd=app_dir).execute(["test"]) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_in_project(self, tmp_path: Path, recording_runner):
        runner = recording_runner()
        with (
            patch("laravel_installer.commands.artisan.find_artisan_directory", return_value=None),
            patch("laravel_installer.commands.artisan.print_error") as error,
        ):
            assert await ArtisanCommand(runner, cwd=tmp_path).execute(["migrate"]) == 1

        error.assert_called_once_with("Not in project directory")
        assert runner.calls == []
