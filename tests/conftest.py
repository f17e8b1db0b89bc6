"""Shared pytest fixtures for the Laravel installer test suite.

Provides reusable fixtures for:
- Skeleton ``.env`` / ``.env.example`` files
- A generated-project directory
- Mock subprocess helpers
- A recording ``CommandRunner`` that never spawns processes
- A fake PHP toolchain (``composer`` / ``php`` shell scripts) on ``PATH``
- A Herd / Valet stand-in
"""

from __future__ import annotations

import argparse
import os
import stat
import sys
import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from laravel_installer.services.runner import CommandRunner, RunResult


# ---------------------------------------------------------------------------
# Environment files
# ---------------------------------------------------------------------------

SKELETON_ENV = textwrap.dedent("""\
    APP_NAME=Laravel
    APP_ENV=local
    APP_KEY=
    APP_DEBUG=true
    APP_URL=http://localhost

    LOG_CHANNEL=stack

    DB_CONNECTION=sqlite
    # DB_HOST=127.0.0.1
    # DB_PORT=3306
    # DB_DATABASE=laravel
    # DB_USERNAME=root
    # DB_PASSWORD=

    SESSION_DRIVER=database
""")

MYSQL_ENV = textwrap.dedent("""\
    APP_NAME=Laravel
    APP_URL=http://localhost

    DB_CONNECTION=mysql
    DB_HOST=127.0.0.1
    DB_PORT=3306
    DB_DATABASE=laravel
    DB_USERNAME=root
    DB_PASSWORD=

    SESSION_DRIVER=database
""")


@pytest.fixture
def skeleton_env() -> str:
    """``.env`` contents as shipped by the current skeleton (SQLite default)."""
    return SKELETON_ENV


@pytest.fixture
def mysql_env() -> str:
    """``.env`` contents with the MySQL fields uncommented."""
    return MYSQL_ENV


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """A generated application with ``.env``, ``.env.example`` and ``composer.json``."""
    directory = tmp_path / "example-app"
    directory.mkdir()
    (directory / ".env").write_text(SKELETON_ENV, encoding="utf-8")
    (directory / ".env.example").write_text(SKELETON_ENV, encoding="utf-8")
    (directory / "composer.json").write_text(
        '{\n    "name": "laravel/laravel",\n    "type": "project",\n'
        '    "scripts": {\n        "dev": [\n'
        '            "npx concurrently \\"php artisan serve\\" \\"npm run dev\\""\n'
        "        ]\n    }\n}\n",
        encoding="utf-8",
    )
    (directory / "artisan").write_text("#!/usr/bin/env php\n", encoding="utf-8")
    yield directory


@pytest.fixture
def mysql_app_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "mysql-app"
    directory.mkdir()
    (directory / ".env").write_text(MYSQL_ENV, encoding="utf-8")
    (directory / ".env.example").write_text(MYSQL_ENV, encoding="utf-8")
    yield directory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Recording runner
# ---------------------------------------------------------------------------

class RecordingRunner(CommandRunner):
    """``CommandRunner`` that records each call instead of spawning a shell.

    ``exit_codes`` is consumed one entry per ``run`` call; once exhausted
    every run succeeds.
    """

    def __init__(self, exit_codes: list[int] | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("tty", False)
        kwargs.setdefault("decorated", True)
        super().__init__(**kwargs)
        self.exit_codes = list(exit_codes or [])
        self.calls: list[dict[str, Any]] = []

    async def run(self, commands, working_path=None, env=None) -> RunResult:
        prepared = self.prepare(commands)
        line = " && ".join(command.line for command in prepared)
        self.calls.append({
            "commands": [command.line for command in prepared],
            "line": line,
            "working_path": working_path,
            "env": dict(env or {}),
        })
        exit_code = self.exit_codes.pop(0) if self.exit_codes else 0
        return RunResult(exit_code=exit_code, command=line)

    @property
    def lines(self) -> list[str]:
        return [line for call in self.calls for line in call["commands"]]


@pytest.fixture
def recording_runner():
    """Factory for a ``RecordingRunner``."""
    def factory(exit_codes: list[int] | None = None, **kwargs: Any) -> RecordingRunner:
        return RecordingRunner(exit_codes=exit_codes, **kwargs)

    return factory


# ---------------------------------------------------------------------------
# Herd / Valet
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_herd() -> MagicMock:
    """Herd / Valet stand-in: nothing is parked, apps run on ``php artisan serve``."""
    herd = MagicMock()
    herd.generate_app_url = AsyncMock(return_value="http://localhost:8000")
    herd.is_parked = AsyncMock(return_value=False)
    return herd


# ---------------------------------------------------------------------------
# Namespace helper
# ---------------------------------------------------------------------------

NEW_DEFAULTS: dict[str, Any] = {
    "name": None,
    "dev": False,
    "git": False,
    "branch": None,
    "organization": None,
    "react": False,
    "vue": False,
    "livewire": False,
    "no_authentication": False,
    "pest": False,
    "phpunit": False,
    "force": False,
    "github": False,
    "database": None,
    "livewire_class_components": False,
    "using": None,
    "setup": None,
    "npm": False,
    "pnpm": False,
    "bun": False,
    "yarn": False,
    "quiet": False,
    "no_ansi": False,
    "no_interaction": True,
}


@pytest.fixture
def new_args():
    """Factory for a ``laravel new`` namespace with the parser's defaults."""
    def factory(**overrides: Any) -> argparse.Namespace:
        return argparse.Namespace(**{**NEW_DEFAULTS, **overrides})

    return factory


# ---------------------------------------------------------------------------
# Fake toolchain
# ---------------------------------------------------------------------------

FAKE_COMPOSER = textwrap.dedent("""\
    #!/bin/sh
    # Minimal stand-in for Composer used by the end-to-end tests.
    echo "composer $*" >> "$FAKE_TOOLCHAIN_LOG"
    if [ "$1" = "create-project" ]; then
        target="$3"
        mkdir -p "$target/database"
        cat > "$target/.env" <<'ENV'
    {env}ENV
        cp "$target/.env" "$target/.env.example"
        printf '#!/usr/bin/env php\\n' > "$target/artisan"
        printf '{{"name": "laravel/laravel", "type": "project"}}\\n' > "$target/composer.json"
    fi
    exit 0
""")

FAKE_PHP = textwrap.dedent("""\
    #!/bin/sh
    # Minimal stand-in for PHP used by the end-to-end tests.
    echo "php $*" >> "$FAKE_TOOLCHAIN_LOG"
    if [ "$1" = "-m" ]; then
        printf '[PHP Modules]\\nCore\\npdo_sqlite\\npdo_mysql\\n'
    fi
    exit 0
""")


def _write_executable(path: Path, contents: str) -> None:
    path.write_text(contents, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def fake_toolchain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Put fake ``composer`` and ``php`` executables first on ``PATH``.

    Every invocation is appended to the file returned by the fixture.
    """
    if sys.platform.startswith("win"):
        pytest.skip("Fake toolchain scripts require a POSIX shell")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    log = tmp_path / "toolchain.log"
    log.write_text("", encoding="utf-8")

    _write_executable(bin_dir / "composer", FAKE_COMPOSER.format(env=SKELETON_ENV))
    _write_executable(bin_dir / "php", FAKE_PHP)

    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("FAKE_TOOLCHAIN_LOG", str(log))
    monkeypatch.setenv("PHP_BINARY", str(bin_dir / "php"))
    monkeypatch.setenv("COMPOSER_BINARY", str(bin_dir / "composer"))
    monkeypatch.setenv("LARAVEL_INSTALLER_SKIP_UPDATE_CHECK", "1")
    monkeypatch.setenv("LARAVEL_INSTALLER_TTY", "0")
    monkeypatch.setenv("LARAVEL_INSTALLER_CONFIG", str(tmp_path / "config.json"))
    yield log
