"""Shell command sequence execution.

A ``CommandRunner`` joins an ordered list of :class:`Command` descriptors with
``&&`` and runs them as one shell invocation, so a later command never runs
once an earlier one has failed.  Output is either handed to the user's
terminal (when a TTY can be attached) or streamed line by line to a sink.
"""

from __future__ import annotations

import asyncio
import os
import shlex
import sys
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from rich.console import Console

from laravel_installer.utils import console as default_console
from laravel_installer.utils import print_warning

TTY_PATH = "/dev/tty"

# Executables that reject ``--no-ansi`` / ``--quiet``.
FLAGLESS_EXECUTABLES: frozenset[str] = frozenset({"chmod", "rm", "git"})

PEST_BINARY = "./vendor/bin/pest"


@dataclass(frozen=True)
class Command:
    """One shell command line plus whether it takes the output flags.

    Attributes:
        line: The command exactly as it is passed to the shell.
        accepts_output_flags: ``False`` for tools that do not understand
            ``--no-ansi`` / ``--quiet`` (``chmod``, ``rm``, ``git``, Pest).
    """

    line: str
    accepts_output_flags: bool = True

    @classmethod
    def shell(cls, line: str) -> "Command":
        """Build a descriptor, deciding flag support from the executable."""
        return cls(line, accepts_output_flags=not _rejects_output_flags(line))

    @property
    def executable(self) -> str:
        tokens = _split(self.line)
        return tokens[0] if tokens else ""

    def with_flag(self, flag: str) -> "Command":
        if not self.accepts_output_flags:
            return self
        return Command(f"{self.line} {flag}", self.accepts_output_flags)

    def __str__(self) -> str:
        return self.line


def _split(line: str) -> list[str]:
    try:
        return shlex.split(line)
    except ValueError:
        return line.split()


def _rejects_output_flags(line: str) -> bool:
    tokens = _split(line)
    if not tokens:
        return False
    if Path(tokens[0]).name in FLAGLESS_EXECUTABLES:
        return True
    # "<php> ./vendor/bin/pest ..."
    return len(tokens) > 1 and tokens[1] == PEST_BINARY


@dataclass(frozen=True)
class RunResult:
    """Outcome of one ``CommandRunner.run`` call."""

    exit_code: int
    command: str

    @property
    def successful(self) -> bool:
        return self.exit_code == 0


def tty_supported() -> bool:
    """Return ``True`` when a controlling terminal device can be used."""
    if sys.platform.startswith("win"):
        return False
    return os.path.exists(TTY_PATH) and os.access(TTY_PATH, os.R_OK)


class CommandRunner:
    """Runs command sequences for the installer.

    Args:
        console: Rich console that receives warnings and streamed output.
        decorated: Whether the user's output supports ANSI; when ``False``
            every flag-accepting command gets ``--no-ansi``.
        quiet: When ``True`` every flag-accepting command gets ``--quiet``.
        tty: Attach the child to ``/dev/tty``.  ``None`` auto-detects.
        sink: Receives each output line; defaults to printing on *console*.
    """

    def __init__(
        self,
        console: Console | None = None,
        decorated: bool = True,
        quiet: bool = False,
        tty: bool | None = None,
        sink: Callable[[str], None] | None = None,
    ) -> None:
        self.console = console or default_console
        self.decorated = decorated
        self.quiet = quiet
        self.tty = tty_supported() if tty is None else tty
        self.sink = sink or self._print_line

    def prepare(self, commands: Iterable[Command | str]) -> list[Command]:
        """Coerce strings to descriptors and append the output flags."""
        prepared = [
            command if isinstance(command, Command) else Command.shell(command)
            for command in commands
        ]

        if not self.decorated:
            prepared = [command.with_flag("--no-ansi") for command in prepared]

        if self.quiet:
            prepared = [command.with_flag("--quiet") for command in prepared]

        return prepared

    def build(self, commands: Iterable[Command | str]) -> str:
        """Return the single shell command line for *commands*."""
        return " && ".join(command.line for command in self.prepare(commands))

    async def run(
        self,
        commands: Iterable[Command | str],
        working_path: str | Path | None = None,
        env: Mapping[str, str | int] | None = None,
    ) -> RunResult:
        """Run *commands* in *working_path*, stopping at the first failure.

        Args:
            commands: Ordered commands, joined with ``&&``.
            working_path: Directory the shell starts in; the current
                directory when ``None``.
            env: Extra environment variables merged over ``os.environ``.

        Returns:
            The exit code of the shell, i.e. of the last command that ran.
        """
        line = self.build(commands)
        merged_env = {**os.environ, **{key: str(value) for key, value in (env or {}).items()}}
        cwd = str(working_path) if working_path else None

        terminal = self._open_tty() if self.tty else None
        try:
            if terminal is not None:
                process = await asyncio.create_subprocess_shell(
                    line,
                    stdin=terminal,
                    stdout=terminal,
                    stderr=terminal,
                    cwd=cwd,
                    env=merged_env,
                )
                exit_code = await process.wait()
            else:
                exit_code = await self._run_streaming(line, cwd, merged_env)
        finally:
            if terminal is not None:
                terminal.close()

        return RunResult(exit_code=exit_code, command=line)

    async def _run_streaming(self, line: str, cwd: str | None, env: dict[str, str]) -> int:
        process = await asyncio.create_subprocess_shell(
            line,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
            env=env,
        )

        assert process.stdout is not None  # guaranteed by PIPE
        while True:
            line_bytes = await process.stdout.readline()
            if not line_bytes:
                break
            self.sink(line_bytes.decode("utf-8", errors="replace").rstrip("\r\n"))

        return await process.wait()

    def _open_tty(self) -> IO[bytes] | None:
        try:
            return open(TTY_PATH, "r+b", buffering=0)
        except OSError as exc:
            print_warning(f"Unable to attach to {TTY_PATH}: {exc}. Continuing without a TTY.")
            return None

    def _print_line(self, line: str) -> None:
        self.console.print(f"    {line}", markup=False, highlight=False)
