"""Shared utility functions for the Laravel installer.

Provides async command probing, Rich-based console output helpers and a few
small string helpers.  Long-running, user-visible command sequences go
through :class:`laravel_installer.services.runner.CommandRunner` instead;
:func:`run_command` is for short probes whose output the installer inspects
(``git config``, ``gh auth status``, ``herd paths`` and friends).
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path

from rich.console import Console
from rich.table import Table

console = Console(highlight=False)
error_console = Console(stderr=True, highlight=False)

# ---------------------------------------------------------------------------
# Console configuration
# ---------------------------------------------------------------------------


def configure_console(no_ansi: bool = False, quiet: bool = False) -> Console:
    """Apply ``--no-ansi`` / ``--quiet`` to the shared consoles.

    The console objects are mutated in place so every module that imported
    them sees the change.  ``--quiet`` never silences ``error_console``.
    """
    console.no_color = no_ansi
    console.quiet = quiet
    error_console.no_color = no_ansi
    return console


def is_decorated() -> bool:
    """Return ``True`` when output is going to a colour-capable terminal."""
    return console.is_terminal and not console.no_color


# ---------------------------------------------------------------------------
# Async command probing
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 30,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A missing executable is
        reported as return code ``127`` rather than raised, and a timeout as
        ``-1``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        if isinstance(cmd, list):
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        else:
            process = await asyncio.create_subprocess_shell(
                cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
    except (FileNotFoundError, PermissionError) as exc:
        name = cmd[0] if isinstance(cmd, list) else cmd
        return (127, "", f"Unable to start {name}: {exc}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# String helpers
# ---------------------------------------------------------------------------


_VALID_NAME = re.compile(r"^[\w.\-]+$")


def is_valid_project_name(name: str) -> bool:
    """Return ``True`` if *name* only has letters, numbers, dashes, underscores and periods.

    Path separators are allowed between segments so ``apps/blog`` is valid.
    """
    segments = [segment for segment in re.split(r"[/\\]", name) if segment]
    return bool(segments) and all(_VALID_NAME.match(segment) for segment in segments)


def quote(value: str | Path) -> str:
    """Wrap a path in double quotes for use inside a shell command line."""
    return f'"{value}"'


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Option", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_info(message: str) -> None:
    """Print an ``INFO`` line."""
    console.print(f"  [white on blue] INFO [/white on blue] {message}")


def print_error(message: str) -> None:
    """Print an ``ERROR`` line to stderr."""
    error_console.print(f"  [white on red] ERROR [/white on red] {message}")


def print_warning(message: str) -> None:
    """Print a ``WARN`` line."""
    console.print(f"  [black on yellow] WARN [/black on yellow] {message}")
