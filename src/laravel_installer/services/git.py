"""Probes of the user's git and GitHub CLI setup."""

from __future__ import annotations

from laravel_installer.utils import run_command

FALLBACK_BRANCH = "main"


async def default_branch() -> str:
    """Return ``init.defaultBranch`` from the global git config, or ``main``."""
    returncode, stdout, _ = await run_command(
        ["git", "config", "--global", "init.defaultBranch"], timeout=10
    )
    branch = stdout.strip()
    if returncode != 0 or not branch:
        return FALLBACK_BRANCH
    return branch


async def github_authenticated() -> bool:
    """Return ``True`` if ``gh auth status`` succeeds."""
    returncode, _, _ = await run_command(["gh", "auth", "status"], timeout=15)
    return returncode == 0
