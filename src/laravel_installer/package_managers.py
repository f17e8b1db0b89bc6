"""JavaScript package manager selection.

Each ``NodePackageManager`` member knows the command forms the installer runs
verbatim inside the new project, and which lock files belong to it.
"""

from __future__ import annotations

import shutil
from enum import Enum


class NodePackageManager(str, Enum):
    """Supported JavaScript package managers."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"

    def install_command(self) -> str:
        return f"{self.value} install"

    def run_command(self) -> str:
        return {
            NodePackageManager.NPM: "npm run",
            NodePackageManager.YARN: "yarn",
            NodePackageManager.PNPM: "pnpm",
            NodePackageManager.BUN: "bun run",
        }[self]

    def build_command(self) -> str:
        return f"{self.run_command()} build"

    def run_local_or_remote_command(self) -> str:
        """Return the ``npx`` equivalent for this package manager."""
        return {
            NodePackageManager.NPM: "npx",
            NodePackageManager.YARN: "npx",
            NodePackageManager.PNPM: "pnpm dlx",
            NodePackageManager.BUN: "bunx",
        }[self]

    def lock_files(self) -> list[str]:
        return {
            NodePackageManager.NPM: ["package-lock.json"],
            NodePackageManager.YARN: ["yarn.lock"],
            NodePackageManager.PNPM: ["pnpm-lock.yaml"],
            NodePackageManager.BUN: ["bun.lock", "bun.lockb"],
        }[self]

    @classmethod
    def all_lock_files(cls) -> list[str]:
        return [lock_file for manager in cls for lock_file in manager.lock_files()]

    def is_available(self) -> bool:
        """Return ``True`` if the executable is on ``PATH``."""
        return shutil.which(self.value) is not None

    @classmethod
    def detect(cls) -> "NodePackageManager":
        """Return the first available manager, in bun > pnpm > yarn > npm order.

        npm is returned when none of them can be found.
        """
        for manager in (cls.BUN, cls.PNPM, cls.YARN, cls.NPM):
            if manager.is_available():
                return manager
        return cls.NPM
