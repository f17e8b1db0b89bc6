"""``laravel configure`` -- save default options for ``laravel new``."""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from laravel_installer.config import ALLOWED_DEFAULTS, ConfigRepository
from laravel_installer.utils import console, print_info, print_summary_table

EXCLUSIVE_GROUPS: tuple[tuple[str, ...], ...] = (
    ("react", "vue", "livewire", "using"),
    ("pest", "phpunit"),
)


class ConfigureCommand:
    """Persists the allowed ``laravel new`` options to the user config file."""

    def __init__(self, config: ConfigRepository | None = None) -> None:
        self.config = config or ConfigRepository()

    def save_defaults(self, args: argparse.Namespace) -> dict[str, Any]:
        """Store every allowed option from *args* and return what was saved."""
        saved: dict[str, Any] = {}
        for key in ALLOWED_DEFAULTS:
            value = getattr(args, key, None)
            self.config.set(key, value)
            saved[key] = value
        return saved

    def execute(self, args: argparse.Namespace) -> int:
        if getattr(args, "flush", False):
            self.config.flush()
            print_info("Your saved defaults have been cleared.")
            return 0

        saved = self.save_defaults(args)

        console.print()
        console.print("  [red]Saving your defaults, for the Laravel new command[/red]")
        console.print()
        print_summary_table(
            {key: "" if value is None else str(value) for key, value in saved.items()},
            title=escape(str(self.config.path)),
        )
        return 0


def apply_saved_defaults(args: argparse.Namespace, config: ConfigRepository) -> argparse.Namespace:
    """Fill options the user did not pass on the command line from *config*.

    Flags that were given explicitly (truthy values) are never overridden, and
    a saved choice is skipped when the user picked another member of the same
    exclusive group (for example ``--vue`` over a saved ``react``).
    """
    saved = config.all()
    for key in ALLOWED_DEFAULTS:
        if key not in saved or saved[key] is None:
            continue
        if getattr(args, key, None):
            continue

        group = next((group for group in EXCLUSIVE_GROUPS if key in group), ())
        if any(getattr(args, other, None) for other in group):
            continue

        setattr(args, key, saved[key])
    return args
