"""Sub-commands of the ``laravel`` CLI."""

from .artisan import ArtisanCommand
from .clone import CloneCommand
from .configure import ConfigureCommand
from .docs import DocsCommand
from .new import ApplicationAlreadyExists, NewCommand

__all__ = [
    "ApplicationAlreadyExists",
    "ArtisanCommand",
    "CloneCommand",
    "ConfigureCommand",
    "DocsCommand",
    "NewCommand",
]
