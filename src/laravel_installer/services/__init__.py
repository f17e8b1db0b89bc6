"""Services the installer commands are built from.

Key classes:
    FileManager           - Filesystem primitives behind ``FileManagerInterface``
    DatabaseConfigurator  - ``.env`` database driver substitutions
    CommandRunner         - ``&&``-joined shell command sequences with TTY/streaming
    Composer              - ``composer.json`` editing
    HerdOrValet           - Parked-directory detection and ``APP_URL`` generation
    UpdateChecker         - Packagist release check
    default_branch        - Global git ``init.defaultBranch`` lookup
"""

from .composer import Composer, loaded_php_extensions
from .database import Database, DatabaseConfigurator, sanitize_database_name
from .file_manager import FileManager, FileManagerInterface
from .git import default_branch, github_authenticated
from .herd import HerdOrValet
from .runner import Command, CommandRunner, RunResult
from .updates import UpdateChecker, UpdateStatus

__all__ = [
    "Command",
    "CommandRunner",
    "Composer",
    "Database",
    "DatabaseConfigurator",
    "FileManager",
    "FileManagerInterface",
    "HerdOrValet",
    "RunResult",
    "UpdateChecker",
    "UpdateStatus",
    "default_branch",
    "github_authenticated",
    "loaded_php_extensions",
    "sanitize_database_name",
]
