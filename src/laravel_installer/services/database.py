"""Database configuration for freshly created applications.

Rewrites ``.env`` and ``.env.example`` so the selected driver is the default
connection:

* ``DB_CONNECTION`` is always rewritten in place, never duplicated.
* For SQLite the host/port/database/username/password fields are commented
  out as a set; for every other driver they are uncommented as a set.
* PostgreSQL and SQL Server get their vendor port instead of ``3306``.
* ``DB_DATABASE=laravel`` becomes the application name, lowercased with
  dashes turned into underscores.

The placeholder values are the skeleton's defaults and must match
byte-for-byte for a substitution to take effect.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from laravel_installer.services.file_manager import FileManagerInterface


class Database(str, Enum):
    """Database drivers the installer can configure."""

    MYSQL = "mysql"
    MARIADB = "mariadb"
    PGSQL = "pgsql"
    SQLITE = "sqlite"
    SQLSRV = "sqlsrv"

    @property
    def label(self) -> str:
        return DATABASE_LABELS[self]

    @property
    def pdo_extension(self) -> str:
        """Name of the PHP extension that provides this driver."""
        if self in (Database.MYSQL, Database.MARIADB):
            return "pdo_mysql"
        return f"pdo_{self.value}"

    @classmethod
    def values(cls) -> list[str]:
        return [driver.value for driver in cls]


# Order the drivers are offered in when prompting.
PROMPT_ORDER: tuple[Database, ...] = (
    Database.SQLITE,
    Database.MYSQL,
    Database.MARIADB,
    Database.PGSQL,
    Database.SQLSRV,
)

DATABASE_LABELS: dict[Database, str] = {
    Database.SQLITE: "SQLite",
    Database.MYSQL: "MySQL",
    Database.MARIADB: "MariaDB",
    Database.PGSQL: "PostgreSQL",
    Database.SQLSRV: "SQL Server",
}

DEFAULT_PORTS: dict[str, str] = {
    "pgsql": "5432",
    "sqlsrv": "1433",
}

SQLITE_COMMENTED_FIELDS: tuple[str, ...] = (
    "DB_HOST=127.0.0.1",
    "DB_PORT=3306",
    "DB_DATABASE=laravel",
    "DB_USERNAME=root",
    "DB_PASSWORD=",
)

# The five fields are commented and uncommented as a set, keyed on the
# variable name so a renamed DB_DATABASE moves with the others.
_FIELD_KEYS = "(?:" + "|".join(field.split("=", 1)[0] for field in SQLITE_COMMENTED_FIELDS) + ")"

# Present in .env once the SQLite fields have been commented out.
# Assumes the skeleton ships them uncommented with these exact values.
SQLITE_MARKER = "# DB_HOST=127.0.0.1"

ENV_FILES: tuple[str, ...] = (".env", ".env.example")


def sanitize_database_name(name: str) -> str:
    """Lowercase *name* and replace dashes with underscores.

    Nothing else is touched: ``"My-Cool-App"`` becomes ``"my_cool_app"``.
    """
    return name.lower().replace("-", "_")


class DatabaseConfigurator:
    """Applies the database substitutions to a project's env files."""

    def __init__(self, file_manager: FileManagerInterface) -> None:
        self.file_manager = file_manager

    def configure(self, directory: str | Path, database: str | Database, name: str) -> None:
        """Make *database* the default connection of the app in *directory*.

        Args:
            directory: Application root containing ``.env`` and ``.env.example``.
            database: Driver name (``mysql``, ``pgsql``, ``sqlite`` ...).
            name: Application name, used for ``DB_DATABASE``.
        """
        driver = Database(database).value
        self._update_connection(directory, driver)

        if driver == Database.SQLITE.value:
            self._configure_sqlite(directory)
        else:
            self._uncomment_fields(directory)
            self._update_port(directory, driver)
            self._update_database_name(directory, name)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _paths(self, directory: str | Path) -> list[str]:
        return [f"{directory}/{env_file}" for env_file in ENV_FILES]

    def _update_connection(self, directory: str | Path, driver: str) -> None:
        for path in self._paths(directory):
            self.file_manager.preg_replace(path, r"DB_CONNECTION=[^\r\n]*", f"DB_CONNECTION={driver}")

    def _configure_sqlite(self, directory: str | Path) -> None:
        environment = self.file_manager.read(f"{directory}/.env")

        if SQLITE_MARKER not in environment:
            self._comment_fields(directory)

    def _comment_fields(self, directory: str | Path) -> None:
        for path in self._paths(directory):
            self.file_manager.preg_replace(path, rf"(?m)^(?={_FIELD_KEYS}=)", "# ")

    def _uncomment_fields(self, directory: str | Path) -> None:
        for path in self._paths(directory):
            self.file_manager.preg_replace(path, rf"(?m)^# (?={_FIELD_KEYS}=)", "")

    def _update_port(self, directory: str | Path, driver: str) -> None:
        port = DEFAULT_PORTS.get(driver)
        if port is None:
            return

        for path in self._paths(directory):
            self.file_manager.replace(path, "DB_PORT=3306", f"DB_PORT={port}")

    def _update_database_name(self, directory: str | Path, name: str) -> None:
        database_name = sanitize_database_name(name)
        for path in self._paths(directory):
            self.file_manager.replace(
                path, "DB_DATABASE=laravel", f"DB_DATABASE={database_name}"
            )
