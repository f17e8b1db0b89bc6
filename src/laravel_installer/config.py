"""Laravel installer configuration.

Two kinds of configuration live here:

* ``InstallerSettings`` -- typed, per-process settings (which PHP and Composer
  binaries to use, where the user config lives, whether to attach a TTY).
  Built once from the environment by the CLI entry point.
* ``ConfigRepository`` -- the user's saved defaults for ``laravel new``,
  persisted as JSON under ``~/.laravel-installer/config.json`` and written by
  ``laravel configure``.
"""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from laravel_installer.options import InstallerError

CONFIG_RELATIVE_PATH = Path(".laravel-installer") / "config.json"

# Options ``laravel configure`` is allowed to persist.
ALLOWED_DEFAULTS: tuple[str, ...] = (
    "git",
    "branch",
    "organization",
    "react",
    "vue",
    "livewire",
    "no_authentication",
    "pest",
    "phpunit",
    "force",
)


def default_config_path() -> Path:
    """Return ``$HOME/.laravel-installer/config.json`` (``USERPROFILE`` on Windows)."""
    home = os.environ.get("HOME") or os.environ.get("USERPROFILE") or str(Path.home())
    return Path(home) / CONFIG_RELATIVE_PATH


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() not in ("0", "false", "no", "off")


class InstallerSettings(BaseModel):
    """Process-wide installer settings."""

    php_binary: str = Field(default="php", description="PHP executable used for artisan and Pest")
    composer_binary: str | None = Field(
        default=None,
        description="Composer command; resolved from the working directory when unset",
    )
    config_path: Path = Field(default_factory=default_config_path)
    check_for_updates: bool = Field(default=True)
    tty: bool | None = Field(
        default=None,
        description="Force TTY attachment on (True) or off (False); auto-detect when None",
    )

    def composer(self, cwd: str | Path | None = None) -> str:
        """Return the Composer command for *cwd*.

        An explicit ``composer_binary`` wins; otherwise a ``composer.phar`` in
        the working directory is run through PHP, and plain ``composer`` is
        the fallback.
        """
        if self.composer_binary:
            return self.composer_binary

        phar = (Path(cwd) if cwd else Path.cwd()) / "composer.phar"
        if phar.exists():
            return f'"{self.php_binary}" "{phar}"'

        return "composer"

    @classmethod
    def from_env(cls) -> "InstallerSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            PHP_BINARY, COMPOSER_BINARY, LARAVEL_INSTALLER_CONFIG,
            LARAVEL_INSTALLER_SKIP_UPDATE_CHECK, LARAVEL_INSTALLER_TTY.
        """
        kwargs: dict[str, Any] = {}

        php = os.environ.get("PHP_BINARY") or shutil.which("php")
        if php:
            kwargs["php_binary"] = php
        if os.environ.get("COMPOSER_BINARY"):
            kwargs["composer_binary"] = os.environ["COMPOSER_BINARY"]
        if os.environ.get("LARAVEL_INSTALLER_CONFIG"):
            kwargs["config_path"] = Path(os.environ["LARAVEL_INSTALLER_CONFIG"])

        skip_updates = _env_flag("LARAVEL_INSTALLER_SKIP_UPDATE_CHECK")
        if skip_updates is not None:
            kwargs["check_for_updates"] = not skip_updates

        tty = _env_flag("LARAVEL_INSTALLER_TTY")
        if tty is not None:
            kwargs["tty"] = tty

        return cls(**kwargs)


class ConfigError(InstallerError):
    """Raised when the saved-defaults file cannot be parsed."""


class ConfigRepository:
    """Key/value JSON store for saved ``laravel new`` defaults.

    The file is created lazily on the first ``set``.  There is no locking:
    concurrent writers race and the last one wins.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else default_config_path()

    def all(self) -> dict[str, Any]:
        """Return every stored value (an empty dict when nothing was saved).

        Raises:
            ConfigError: If the file is not valid JSON.
        """
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise ConfigError(
                f"Invalid configuration file [{self.path}]: {exc}."
                " Fix it or run `laravel configure --flush`."
            ) from exc
        if not isinstance(data, dict):
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at *key*; dots address nested objects."""
        current: Any = self.all()
        for segment in key.split("."):
            if not isinstance(current, dict) or segment not in current:
                return default
            current = current[segment]
        return current

    def set(self, key: str, value: Any) -> "ConfigRepository":
        """Store *value* at *key*, creating nested objects for dotted keys."""
        config = self.all()

        target = config
        *parents, leaf = key.split(".")
        for segment in parents:
            if not isinstance(target.get(segment), dict):
                target[segment] = {}
            target = target[segment]
        target[leaf] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(config, indent=4), encoding="utf-8")
        return self

    def flush(self) -> "ConfigRepository":
        """Delete the configuration file."""
        if self.path.exists():
            self.path.unlink()
        return self
