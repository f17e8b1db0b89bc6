"""Installer self-update check against Packagist.

The check is advisory: any network or parsing failure is swallowed and
reported as "no update known" so it never blocks scaffolding.
"""

from __future__ import annotations

import re

import httpx
from pydantic import BaseModel, Field

PACKAGIST_URL = "https://repo.packagist.org/p2/laravel/installer.json"
PACKAGE_NAME = "laravel/installer"

_VERSION = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


class UpdateStatus(BaseModel):
    """Result of comparing the running version with the latest release."""

    current: str
    latest: str | None = Field(default=None, description="Latest stable release, if known")
    error: str | None = None

    @property
    def update_available(self) -> bool:
        if self.latest is None:
            return False
        latest = parse_version(self.latest)
        current = parse_version(self.current)
        return latest is not None and current is not None and latest > current


def parse_version(version: str) -> tuple[int, int, int] | None:
    """Parse ``v5.16.0`` / ``5.16.0`` into a comparable tuple; pre-releases give ``None``."""
    match = _VERSION.match(version.strip())
    if match is None:
        return None
    return (int(match.group(1)), int(match.group(2)), int(match.group(3)))


def latest_stable(releases: list[dict]) -> str | None:
    """Return the highest stable version string in a Packagist release list."""
    stable: list[tuple[tuple[int, int, int], str]] = []
    for release in releases:
        if not isinstance(release, dict) or not isinstance(release.get("version"), str):
            continue
        parsed = parse_version(release["version"])
        if parsed is not None:
            stable.append((parsed, release["version"]))

    if not stable:
        return None
    return max(stable)[1]


class UpdateChecker:
    """Asks Packagist for the latest ``laravel/installer`` release."""

    def __init__(self, current_version: str, url: str = PACKAGIST_URL, timeout: float = 3.0) -> None:
        self.current_version = current_version
        self.url = url
        self.timeout = timeout

    async def check(self) -> UpdateStatus:
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=2.0)) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            return UpdateStatus(current=self.current_version, error=str(exc))

        releases = data.get("packages", {}).get(PACKAGE_NAME, []) if isinstance(data, dict) else []
        return UpdateStatus(current=self.current_version, latest=latest_stable(releases))
