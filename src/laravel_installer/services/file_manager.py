"""Filesystem primitives used to mutate generated project files.

``FileManagerInterface`` is the capability the rest of the installer depends
on, so services such as :class:`DatabaseConfigurator` can be tested against a
fake or a mock.  Nothing is cached: every call re-reads from disk.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileManagerInterface(Protocol):
    def exists(self, path: str | Path) -> bool: ...

    def read(self, path: str | Path) -> str: ...

    def write(self, path: str | Path, contents: str) -> None: ...

    def replace(
        self,
        path: str | Path,
        search: str | Sequence[str],
        replace: str | Sequence[str],
    ) -> None: ...

    def preg_replace(self, path: str | Path, pattern: str, replacement: str) -> None: ...

    def delete(self, path: str | Path) -> None: ...

    def copy(self, source: str | Path, destination: str | Path) -> None: ...


def replace_all(
    contents: str,
    search: str | Sequence[str],
    replace: str | Sequence[str],
) -> str:
    """Replace every occurrence of *search* in *contents*.

    When *search* is a list, its n-th element is replaced by the n-th element
    of *replace* (or by *replace* itself when that is a single string).
    Replacements are applied in list order.
    """
    if isinstance(search, str):
        if not isinstance(replace, str):
            raise TypeError("A single search string needs a single replacement string")
        return contents.replace(search, replace)

    searches = list(search)
    if isinstance(replace, str):
        replacements = [replace] * len(searches)
    else:
        replacements = list(replace)
        if len(replacements) != len(searches):
            raise ValueError(
                f"Expected {len(searches)} replacements, got {len(replacements)}"
            )

    for needle, substitute in zip(searches, replacements):
        contents = contents.replace(needle, substitute)
    return contents


class FileManager:
    """Real filesystem implementation of ``FileManagerInterface``.

    Line endings are neither translated on read nor on write, so a CRLF
    ``.env`` stays CRLF.
    """

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def read(self, path: str | Path) -> str:
        with open(path, encoding="utf-8", newline="") as handle:
            return handle.read()

    def write(self, path: str | Path, contents: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(contents)

    def replace(
        self,
        path: str | Path,
        search: str | Sequence[str],
        replace: str | Sequence[str],
    ) -> None:
        self.write(path, replace_all(self.read(path), search, replace))

    def preg_replace(self, path: str | Path, pattern: str, replacement: str) -> None:
        """Apply one regular-expression substitution across the whole file.

        ``.`` does not match ``\\n`` but does match ``\\r``; patterns meant to
        stop at the end of a line should use ``[^\\r\\n]*``.
        """
        contents = self.read(path)
        self.write(path, re.sub(pattern, lambda _match: replacement, contents))

    def delete(self, path: str | Path) -> None:
        Path(path).unlink()

    def copy(self, source: str | Path, destination: str | Path) -> None:
        shutil.copyfile(source, destination)
