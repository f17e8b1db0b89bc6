"""User prompts for the installer.

Every question the installer asks goes through a :class:`Prompter`.  Two
implementations exist and the CLI picks one per invocation:

* ``RichPrompter`` -- asks on the terminal with ``rich.prompt`` and keeps
  asking until the answer passes validation.
* ``NonInteractivePrompter`` -- used with ``--no-interaction`` or when stdin
  is not a terminal.  Returns each prompt's default and raises
  :class:`PromptError` when a required answer has no default.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from laravel_installer.options import InstallerError
from laravel_installer.utils import console as default_console

Validator = Callable[[Any], "str | None"]
Options = Mapping[str, str] | Sequence[str]


class PromptError(InstallerError):
    """Raised when a required answer cannot be obtained."""


def _normalize_options(options: Options) -> dict[str, str]:
    """Return ``{value: label}``; a plain list uses each item as both."""
    if isinstance(options, Mapping):
        return dict(options)
    return {option: option for option in options}


def _required_message(required: bool | str) -> str:
    return required if isinstance(required, str) else "Required."


def _is_empty(value: Any) -> bool:
    return value == "" or value == [] or value is False or value is None


@runtime_checkable
class Prompter(Protocol):
    def text(
        self,
        label: str,
        default: str = "",
        placeholder: str = "",
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str: ...

    def password(
        self,
        label: str,
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str: ...

    def confirm(self, label: str, default: bool = True) -> bool: ...

    def select(self, label: str, options: Options, default: str | None = None) -> str: ...

    def multiselect(
        self,
        label: str,
        options: Options,
        default: Sequence[str] = (),
        required: bool | str = False,
    ) -> list[str]: ...

    def suggest(
        self,
        label: str,
        options: Sequence[str],
        default: str = "",
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str: ...


# ---------------------------------------------------------------------------
# Interactive
# ---------------------------------------------------------------------------


class RichPrompter:
    """Terminal prompts built on ``rich.prompt``."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def _until_valid(
        self,
        ask: Callable[[], Any],
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> Any:
        while True:
            result = ask()

            if required and _is_empty(result):
                self.console.print(f"  [red]{escape(_required_message(required))}[/red]")
                continue

            if validate is not None:
                error = validate(result)
                if error:
                    self.console.print(f"  [red]{escape(error)}[/red]")
                    continue

            return result

    def text(
        self,
        label: str,
        default: str = "",
        placeholder: str = "",
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str:
        prompt = f"[green]{escape(label)}[/green]"
        if placeholder:
            prompt += f" [dim]({escape(placeholder)})[/dim]"

        def ask() -> str:
            if default:
                return Prompt.ask(prompt, default=default, console=self.console).strip()
            return Prompt.ask(prompt, console=self.console).strip()

        return self._until_valid(ask, required, validate)

    def password(
        self,
        label: str,
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str:
        return self._until_valid(
            lambda: Prompt.ask(f"[green]{escape(label)}[/green]", password=True, console=self.console),
            required,
            validate,
        )

    def confirm(self, label: str, default: bool = True) -> bool:
        return Confirm.ask(f"[green]{escape(label)}[/green]", default=default, console=self.console)

    def _print_options(self, options: dict[str, str]) -> None:
        for value, option_label in options.items():
            self.console.print(f"    [cyan]{escape(value)}[/cyan]  {escape(option_label)}")

    def select(self, label: str, options: Options, default: str | None = None) -> str:
        choices = _normalize_options(options)
        self.console.print(f"[green]{escape(label)}[/green]")
        self._print_options(choices)

        if default is None:
            default = next(iter(choices))

        return Prompt.ask(
            "  Select",
            choices=list(choices),
            default=default,
            show_choices=False,
            console=self.console,
        )

    def multiselect(
        self,
        label: str,
        options: Options,
        default: Sequence[str] = (),
        required: bool | str = False,
    ) -> list[str]:
        choices = _normalize_options(options)
        self.console.print(f"[green]{escape(label)}[/green] [dim](comma separated, blank for none)[/dim]")
        self._print_options(choices)

        def ask() -> list[str]:
            answer = Prompt.ask(
                "  Select",
                default=",".join(default),
                show_default=bool(default),
                console=self.console,
            )
            return [item.strip() for item in answer.split(",") if item.strip()]

        def validate(selected: list[str]) -> str | None:
            unknown = [item for item in selected if item not in choices]
            if unknown:
                return f"Unknown option(s): {', '.join(unknown)}"
            return None

        return self._until_valid(ask, required, validate)

    def suggest(
        self,
        label: str,
        options: Sequence[str],
        default: str = "",
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str:
        if options:
            self.console.print(f"  [dim]Suggestions: {escape(', '.join(options))}[/dim]")
        return self.text(label, default=default, required=required, validate=validate)


# ---------------------------------------------------------------------------
# Non-interactive
# ---------------------------------------------------------------------------


class NonInteractivePrompter:
    """Answers every prompt with its default."""

    def _checked(
        self,
        label: str,
        value: Any,
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> Any:
        if required and _is_empty(value):
            message = required if isinstance(required, str) else f'A value is required for "{label}".'
            raise PromptError(message)

        if validate is not None and not _is_empty(value):
            error = validate(value)
            if error:
                raise PromptError(error)

        return value

    def text(
        self,
        label: str,
        default: str = "",
        placeholder: str = "",
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str:
        return self._checked(label, default, required, validate)

    def password(
        self,
        label: str,
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str:
        return self._checked(label, "", required, validate)

    def confirm(self, label: str, default: bool = True) -> bool:
        return default

    def select(self, label: str, options: Options, default: str | None = None) -> str:
        choices = _normalize_options(options)
        if default is not None:
            return default
        if not choices:
            raise PromptError(f'No options available for "{label}".')
        return next(iter(choices))

    def multiselect(
        self,
        label: str,
        options: Options,
        default: Sequence[str] = (),
        required: bool | str = False,
    ) -> list[str]:
        return self._checked(label, list(default), required)

    def suggest(
        self,
        label: str,
        options: Sequence[str],
        default: str = "",
        required: bool | str = False,
        validate: Validator | None = None,
    ) -> str:
        return self._checked(label, default, required, validate)
