"""Terminal interaction for the wizard.

The pipeline only talks to the ``Prompter`` protocol so tests and CI runs can
substitute their own answers. ``ConsolePrompter`` asks real questions with
click; ``WizardUI`` prints progress with rich.
"""

from contextlib import contextmanager
from typing import Iterator, Protocol, Sequence, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from raindrop_wizard.errors import WizardCancelled

T = TypeVar("T")


class Prompter(Protocol):
    """Questions the pipeline may ask the user."""

    def select(self, message: str, choices: Sequence[tuple[str, T]]) -> T: ...

    def confirm(self, message: str, default: bool = True) -> bool: ...

    def text(self, message: str, placeholder: str | None = None) -> str: ...


class ConsolePrompter:
    """Prompter backed by click prompts.

    Ctrl-C or end of input at any prompt becomes ``WizardCancelled``.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def select(self, message: str, choices: Sequence[tuple[str, T]]) -> T:
        self.console.print(f"[bold]{escape(message)}[/]")
        for index, (label, _) in enumerate(choices, start=1):
            self.console.print(f"  {index}. {escape(label)}")

        try:
            choice = click.prompt(
                "  Choose",
                type=click.IntRange(1, len(choices)),
                default=1,
            )
        except click.Abort:
            raise WizardCancelled("Wizard setup cancelled.")
        return choices[choice - 1][1]

    def confirm(self, message: str, default: bool = True) -> bool:
        try:
            return click.confirm(message, default=default)
        except click.Abort:
            raise WizardCancelled("Wizard setup cancelled.")

    def text(self, message: str, placeholder: str | None = None) -> str:
        try:
            value = click.prompt(
                message,
                default=placeholder or "",
                show_default=bool(placeholder),
            )
        except click.Abort:
            raise WizardCancelled("Wizard setup cancelled.")
        return str(value).strip()


class WizardUI:
    """Progress output for a wizard run."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def intro(self, title: str) -> None:
        self.console.print()
        self.console.print(f"[reverse] {escape(title)} [/]")

    def outro(self, message: str) -> None:
        self.console.print(f"[bold]{escape(message)}[/]")

    def note(self, message: str) -> None:
        self.console.print(Panel(escape(message), expand=False))

    def info(self, message: str) -> None:
        self.console.print(f"[blue]●[/] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✔[/] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]▲[/] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✖[/] {escape(message)}")

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        with self.console.status(message):
            yield
