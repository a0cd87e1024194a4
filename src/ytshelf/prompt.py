"""Interactive list selection on the terminal."""

from __future__ import annotations

from typing import Protocol, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import IntPrompt


class Chooser(Protocol):
    def choose(self, message: str, choices: Sequence[str]) -> str: ...


class RichChooser:
    """Numbered menu; the user types the index of their choice."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def choose(self, message: str, choices: Sequence[str]) -> str:
        if not choices:
            raise ValueError("nothing to choose from")
        self.console.print(f"[bold]{escape(message)}[/bold]")
        for index, choice in enumerate(choices, start=1):
            self.console.print(f"  [cyan]{index:>3}[/cyan]  {escape(choice)}")
        picked = IntPrompt.ask(
            "Number",
            console=self.console,
            choices=[str(i) for i in range(1, len(choices) + 1)],
            show_choices=False,
        )
        return choices[picked - 1]
