"""Reusable UI helpers for git-tfs-merge interactions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

YES_ANSWERS = ("y", "yes")

# Filled circles are finished steps, hollow ones are not (yet) run.
STATUS_SYMBOLS = {
    "pending": "[green dim]○[/green dim]",
    "running": "[cyan]○[/cyan]",
    "done": "[green]●[/green]",
    "warning": "[yellow]●[/yellow]",
    "error": "[red]●[/red]",
    "skipped": "[yellow]○[/yellow]",
}


@dataclass
class _Step:
    key: str
    label: str
    status: str = "pending"
    detail: str = ""


class StepTracker:
    """Track and render workflow steps with Rich trees."""

    def __init__(self, title: str):
        self.title = title
        self._steps: dict[str, _Step] = {}

    def add(self, key: str, label: str):
        self._steps.setdefault(key, _Step(key, label))

    def start(self, key: str, detail: str = ""):
        self._update(key, "running", detail)

    def complete(self, key: str, detail: str = ""):
        self._update(key, "done", detail)

    def error(self, key: str, detail: str = ""):
        self._update(key, "error", detail)

    def warn(self, key: str, detail: str = ""):
        self._update(key, "warning", detail)

    def skip(self, key: str, detail: str = ""):
        self._update(key, "skipped", detail)

    def status_of(self, key: str) -> str | None:
        step = self._steps.get(key)
        return step.status if step else None

    def _update(self, key: str, status: str, detail: str):
        step = self._steps.setdefault(key, _Step(key, key))
        step.status = status
        if detail:
            step.detail = detail

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{escape(self.title)}[/cyan]", guide_style="grey50")
        for step in self._steps.values():
            symbol = STATUS_SYMBOLS.get(step.status, " ")
            label = escape(step.label)
            detail = escape(step.detail.strip())
            if step.status == "pending":
                text = f"{label} ({detail})" if detail else label
                tree.add(f"{symbol} [bright_black]{text}[/bright_black]")
            elif detail:
                tree.add(f"{symbol} [white]{label}[/white] [bright_black]({detail})[/bright_black]")
            else:
                tree.add(f"{symbol} [white]{label}[/white]")
        return tree


def _resolve_console(console: Optional[Console]) -> Console:
    return console or Console()


def confirm_or_cancel(message: str, console: Console | None = None) -> bool:
    """Ask a y/N question; only an explicit yes returns True.

    Unlike ``typer.confirm`` any other answer, including an empty line,
    counts as no instead of re-prompting. End of input aborts.
    """
    console = _resolve_console(console)
    console.print(f"[yellow]{escape(message)}[/yellow]")
    answer = typer.prompt("Continue anyway? [y/N]", default="", show_default=False)
    return answer.strip().lower() in YES_ANSWERS


__all__ = [
    "StepTracker",
    "confirm_or_cancel",
]
