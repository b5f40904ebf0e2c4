"""Transient notification sinks (the terminal's stand-in for toasts)."""

from __future__ import annotations

from typing import Optional, Protocol

from rich.console import Console
from rich.panel import Panel
from rich.table import Column, Table
from rich.text import Text

from .roster import Roster


class Notifier(Protocol):
    """Display a short success or error message with an optional description."""

    def success(self, title: str, description: Optional[str] = None) -> None:
        ...

    def error(self, title: str, description: Optional[str] = None) -> None:
        ...


class ConsoleNotifier:
    """Render notifications as compact rich panels."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def success(self, title: str, description: Optional[str] = None) -> None:
        self._show(title, description, style="green", icon="✓")

    def error(self, title: str, description: Optional[str] = None) -> None:
        self._show(title, description, style="red", icon="✗")

    def _show(self, title: str, description: Optional[str], *, style: str, icon: str) -> None:
        body = Text(f"{icon} {title}", style=f"bold {style}")
        if description:
            body.append("\n")
            body.append(description, style="dim")
        self.console.print(Panel(body, border_style=style, expand=False))


def render_roster(console: Console, roster: Roster) -> None:
    """Print the selectable identities as a borderless table."""
    table = Table(
        Column(header="#", justify="right", style="blue"),
        Column(header="ID", style="bold"),
        Column(header="Name"),
        box=None,
        show_header=True,
        header_style="bold blue",
        expand=False,
    )
    for index, identity in enumerate(roster, 1):
        table.add_row(str(index), identity.id, identity.display_name)
    console.print(table)
