"""Output formatting utilities built on rich."""

import json
import sys
from typing import Any

from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.table import Table

from fractal.schemas.goal import Goal


class OutputFormatter:
    """Formats goals and messages for the terminal."""

    def __init__(self, force_color: bool = False):
        """Initialize formatter."""
        self.console = Console(force_terminal=force_color or None, file=sys.stdout)
        self.err_console = Console(force_terminal=force_color or None, file=sys.stderr)

    def print_json(self, data: Any, indent: int = 2) -> None:
        """Print JSON with syntax highlighting."""
        self.console.print(JSON(json.dumps(data, indent=indent, ensure_ascii=False)))

    def print_goals(self, goals: list[Goal]) -> None:
        """Print the goal list, newest first, or the empty state."""
        if not goals:
            self.console.print("[bold]No Goals Yet[/bold]")
            self.console.print(
                "[dim]Run 'fractal add' with a huge new goal to break it down into tiny steps.[/dim]"
            )
            return

        table = Table(title="My Goals", show_header=True, header_style="bold magenta")
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Goal", style="bold")
        table.add_column("Timeline", style="blue")
        table.add_column("Status", style="green")

        for index, goal in enumerate(goals):
            table.add_row(str(index), escape(goal.title), goal.date_range_string, goal.status_line)

        self.console.print(table)

    def print_goal(self, goal: Goal) -> None:
        """Print one goal with its steps."""
        self.console.print(f"[bold cyan]{escape(goal.title)}[/bold cyan]")
        if goal.date_range_string:
            self.console.print(f"[blue]{goal.date_range_string}[/blue]")
        self.console.print("[bold]First Steps[/bold]")
        if goal.is_loading:
            self.console.print("[dim]Breaking it down...[/dim]")
        elif not goal.steps:
            self.console.print("No steps generated yet.")
        else:
            for number, step in enumerate(goal.steps, start=1):
                self.console.print(f"  {number}. {escape(step)}", highlight=False)

    def print_success(self, message: str) -> None:
        """Print success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print error message."""
        self.err_console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")
