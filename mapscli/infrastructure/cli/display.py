import logging
from typing import Any, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mapscli.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_table(self, title: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        """Renders results as a table with one column per header."""
        table = Table(title=title, show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        for column in columns:
            table.add_column(column, style="white")
        for row in rows:
            table.add_row(*("" if cell is None else str(cell) for cell in row))
        logger.debug(f"Displaying table '{title}' with {len(rows)} row(s)")
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
            **kwargs: ``title`` overrides the panel title.
        """
        title = kwargs.get("title", "Error")
        panel = Panel(
            Text(error_message, style="white"),
            title=f"[bold red]{title}[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
