import logging
from datetime import datetime
from typing import Any, Dict, Optional

from rich.box import HEAVY, ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fetchguard.domain.interfaces.user_interface import UserInterface
from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.http import HttpResponse
from fetchguard.infrastructure.monitoring.fetch_observer import format_latency

logger = logging.getLogger(__name__)

BODY_PREVIEW_CHARS = 200


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays a plain line of output.

        Args:
            output: The string to display.
            **kwargs: ``style`` for an optional rich style.
        """
        self.console.print(Text(output, style=kwargs.get("style", "")))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational line.

        Args:
            info_message: The informational message to display.
        """
        self.console.print(Text(info_message, style="cyan"))

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message.

        Args:
            warning_message: The warning message to display.
        """
        self.console.print(Text(f"Warning: {warning_message}", style="yellow"))

    def display_response(self, response: HttpResponse, latency: float) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="green", padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("URL", response.url)
        table.add_row("Status", str(response.status_code))
        table.add_row("Latency", format_latency(latency))
        table.add_row("Body size", f"{response.body_size} bytes")
        self.console.print(Panel(table, title="[bold green]Response[/bold green]", border_style="green"))
        self._display_body_preview(response.body)

    def display_cached_entry(self, entry: CacheEntry) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Status", str(entry.status_code))
        table.add_row("Body size", f"{entry.body_size} bytes")
        table.add_row("Cached at", entry.cached_at.isoformat())
        table.add_row("Expires at", entry.expires_at.isoformat())
        self.console.print(Panel(table, title="[bold cyan]Cached response[/bold cyan]", border_style="cyan"))
        self._display_body_preview(entry.body)

    def display_stats(self, stats: Dict[str, Any]) -> None:
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Stat", style="bold")
        table.add_column("Value", justify="right")
        for name in sorted(stats):
            table.add_row(name, _format_value(stats[name]))
        self.console.print(table)

    def _display_body_preview(self, body: bytes) -> None:
        if not body:
            return
        text = body.decode("utf-8", errors="replace")
        if len(text) > BODY_PREVIEW_CHARS:
            text = text[:BODY_PREVIEW_CHARS] + "..."
        self.console.print(Text(text, style="dim"))
