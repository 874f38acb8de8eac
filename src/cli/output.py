"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
It doubles as the agent's response stream: command responses and chat
model fragments arrive through markdown() and are printed as they come.
Diagnostic logging is configured separately by the CLI entry point.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(no_color=False)
        >>> handler.markdown("✅ Done")
        >>> handler.end_response()
    """

    def __init__(self, no_color: bool = False):
        """Initialize output handler.

        Args:
            no_color: Disable color output if True
        """
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )
        self._response_open = False

    def markdown(self, text: str) -> None:
        """Write one response fragment verbatim (no Rich markup parsing).

        Args:
            text: Markdown text or a streamed fragment of it
        """
        self.console.print(text, end="", markup=False, soft_wrap=True)
        self._response_open = True

    def end_response(self) -> None:
        """Terminate the current response with a newline, if one was started."""
        if self._response_open:
            self.console.print()
            self._response_open = False

    def success(self, message: str) -> None:
        """Display success message in green.

        Args:
            message: Success message to display
        """
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red.

        Args:
            message: Error message to display
        """
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow.

        Args:
            message: Warning message to display
        """
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a blocking operation runs.

        Example:
            >>> with handler.spinner("Fetching page..."):
            ...     pass
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield
