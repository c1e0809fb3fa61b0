from datetime import datetime
from typing import Optional
from yaspin import yaspin
from rich.console import Console

console = Console()


class UX:
    """
    Centralized UX handler for the CLI.
    Wraps Yaspin for spinners and consolidates Rich output.
    """

    @staticmethod
    def spinner(text: str):
        """Returns a configured yaspin spinner."""
        return yaspin(text=text, color="cyan", spinner="dots")

    @staticmethod
    def print_success(message: str):
        console.print(f"[green]✓ {message}[/green]")

    @staticmethod
    def print_error(message: str):
        console.print(f"[red]✗ {message}[/red]")

    @staticmethod
    def print_warning(message: str):
        console.print(f"[yellow]⚠️  {message}[/yellow]")

    @staticmethod
    def format_ms(value: Optional[float]) -> str:
        """Human readable duration: 950ms, 12.4s, 3m 05s."""
        if value is None:
            return "-"
        if value < 1000:
            return f"{int(value)}ms"
        seconds = value / 1000
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes, rest = divmod(int(seconds), 60)
        return f"{minutes}m {rest:02d}s"

    @staticmethod
    def format_epoch_ms(value: Optional[int]) -> str:
        if not value:
            return "-"
        return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M")

    @staticmethod
    def truncate(text: str, width: int = 40) -> str:
        if len(text) > width:
            return text[:width - 3] + "..."
        return text
