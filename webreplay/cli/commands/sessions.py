import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from webreplay.core.config import ConfigManager
from webreplay.core.state import SessionNotFoundError
from webreplay.recorder.session_store import SessionStore
from webreplay.utils.ux import UX

console = Console(width=120)


def _store() -> SessionStore:
    return SessionStore(ConfigManager.recordings_dir())


def list_sessions():
    """List all saved recordings."""
    entries = _store().list()

    if not entries:
        rprint("[yellow]No recordings found.[/yellow]")
        return

    rprint(f"\n[bold cyan]Found {len(entries)} recordings:[/bold cyan]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Start URL")
    table.add_column("Recorded")
    table.add_column("Duration", justify="right")
    table.add_column("Events", justify="right")

    for entry in entries:
        table.add_row(
            entry.id,
            entry.name or "-",
            UX.truncate(entry.start_url),
            UX.format_epoch_ms(entry.start_time),
            UX.format_ms(entry.duration),
            str(entry.event_count),
        )

    console.print(table)


def show(session_id: str = typer.Argument(..., help="Recording ID")):
    """Show a recording and its events."""
    try:
        session = _store().load(session_id)
    except SessionNotFoundError as e:
        UX.print_error(str(e))
        raise typer.Exit(code=1)

    meta = session.metadata
    summary = "\n".join([
        f"[bold]Name:[/bold] {session.name or '-'}",
        f"[bold]Start URL:[/bold] {session.start_url or '-'}",
        f"[bold]Recorded:[/bold] {UX.format_epoch_ms(session.start_time)}",
        f"[bold]Duration:[/bold] {UX.format_ms(session.total_duration)}",
        f"[bold]Viewport:[/bold] {session.viewport.width}x{session.viewport.height}",
        f"[bold]Events:[/bold] {len(session.events)}"
        + (f" ({meta.url_changes} URL changes, avg {meta.average_action_duration}ms apart)" if meta else ""),
    ])
    console.print(Panel(summary, title=session.id, border_style="cyan"))

    if not session.events:
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type")
    table.add_column("At", justify="right")
    table.add_column("Wait", justify="right")
    table.add_column("Details")
    table.add_column("URL")

    for i, event in enumerate(session.events):
        if event.type in ("click", "mousemove"):
            details = f"({event.x}, {event.y})"
        elif event.type in ("input", "keypress"):
            details = repr(event.value) if event.value else (event.key or "")
        elif event.type == "scroll":
            details = f"scroll to ({event.scroll_x}, {event.scroll_y})"
        else:
            details = ""
        table.add_row(
            str(i),
            event.type,
            UX.format_ms(event.timestamp),
            UX.format_ms(event.duration),
            details,
            UX.truncate(event.url, 50),
        )

    console.print(table)


def delete(
    session_id: str = typer.Argument(..., help="Recording ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Delete without confirmation"),
):
    """Delete a recording."""
    if not force:
        confirm = typer.confirm(f"Delete recording {session_id}?")
        if not confirm:
            rprint("[yellow]Aborted.[/yellow]")
            return

    if _store().delete(session_id):
        UX.print_success(f"Deleted {session_id}")
    else:
        UX.print_warning(f"No recording named {session_id}; nothing to delete")


def rename(
    session_id: str = typer.Argument(..., help="Recording ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a recording."""
    try:
        _store().rename(session_id, name)
    except SessionNotFoundError as e:
        UX.print_error(str(e))
        raise typer.Exit(code=1)
    UX.print_success(f'Renamed {session_id} to "{name}"')
