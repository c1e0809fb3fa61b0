import asyncio
import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table

from webreplay.browser.manager import BrowserManager
from webreplay.core.config import ConfigManager
from webreplay.core.constants import DEFAULT_MAX_DURATION, DEFAULT_MIN_DURATION
from webreplay.core.models import ReplayOptions, ReplayResult, RecordingSession
from webreplay.core.state import SessionNotFoundError
from webreplay.recorder.session_store import SessionStore
from webreplay.replay.engine import ReplayEngine
from webreplay.replay.report import ReportGenerator
from webreplay.utils.ux import UX

console = Console(width=120)


async def run_replay(
    store: SessionStore,
    session: RecordingSession,
    options: ReplayOptions,
    headless: bool,
) -> ReplayResult:
    """Launch a fresh browser sized like the recording and replay into it."""
    async with BrowserManager(
        headless=headless,
        viewport=session.viewport.to_dict(),
        screenshots_dir=ConfigManager.screenshots_dir(),
    ) as browser:
        return await ReplayEngine(store).replay(session.id, browser.driver, options)


def _print_result(result: ReplayResult) -> None:
    if result.success:
        UX.print_success(result.message)
    else:
        UX.print_error(result.message)

    console.print(
        f"Executed {result.events_executed}, failed {result.events_failed} | "
        f"recorded {UX.format_ms(result.total_duration)}, replayed {UX.format_ms(result.actual_duration)}"
    )

    if result.errors:
        table = Table(show_header=True, header_style="bold red")
        table.add_column("#", justify="right")
        table.add_column("Type")
        table.add_column("Error")
        for err in result.errors:
            table.add_row(str(err.event_index), err.event.type, err.error)
        console.print(table)

    for ref in result.screenshots:
        console.print(f"[dim]📸 {ConfigManager.screenshots_dir() / Path(ref).name}[/dim]")


def replay(
    session_id: str = typer.Argument(..., help="Recording ID"),
    speed: float = typer.Option(1.0, "--speed", "-s", help="Speed multiplier (2 = twice as fast)"),
    min_duration: int = typer.Option(DEFAULT_MIN_DURATION, "--min-duration", help="Minimum wait between events (ms)"),
    max_duration: int = typer.Option(DEFAULT_MAX_DURATION, "--max-duration", help="Maximum wait between events (ms)"),
    skip_mouse_moves: bool = typer.Option(False, "--skip-mouse-moves", help="Ignore recorded mouse movement"),
    screenshot: bool = typer.Option(False, "--screenshot", help="Screenshot after every event"),
    continue_on_error: bool = typer.Option(False, "--continue-on-error", help="Keep going after a failing event"),
    headless: bool = typer.Option(True, "--headless/--headed", help="Run browser in headless mode"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write an HTML report to this path"),
):
    """Replay a recording in a new browser and report pass/fail."""
    store = SessionStore(ConfigManager.recordings_dir())
    try:
        session = store.load(session_id)
    except SessionNotFoundError as e:
        UX.print_error(str(e))
        raise typer.Exit(code=1)

    options = ReplayOptions(
        speed_multiplier=speed,
        min_duration=min_duration,
        max_duration=max_duration,
        skip_mouse_moves=skip_mouse_moves,
        screenshot=screenshot,
        stop_on_error=not continue_on_error,
    )

    with UX.spinner(f"Replaying {session.name or session.id} ({len(session.events)} events)..."):
        result = asyncio.run(run_replay(store, session, options, headless))

    _print_result(result)

    if report:
        ReportGenerator().generate(session, result, report)
        UX.print_success(f"Report written to {report}")

    if not result.success:
        raise typer.Exit(code=1)
