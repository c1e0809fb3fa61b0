import time
from typing import List, Optional

from webreplay.core.constants import ACTION_TYPES, URL_WAIT_TIMEOUT_MS
from webreplay.core.logging import log
from webreplay.core.models import (
    RecordedAction,
    RecordingSession,
    ReplayError,
    ReplayOptions,
    ReplayResult,
)
from webreplay.recorder.session_store import SessionStore
from webreplay.replay.driver import PageDriver


def calculate_wait_time(duration: float, options: ReplayOptions) -> float:
    """Recorded gap scaled by the speed multiplier, clamped to [min, max]."""
    wait_time = duration or 0
    if options.speed_multiplier:
        wait_time = wait_time / options.speed_multiplier
    return max(options.min_duration, min(options.max_duration, wait_time))


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__


class ReplayEngine:
    """Drives a page through a persisted session, reproducing its timing.

    A replay never raises for a failing event. Failures are collected in the
    result; with ``stop_on_error`` the first one ends the run.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    async def replay(
        self,
        session_id: str,
        driver: PageDriver,
        options: Optional[ReplayOptions] = None,
    ) -> ReplayResult:
        options = options or ReplayOptions()
        session = self.store.load(session_id)
        total = len(session.events)
        log(f"Starting replay of session: {session_id} ({total} events)", session_id=session_id)

        await self._match_viewport(session, driver)

        try:
            current_url = await self._open_start_url(session, driver)
        except Exception as e:
            message = f"Failed to navigate to start URL: {_error_message(e)}"
            log(message, level="error", session_id=session_id)
            return ReplayResult(
                success=False,
                session_id=session_id,
                events_executed=0,
                events_failed=1,
                total_duration=session.total_duration,
                errors=[ReplayError(
                    event_index=-1,
                    event=RecordedAction(
                        type="pageLoad",
                        url=session.start_url,
                        viewport=session.viewport,
                    ),
                    error=message,
                )],
                message="Failed to navigate to start URL",
            )

        started = time.monotonic()
        screenshots: List[str] = []
        errors: List[ReplayError] = []
        executed = 0

        for i, event in enumerate(session.events):
            if options.skip_mouse_moves and event.type == "mousemove":
                continue

            try:
                wait_time = calculate_wait_time(event.duration, options)
                if wait_time > 0:
                    await driver.wait(wait_time)

                if event.url and event.url != current_url:
                    current_url = await self._follow_url(event, driver, current_url)

                await self._execute_action(event, driver)
                executed += 1

                if options.screenshot:
                    await self._capture(driver, screenshots, i)

                log(f"Executed event {i + 1}/{total}: {event.type}", level="debug", event_index=i)

            except Exception as e:
                error = _error_message(e)
                log(f"Error executing event {i}: {error}", level="error", event_index=i)
                errors.append(ReplayError(event_index=i, event=event, error=error))

                if options.stop_on_error:
                    return ReplayResult(
                        success=False,
                        session_id=session_id,
                        events_executed=executed,
                        events_failed=len(errors),
                        total_duration=session.total_duration,
                        actual_duration=self._elapsed(started),
                        screenshots=screenshots,
                        errors=errors,
                        message=f"Replay failed at event {i}: {error}",
                    )

        success = not errors
        if success:
            log(f"Replay completed successfully: {executed} events", session_id=session_id)
        else:
            log(
                f"Replay completed with errors: {executed} executed, {len(errors)} failed",
                level="warning",
                session_id=session_id,
            )

        return ReplayResult(
            success=success,
            session_id=session_id,
            events_executed=executed,
            events_failed=len(errors),
            total_duration=session.total_duration,
            actual_duration=self._elapsed(started),
            screenshots=screenshots,
            errors=errors or None,
            message="Replay completed successfully" if success
            else f"Replay completed with {len(errors)} error(s)",
        )

    async def _match_viewport(self, session: RecordingSession, driver: PageDriver) -> None:
        current = driver.get_viewport()
        recorded = session.viewport
        if current is None or current == recorded:
            return
        try:
            await driver.set_viewport(recorded.width, recorded.height)
            log(f"Viewport adjusted to {recorded.width}x{recorded.height}")
        except Exception as e:
            log(f"Failed to set viewport: {_error_message(e)}", level="warning")

    async def _open_start_url(self, session: RecordingSession, driver: PageDriver) -> str:
        if driver.current_url() == session.start_url:
            log(f"Already on start URL, skipping navigation: {session.start_url}")
        else:
            await driver.navigate(session.start_url)
            await driver.wait_for_load()
        return driver.current_url()

    async def _follow_url(self, event: RecordedAction, driver: PageDriver, current_url: str) -> str:
        """Bring the page to ``event.url``; failures are logged, never raised."""
        if event.type == "pageLoad":
            page_url = driver.current_url()
            if page_url == event.url:
                log(f"Already on URL, skipping navigation: {event.url}")
                return page_url
            log(f"Navigating to: {event.url}")
            try:
                await driver.navigate(event.url)
                await driver.wait_for_load()
                return event.url
            except Exception as e:
                log(f"Navigation failed: {_error_message(e)}", level="warning")
                return current_url

        log(f"URL changed, waiting for navigation: {event.url}")
        try:
            await driver.wait_for_url(event.url, URL_WAIT_TIMEOUT_MS)
            return event.url
        except Exception as e:
            log(f"Navigation timeout, continuing anyway ({_error_message(e)})", level="warning")
            return current_url

    async def _execute_action(self, event: RecordedAction, driver: PageDriver) -> None:
        if event.type not in ACTION_TYPES:
            log(f"Unknown event type, nothing to do: {event.type}", level="debug")
            return
        # Events missing the fields their type needs are skipped silently.
        if event.type == "click":
            if event.x is not None and event.y is not None:
                await driver.pointer_click(event.x, event.y)
        elif event.type == "mousemove":
            if event.x is not None and event.y is not None:
                await driver.pointer_move(event.x, event.y)
        elif event.type in ("input", "keypress"):
            if event.value:
                await driver.type_text(event.value)
            elif event.key:
                await driver.press_key(event.key)
        elif event.type == "scroll":
            if event.scroll_x is not None and event.scroll_y is not None:
                await driver.scroll_to(event.scroll_x, event.scroll_y)

    async def _capture(self, driver: PageDriver, screenshots: List[str], index: int) -> None:
        try:
            screenshots.append(await driver.capture_screenshot())
        except Exception as e:
            log(f"Screenshot after event {index} failed: {_error_message(e)}", level="warning")

    @staticmethod
    def _elapsed(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
