import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from webreplay.browser.manager import BrowserManager
from webreplay.core.constants import SCREENSHOT_RETENTION_SECONDS, VERSION
from webreplay.core.logging import log
from webreplay.core.models import RecordedAction, ReplayOptions, Viewport
from webreplay.core.state import RecorderError
from webreplay.recorder.manager import RecorderManager
from webreplay.recorder.probe import STOP_SCRIPT, get_probe_script
from webreplay.replay.engine import ReplayEngine
from webreplay.utils.file_io import prune_files


class StartRequest(BaseModel):
    name: Optional[str] = None


class RenameRequest(BaseModel):
    name: Optional[str] = None


def _parse_float(raw: Optional[str]) -> Optional[float]:
    try:
        return float(raw) if raw not in (None, "") else None
    except ValueError:
        return None


def _parse_int(raw: Optional[str]) -> Optional[int]:
    value = _parse_float(raw)
    return int(value) if value is not None else None


def parse_replay_options(
    speed: Optional[str] = None,
    min_duration: Optional[str] = None,
    max_duration: Optional[str] = None,
    skip_mouse_moves: Optional[str] = None,
    screenshot: Optional[str] = None,
    stop_on_error: Optional[str] = None,
) -> ReplayOptions:
    """Lenient query-string parsing: bad numbers fall back to defaults."""
    options = ReplayOptions(
        speed_multiplier=_parse_float(speed) or 1.0,
        skip_mouse_moves=skip_mouse_moves == "true",
        screenshot=screenshot == "true",
        stop_on_error=stop_on_error != "false",
    )
    parsed_min = _parse_int(min_duration)
    if parsed_min is not None:
        options.min_duration = parsed_min
    parsed_max = _parse_int(max_duration)
    if parsed_max is not None:
        options.max_duration = parsed_max
    return options


def create_app(
    recorder: RecorderManager,
    browser: BrowserManager,
    server_url: str,
    start_url: Optional[str] = None,
    settings: Optional[dict] = None,
    manage_browser: bool = False,
) -> FastAPI:
    """Build the HTTP surface around one recorder and one live browser page.

    With ``manage_browser`` the app launches the browser on startup, opens
    ``start_url`` and closes everything on shutdown.
    """
    settings = settings or {}
    engine = ReplayEngine(recorder.store)
    screenshots_dir = Path(browser.screenshots_dir)
    screenshots_dir.mkdir(parents=True, exist_ok=True)

    async def inject_probe() -> None:
        try:
            await browser.evaluate(get_probe_script(
                server_url,
                record_mouse_moves=settings.get("record_mouse_moves", False),
                mouse_move_throttle=settings.get("mouse_move_throttle", 100),
                session_start=recorder.get_status().start_time,
                last_action=recorder.last_event_time(),
            ))
            log("Client script injected into page")
        except Exception as e:
            log(f"Failed to inject client script: {e}", level="error")

    async def on_page_load(url: str, viewport: Viewport) -> None:
        if recorder.record_page_load(url, viewport):
            await inject_probe()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        subscription = None
        removed = prune_files(screenshots_dir, "*.png", SCREENSHOT_RETENTION_SECONDS)
        if removed:
            log(f"Removed {removed} old screenshots")
        if manage_browser:
            await browser.start()
            if start_url:
                try:
                    await browser.open(start_url)
                except Exception as e:
                    log(f"Could not open {start_url}: {e}", level="error")
            subscription = browser.on_navigation(on_page_load)
        try:
            yield
        finally:
            if subscription:
                subscription.cancel()
            if manage_browser:
                await browser.close()

    app = FastAPI(title="webreplay recorder", version=VERSION, lifespan=lifespan)
    app.state.recorder = recorder
    app.state.browser = browser
    app.state.engine = engine
    app.state.replay_lock = asyncio.Lock()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount("/screenshots", StaticFiles(directory=str(screenshots_dir), check_dir=False), name="screenshots")

    @app.exception_handler(RecorderError)
    async def recorder_error_handler(request: Request, exc: RecorderError):
        log(f"{request.method} {request.url.path} failed: {exc}", level="error", kind=exc.kind)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc), "kind": exc.kind},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": VERSION, "engine": "webreplay"}

    @app.post("/recorder/start")
    async def start_recording(body: Optional[StartRequest] = None):
        start_url = browser.current_url()
        result = recorder.start(body.name if body else None, start_url)
        await inject_probe()
        return {
            "success": True,
            **result.to_dict(),
            "message": "Recording started. Interact with the page normally.",
        }

    @app.post("/recorder/stop")
    async def stop_recording():
        if browser.is_ready:
            try:
                await browser.evaluate(STOP_SCRIPT)
            except Exception as e:
                log(f"Failed to disable client script: {e}", level="warning")
        result = recorder.stop()
        return {
            "success": True,
            **result.to_dict(),
            "message": f"Recording saved. Use POST /recorder/replay/{result.session_id} to run this test.",
        }

    @app.get("/recorder/status")
    async def get_status():
        status = recorder.get_status()
        payload: Dict[str, Any] = status.to_dict()
        if status.is_recording:
            payload["elapsedTime"] = recorder.elapsed_ms() or 0
        return payload

    @app.post("/recorder/event")
    async def add_event(event: RecordedAction):
        recorder.add_event(event)
        return {"success": True}

    @app.get("/recorder/sessions")
    async def list_sessions():
        recordings = [
            entry.model_dump(by_alias=True, exclude_none=True, exclude={"filepath"})
            for entry in recorder.store.list()
        ]
        return {"success": True, "recordings": recordings, "count": len(recordings)}

    @app.get("/recorder/session/{session_id}")
    async def get_session(session_id: str):
        session = recorder.store.load(session_id)
        return {"success": True, "session": session.to_dict()}

    @app.post("/recorder/replay/{session_id}")
    async def replay_session(
        session_id: str,
        request: Request,
        speed: Optional[str] = None,
        min_duration: Optional[str] = Query(None, alias="minDuration"),
        max_duration: Optional[str] = Query(None, alias="maxDuration"),
        skip_mouse_moves: Optional[str] = Query(None, alias="skipMouseMoves"),
        screenshot: Optional[str] = None,
        stop_on_error: Optional[str] = Query(None, alias="stopOnError"),
    ):
        driver = browser.driver
        options = parse_replay_options(
            speed, min_duration, max_duration, skip_mouse_moves, screenshot, stop_on_error,
        )
        async with app.state.replay_lock:
            result = await engine.replay(session_id, driver, options)

        base = str(request.base_url).rstrip("/")
        result.screenshots = [
            ref if ref.startswith("http") else f"{base}{ref}" for ref in result.screenshots
        ]
        return result.to_dict()

    @app.delete("/recorder/session/{session_id}")
    async def delete_session(session_id: str):
        recorder.store.delete(session_id)
        return {
            "success": True,
            "sessionId": session_id,
            "message": "Recording deleted successfully",
        }

    @app.put("/recorder/session/{session_id}/name")
    async def rename_session(session_id: str, body: Optional[RenameRequest] = None):
        if body is None or not body.name:
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "Name is required", "kind": "invalid_request"},
            )
        recorder.store.rename(session_id, body.name)
        return {
            "success": True,
            "sessionId": session_id,
            "name": body.name,
            "message": "Recording name updated",
        }

    return app
