import pytest
from pathlib import Path
from typing import Optional

from webreplay.core.models import RecordedAction, RecordingSession, Viewport
from webreplay.recorder.manager import RecorderManager
from webreplay.recorder.session_store import SessionStore


class FakeDriver:
    """In-memory page driver that records every call instead of driving a browser."""

    def __init__(self, url: str = "about:blank", viewport: Optional[Viewport] = None):
        self.url = url
        self.viewport = viewport or Viewport(width=1920, height=1080)
        self.calls = []
        self.waits = []
        self.fail_click_at = set()
        self.fail_navigation = set()
        self.fail_wait_for_url = False
        self.fail_set_viewport = False
        self.fail_screenshot = False
        self.shots = 0

    def current_url(self) -> str:
        return self.url

    async def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        if url in self.fail_navigation:
            raise RuntimeError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.url = url

    async def wait_for_load(self) -> None:
        self.calls.append(("wait_for_load",))

    async def wait_for_url(self, url: str, timeout_ms: int) -> None:
        self.calls.append(("wait_for_url", url, timeout_ms))
        if self.fail_wait_for_url:
            raise TimeoutError(f"Timeout {timeout_ms}ms exceeded")
        self.url = url

    async def wait(self, ms: float) -> None:
        self.waits.append(ms)

    def get_viewport(self) -> Optional[Viewport]:
        return self.viewport

    async def set_viewport(self, width: int, height: int) -> None:
        self.calls.append(("set_viewport", width, height))
        if self.fail_set_viewport:
            raise RuntimeError("viewport locked")
        self.viewport = Viewport(width=width, height=height)

    async def pointer_click(self, x: float, y: float) -> None:
        self.calls.append(("click", x, y))
        if x in self.fail_click_at:
            raise RuntimeError(f"element at ({x}, {y}) is detached")

    async def pointer_move(self, x: float, y: float) -> None:
        self.calls.append(("move", x, y))

    async def type_text(self, text: str) -> None:
        self.calls.append(("type", text))

    async def press_key(self, key: str) -> None:
        self.calls.append(("press", key))

    async def scroll_to(self, x: float, y: float) -> None:
        self.calls.append(("scroll", x, y))

    async def capture_screenshot(self) -> str:
        if self.fail_screenshot:
            raise RuntimeError("screenshot failed")
        self.shots += 1
        return f"/screenshots/shot_{self.shots}.png"

    def actions(self):
        """Calls that correspond to dispatched user actions."""
        return [c for c in self.calls if c[0] in ("click", "move", "type", "press", "scroll")]


@pytest.fixture
def driver_cls():
    return FakeDriver


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "recordings")


@pytest.fixture
def recorder(store: SessionStore) -> RecorderManager:
    return RecorderManager(store)


@pytest.fixture
def make_event():
    def _make(type_: str = "click", url: str = "https://example.com/", timestamp: int = 0,
              duration: int = 0, **fields) -> RecordedAction:
        fields.setdefault("viewport", Viewport(width=1280, height=720))
        if type_ in ("click", "mousemove"):
            fields.setdefault("x", 10)
            fields.setdefault("y", 20)
        return RecordedAction(type=type_, url=url, timestamp=timestamp, duration=duration, **fields)
    return _make


@pytest.fixture
def make_session(make_event):
    def _make(session_id: str = "20250106_143022_abc1234", events=None,
              start_url: str = "https://example.com/", **fields) -> RecordingSession:
        if events is None:
            events = [make_event("click", timestamp=i * 100, duration=100 if i else 0) for i in range(3)]
        fields.setdefault("viewport", Viewport(width=1280, height=720))
        return RecordingSession(
            id=session_id,
            start_url=start_url,
            start_time=1_700_000_000_000,
            end_time=1_700_000_005_000,
            total_duration=5000,
            events=events,
            **fields,
        )
    return _make
