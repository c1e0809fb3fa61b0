from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from playwright.async_api import Error as PlaywrightError, Page

from webreplay.core.models import Viewport
from webreplay.core.state import NavigationError


class PageDriver(Protocol):
    """Browser capabilities the replay engine relies on."""

    def current_url(self) -> str: ...

    async def navigate(self, url: str) -> None: ...

    async def wait_for_load(self) -> None: ...

    async def wait_for_url(self, url: str, timeout_ms: int) -> None: ...

    async def wait(self, ms: float) -> None: ...

    def get_viewport(self) -> Optional[Viewport]: ...

    async def set_viewport(self, width: int, height: int) -> None: ...

    async def pointer_click(self, x: float, y: float) -> None: ...

    async def pointer_move(self, x: float, y: float) -> None: ...

    async def type_text(self, text: str) -> None: ...

    async def press_key(self, key: str) -> None: ...

    async def scroll_to(self, x: float, y: float) -> None: ...

    async def capture_screenshot(self) -> str: ...


class PlaywrightDriver:
    """PageDriver backed by a live Playwright page."""

    def __init__(self, page: Page, screenshots_dir: Path, navigation_timeout: Optional[int] = None):
        self.page = page
        self.screenshots_dir = Path(screenshots_dir)
        # seconds; None keeps Playwright's default
        self.navigation_timeout = navigation_timeout

    def current_url(self) -> str:
        return self.page.url

    async def navigate(self, url: str) -> None:
        kwargs = {}
        if self.navigation_timeout:
            kwargs["timeout"] = self.navigation_timeout * 1000
        try:
            await self.page.goto(url, **kwargs)
        except PlaywrightError as e:
            raise NavigationError(f"Navigation to {url} failed: {e.message}") from e

    async def wait_for_load(self) -> None:
        await self.page.wait_for_load_state("domcontentloaded")

    async def wait_for_url(self, url: str, timeout_ms: int) -> None:
        await self.page.wait_for_url(url, timeout=timeout_ms)

    async def wait(self, ms: float) -> None:
        await self.page.wait_for_timeout(ms)

    def get_viewport(self) -> Optional[Viewport]:
        size = self.page.viewport_size
        if not size:
            return None
        return Viewport(width=size["width"], height=size["height"])

    async def set_viewport(self, width: int, height: int) -> None:
        await self.page.set_viewport_size({"width": width, "height": height})

    async def pointer_click(self, x: float, y: float) -> None:
        await self.page.mouse.click(x, y)

    async def pointer_move(self, x: float, y: float) -> None:
        await self.page.mouse.move(x, y)

    async def type_text(self, text: str) -> None:
        await self.page.keyboard.type(text)

    async def press_key(self, key: str) -> None:
        await self.page.keyboard.press(key)

    async def scroll_to(self, x: float, y: float) -> None:
        await self.page.evaluate("([x, y]) => window.scrollTo(x, y)", [x, y])

    async def capture_screenshot(self) -> str:
        """Save a full-viewport PNG and return its ``/screenshots/...`` reference."""
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        filename = f"replay_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.png"
        await self.page.screenshot(path=str(self.screenshots_dir / filename))
        return f"/screenshots/{filename}"
