from pathlib import Path
from typing import Any, Callable, Dict, Optional

from playwright.async_api import async_playwright, Page, Browser, BrowserContext
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from webreplay.core.constants import DEFAULT_NAVIGATION_TIMEOUT, FALLBACK_VIEWPORT
from webreplay.core.logging import log
from webreplay.core.models import Viewport
from webreplay.core.state import BrowserNotReadyError
from webreplay.replay.driver import PlaywrightDriver

NavigationCallback = Callable[[str, Viewport], Any]


class Subscription:
    """Handle for a page listener; ``cancel()`` detaches it."""

    def __init__(self, page: Page, event: str, handler: Callable):
        self._page = page
        self._event = event
        self._handler = handler
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self._page.remove_listener(self._event, self._handler)
        self.active = False


class BrowserManager:
    """
    Owns the single live Playwright page used for recording and replay.
    """
    def __init__(
        self,
        headless: bool = False,
        viewport: Optional[Dict[str, int]] = None,
        screenshots_dir: Optional[Path] = None,
        navigation_timeout: int = DEFAULT_NAVIGATION_TIMEOUT,
    ):
        self.headless = headless
        self.viewport = viewport
        self.screenshots_dir = Path(screenshots_dir) if screenshots_dir else Path.cwd() / "screenshots"
        self.navigation_timeout = navigation_timeout
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Start the browser session."""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.headless)

        # no_viewport lets a headed window stay freely resizable
        context_args: Dict[str, Any] = {}
        if self.viewport:
            context_args["viewport"] = self.viewport
        elif not self.headless:
            context_args["no_viewport"] = True

        self.context = await self.browser.new_context(**context_args)
        self.page = await self.context.new_page()
        log(f"Browser started (headless={self.headless})")

    async def close(self) -> None:
        """Close the browser session."""
        if self.context:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        self.context = None
        self.browser = None
        self.page = None
        self.playwright = None

    @property
    def is_ready(self) -> bool:
        return self.page is not None

    def require_page(self) -> Page:
        if self.page is None:
            raise BrowserNotReadyError("No active page")
        return self.page

    @property
    def driver(self) -> PlaywrightDriver:
        return PlaywrightDriver(self.require_page(), self.screenshots_dir, self.navigation_timeout)

    def current_url(self) -> str:
        return self.require_page().url

    @retry(
        wait=wait_exponential(multiplier=1, min=2, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(Exception),
        reraise=True,
    )
    async def open(self, url: str) -> None:
        """Navigate the live page to ``url``, retrying transient failures."""
        page = self.require_page()
        log(f"Navigating to {url}")
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout * 1000)
        except Exception as e:
            log(f"Navigation failed: {e}", level="warning")
            raise

    def on_navigation(self, callback: NavigationCallback) -> Subscription:
        """Call ``callback(url, viewport)`` after every page load."""
        page = self.require_page()

        def handler(loaded_page: Page) -> Any:
            size = loaded_page.viewport_size or FALLBACK_VIEWPORT
            return callback(loaded_page.url, Viewport(width=size["width"], height=size["height"]))

        page.on("load", handler)
        return Subscription(page, "load", handler)

    async def evaluate(self, script: str) -> Any:
        return await self.require_page().evaluate(script)
