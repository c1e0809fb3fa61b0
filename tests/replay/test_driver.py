import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import Error as PlaywrightError

from webreplay.core.models import Viewport
from webreplay.core.state import NavigationError
from webreplay.replay.driver import PlaywrightDriver


@pytest.fixture
def page():
    page = MagicMock()
    page.url = "https://example.com/"
    page.viewport_size = {"width": 1280, "height": 720}
    page.goto = AsyncMock()
    page.screenshot = AsyncMock()
    page.evaluate = AsyncMock()
    page.mouse.click = AsyncMock()
    return page


def test_navigate_uses_timeout_in_ms(page, tmp_path):
    driver = PlaywrightDriver(page, tmp_path, navigation_timeout=15)
    asyncio.run(driver.navigate("https://example.com/next"))
    page.goto.assert_awaited_once_with("https://example.com/next", timeout=15000)


def test_navigate_failure_raises_navigation_error(page, tmp_path):
    page.goto.side_effect = PlaywrightError("net::ERR_CONNECTION_REFUSED")
    driver = PlaywrightDriver(page, tmp_path)
    with pytest.raises(NavigationError) as exc:
        asyncio.run(driver.navigate("https://down.test/"))
    assert "ERR_CONNECTION_REFUSED" in str(exc.value)
    assert exc.value.kind == "navigation_failure"


def test_viewport(page, tmp_path):
    driver = PlaywrightDriver(page, tmp_path)
    assert driver.get_viewport() == Viewport(width=1280, height=720)
    page.viewport_size = None
    assert driver.get_viewport() is None


def test_pointer_and_scroll(page, tmp_path):
    driver = PlaywrightDriver(page, tmp_path)
    asyncio.run(driver.pointer_click(10.0, 20.0))
    asyncio.run(driver.scroll_to(0, 480))
    page.mouse.click.assert_awaited_once_with(10.0, 20.0)
    assert page.evaluate.await_args.args[1] == [0, 480]


def test_capture_screenshot_reference(page, tmp_path):
    driver = PlaywrightDriver(page, tmp_path / "shots")
    ref = asyncio.run(driver.capture_screenshot())

    assert ref.startswith("/screenshots/replay_")
    assert ref.endswith(".png")
    saved_to = page.screenshot.await_args.kwargs["path"]
    assert saved_to == str(tmp_path / "shots" / ref.rsplit("/", 1)[1])
