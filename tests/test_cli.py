import pytest
from unittest.mock import patch
from typer.testing import CliRunner

from webreplay.cli.main import app
from webreplay.core.config import ConfigManager
from webreplay.core.constants import VERSION
from webreplay.recorder.session_store import SessionStore

runner = CliRunner()


@pytest.fixture
def cache_dir(tmp_path):
    with patch.object(ConfigManager, "CACHE_DIR", tmp_path), \
            patch.object(ConfigManager, "SETTINGS_FILE", tmp_path / "settings.json"):
        yield tmp_path


@pytest.fixture
def saved(cache_dir, make_session):
    store = SessionStore(cache_dir / "recordings")
    session = make_session(name="checkout")
    store.persist(session)
    return session


def test_cli_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"webreplay {VERSION}" in result.output


def test_cli_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert VERSION in result.output


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("serve", "list", "show", "delete", "rename", "replay"):
        assert command in result.output


def test_list_empty(cache_dir):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No recordings found" in result.output


def test_list_sessions(saved):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert saved.id in result.output
    assert "checkout" in result.output


def test_show_session(saved):
    result = runner.invoke(app, ["show", saved.id])
    assert result.exit_code == 0
    assert "https://example.com/" in result.output
    assert "click" in result.output


def test_show_unknown(cache_dir):
    result = runner.invoke(app, ["show", "missing"])
    assert result.exit_code == 1
    assert "Recording not found" in result.output


def test_rename(saved, cache_dir):
    result = runner.invoke(app, ["rename", saved.id, "new name"])
    assert result.exit_code == 0
    assert SessionStore(cache_dir / "recordings").load(saved.id).name == "new name"


def test_delete_with_confirmation(saved, cache_dir):
    result = runner.invoke(app, ["delete", saved.id], input="y\n")
    assert result.exit_code == 0
    assert "Deleted" in result.output
    assert SessionStore(cache_dir / "recordings").list() == []


def test_delete_aborted(saved, cache_dir):
    result = runner.invoke(app, ["delete", saved.id], input="n\n")
    assert "Aborted" in result.output
    assert SessionStore(cache_dir / "recordings").exists(saved.id)


def test_delete_unknown(cache_dir):
    result = runner.invoke(app, ["delete", "missing", "--force"])
    assert result.exit_code == 0
    assert "nothing to delete" in result.output


@pytest.fixture
def fake_browser(driver_cls):
    class FakeBrowserManager:
        instances = []
        unreachable = set()

        def __init__(self, **kwargs):
            self.kwargs = kwargs
            self.driver = driver_cls()
            self.driver.fail_navigation = set(self.unreachable)
            FakeBrowserManager.instances.append(self)

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc_val, exc_tb):
            return False

    with patch("webreplay.cli.commands.replay.BrowserManager", FakeBrowserManager):
        yield FakeBrowserManager


def test_replay_passes(saved, fake_browser, tmp_path):
    report = tmp_path / "report.html"
    result = runner.invoke(app, ["replay", saved.id, "--speed", "4", "--report", str(report)])

    assert result.exit_code == 0, result.output
    assert "Replay completed successfully" in result.output
    browser = fake_browser.instances[0]
    assert browser.kwargs["viewport"] == {"width": 1280, "height": 720}
    assert browser.kwargs["headless"] is True
    assert browser.driver.waits == [25, 25]
    assert "PASS" in report.read_text(encoding="utf-8")


def test_replay_failure_exits_nonzero(saved, fake_browser):
    fake_browser.unreachable = {"https://example.com/"}
    result = runner.invoke(app, ["replay", saved.id])

    assert result.exit_code == 1
    assert "Failed to navigate to start URL" in result.output


def test_replay_unknown(cache_dir):
    result = runner.invoke(app, ["replay", "missing"])
    assert result.exit_code == 1
    assert "Recording not found" in result.output


def test_serve_rejects_bad_url(cache_dir):
    result = runner.invoke(app, ["serve", "ftp://example.com"])
    assert result.exit_code == 1


def test_serve_starts_uvicorn(cache_dir):
    with patch("uvicorn.run") as mock_run, patch("webreplay.core.logging.Logger.setup_logging"):
        result = runner.invoke(app, ["serve", "https://example.com", "--port", "4010", "--headless"])

    assert result.exit_code == 0, result.output
    assert "http://localhost:4010" in result.output
    _, kwargs = mock_run.call_args
    assert kwargs["port"] == 4010
    assert kwargs["host"] == "127.0.0.1"
