import typer
from typing import Optional

from webreplay.core.config import ConfigManager
from webreplay.core.logging import Logger


def serve(
    url: str = typer.Argument("about:blank", help="Page to open in the controlled browser"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port for the recorder API"),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    headless: Optional[bool] = typer.Option(None, "--headless/--headed", help="Run the browser without a window"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on the console"),
):
    """Open a browser and serve the recorder API for it."""
    try:
        ConfigManager.validate_url(url)
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    try:
        import uvicorn
        from webreplay.browser.manager import BrowserManager
        from webreplay.recorder.manager import RecorderManager
        from webreplay.recorder.session_store import SessionStore
        from webreplay.server.main import create_app
    except ImportError as e:
        typer.echo(f"❌ Error: server dependencies not found. {e}", err=True)
        typer.echo("Make sure uvicorn, fastapi and playwright are installed.", err=True)
        raise typer.Exit(1)

    config = ConfigManager.load_config()
    if port is not None:
        config["port"] = port
    if host is not None:
        config["host"] = host
    if headless is not None:
        config["headless"] = headless

    ConfigManager.ensure_cache_dir()
    Logger.setup_logging(log_dir=ConfigManager.logs_dir(), verbose=verbose)

    bind_host = config["host"]
    public_host = "localhost" if bind_host in ("0.0.0.0", "127.0.0.1") else bind_host
    server_url = f"http://{public_host}:{config['port']}"

    recorder = RecorderManager(SessionStore(ConfigManager.recordings_dir()))
    browser = BrowserManager(
        headless=config["headless"],
        viewport=config.get("viewport"),
        screenshots_dir=ConfigManager.screenshots_dir(),
        navigation_timeout=config["navigation_timeout"],
    )
    app = create_app(
        recorder,
        browser,
        server_url=server_url,
        start_url=url,
        settings=config,
        manage_browser=True,
    )

    typer.echo(f"🚀 Recorder API on {server_url} (recordings: {ConfigManager.recordings_dir()})")
    uvicorn.run(app, host=bind_host, port=config["port"], log_level="info")
