import typer
from webreplay.cli.commands import serve, sessions, replay
from webreplay.core.constants import VERSION

app = typer.Typer(
    name="webreplay",
    help="Record browser sessions and replay them as tests",
    add_completion=False
)

# Register commands
app.command()(serve.serve)
app.command(name="list")(sessions.list_sessions)
app.command()(sessions.show)
app.command()(sessions.delete)
app.command()(sessions.rename)
app.command()(replay.replay)


@app.command()
def version():
    """Show the webreplay version."""
    typer.echo(f"webreplay {VERSION}")


def version_callback(value: bool):
    if value:
        typer.echo(f"webreplay {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", callback=version_callback, is_eager=True),
):
    """
    webreplay CLI - record a page once, replay it anywhere.
    """
    pass


if __name__ == "__main__":
    app()
