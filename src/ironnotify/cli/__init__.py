"""IronNotify command line interface."""

from __future__ import annotations

import typer

from ironnotify.cli.commands import queue as queue_commands
from ironnotify.cli.commands.send import send_cmd
from ironnotify.cli.helpers import configure_logging

app = typer.Typer(
    name="ironnotify",
    help="Send IronNotify event notifications and manage the offline queue.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    configure_logging(verbose)


app.command(name="send")(send_cmd)
app.add_typer(queue_commands.app)


def main() -> None:
    app()
