"""Shared console, logging and option helpers for the CLI."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ironnotify.config import ENV_API_KEY, NotifyClientOptions

console = Console()


def configure_logging(verbose: bool) -> None:
    """Route library logs through rich (DEBUG when verbose, WARNING otherwise)."""
    package_logger = logging.getLogger("ironnotify")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def load_options_or_exit(require_api_key: bool = True) -> NotifyClientOptions:
    """Load client options from the environment, exiting with a message on error."""
    try:
        options = NotifyClientOptions.from_env()
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    if require_api_key and not options.api_key:
        console.print(f"[red]❌ {ENV_API_KEY} environment variable not set[/red]")
        console.print("[dim]Set your API key to send notifications:[/dim]")
        console.print(f"  export {ENV_API_KEY}=your_api_key_here")
        raise typer.Exit(1)

    return options
