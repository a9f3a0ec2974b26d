"""Offline queue inspection and maintenance commands."""

from __future__ import annotations

import json

import typer
from rich.table import Table

from ironnotify.cli.helpers import console, load_options_or_exit
from ironnotify.client import NotifyClient
from ironnotify.queue.store import QueueStore

app = typer.Typer(
    name="queue",
    help="Inspect, retry and clear notifications waiting in the offline queue.",
    no_args_is_help=True,
)


def _open_store() -> QueueStore:
    options = load_options_or_exit(require_api_key=False)
    try:
        return QueueStore(options.offline_queue_directory, options.max_offline_queue_size)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)


def list_command(as_json: bool = False) -> None:
    """Print queued notifications as a table or JSON."""
    store = _open_store()
    items = store.items()

    if as_json:
        typer.echo(json.dumps([item.to_record() for item in items], indent=2))
        return

    if not items:
        console.print("[green]Offline queue is empty[/green]")
        return

    table = Table(title=f"Offline Queue ({len(items)} pending)", show_header=True)
    table.add_column("#", style="dim")
    table.add_column("Queued At", style="cyan")
    table.add_column("Event Type", style="green")
    table.add_column("Severity", style="magenta")
    table.add_column("Title", overflow="fold")

    for index, item in enumerate(items, start=1):
        table.add_row(
            str(index),
            item.queued_at.strftime("%Y-%m-%d %H:%M:%S"),
            item.request.event_type,
            item.request.severity.value,
            item.request.title,
        )

    console.print(table)
    console.print(f"[dim]Queue file: {store.path}[/dim]")


@app.command("list")
def list_cmd(
    as_json: bool = typer.Option(False, "--json", help="Print raw queue records as JSON"),
) -> None:
    """List queued notifications."""
    list_command(as_json)


@app.command("count")
def count_cmd() -> None:
    """Print the number of queued notifications."""
    typer.echo(str(_open_store().count()))


def retry_command() -> None:
    """Drain the offline queue once."""
    options = load_options_or_exit()

    with NotifyClient(options) as client:
        queue = client.offline_queue
        if queue is None:
            console.print("[red]❌ Offline queue is disabled (IRONNOTIFY_OFFLINE_QUEUE)[/red]")
            raise typer.Exit(1)
        sent = queue.retry_now()
        remaining = queue.count

    console.print(f"✅ Delivered [bold]{sent}[/bold] queued notification(s)")
    if remaining:
        console.print(f"⚠️  {remaining} still queued")


@app.command("retry")
def retry_cmd() -> None:
    """Try to deliver every queued notification now."""
    retry_command()


@app.command("clear")
def clear_cmd(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Discard all queued notifications without sending them."""
    store = _open_store()
    pending = store.count()
    if pending and not yes:
        typer.confirm(f"Discard {pending} queued notification(s)?", abort=True)

    store.clear()
    console.print(f"✅ Cleared {pending} queued notification(s)")
