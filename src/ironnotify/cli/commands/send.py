"""Send a single notification from the command line."""

from __future__ import annotations

from typing import List, Optional

import typer

from ironnotify.cli.helpers import console, load_options_or_exit
from ironnotify.client import NotifyClient
from ironnotify.models import Severity


def _parse_metadata(pairs: List[str]) -> dict[str, str]:
    """Parse key=value pairs; raises ValueError on a pair without '='."""
    metadata = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid metadata: {pair!r}. Expected key=value")
        metadata[key.strip()] = value
    return metadata


def send_command(
    event_type: str,
    title: str,
    severity: str = Severity.INFO.value,
    message: str | None = None,
    source: str | None = None,
    entity_id: str | None = None,
    app_slug: str | None = None,
    metadata: List[str] | None = None,
) -> None:
    """Send a notification and report the result."""
    options = load_options_or_exit()

    try:
        with NotifyClient(options) as client:
            builder = client.event(event_type).with_title(title).with_severity(severity)
            if message:
                builder.with_message(message)
            if source:
                builder.with_source(source)
            if entity_id:
                builder.with_entity_id(entity_id)
            if app_slug:
                builder.with_app(app_slug)
            if metadata:
                builder.with_metadata(_parse_metadata(metadata))

            result = builder.send()
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    if result.success:
        console.print(f"✅ Sent [bold]{event_type}[/bold]")
        if result.event_id:
            console.print(f"Event ID: [cyan]{result.event_id}[/cyan]")
        return

    console.print(f"[red]❌ Send failed: {result.error}[/red]")
    if result.queued:
        console.print("[yellow]⚠️  Queued for retry (see: ironnotify queue list)[/yellow]")
    raise typer.Exit(1)


def send_cmd(
    event_type: str = typer.Argument(..., help="Event type, e.g. order.failed"),
    title: str = typer.Option(..., "--title", "-t", help="Notification title"),
    severity: str = typer.Option(Severity.INFO.value, "--severity", "-s", help="Info, Warning, High or Critical"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Notification body"),
    source: Optional[str] = typer.Option(None, "--source", help="Event source"),
    entity_id: Optional[str] = typer.Option(None, "--entity-id", help="Related entity ID"),
    app_slug: Optional[str] = typer.Option(None, "--app", help="App slug (default: IRONNOTIFY_APP_SLUG)"),
    metadata: Optional[List[str]] = typer.Option(None, "--meta", help="Metadata entry key=value (repeatable)"),
) -> None:
    """Send an event notification."""
    send_command(event_type, title, severity, message, source, entity_id, app_slug, metadata)
