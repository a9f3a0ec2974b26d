"""Fluent builder for notification requests."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING
from uuid import UUID

from ironnotify.models import EventAction, EventResult, NotifyEventRequest, Severity

if TYPE_CHECKING:
    from ironnotify.client import NotifyClient


class EventBuilder:
    """
    Fluent builder for creating events.

    Example:
        client.event("order.failed") \\
            .with_severity(Severity.HIGH) \\
            .with_title("Order failed") \\
            .with_metadata("order_id", 1234) \\
            .send()
    """

    def __init__(self, client: NotifyClient, event_type: str) -> None:
        self._client = client
        self._request = NotifyEventRequest(event_type=event_type)

    def with_severity(self, severity: Severity | str) -> "EventBuilder":
        self._request.severity = Severity.parse(severity)
        return self

    def with_title(self, title: str) -> "EventBuilder":
        self._request.title = title
        return self

    def with_message(self, message: str) -> "EventBuilder":
        self._request.message = message
        return self

    def with_source(self, source: str) -> "EventBuilder":
        self._request.source = source
        return self

    def with_entity_id(self, entity_id: str) -> "EventBuilder":
        self._request.entity_id = entity_id
        return self

    def with_app(self, app: str | UUID) -> "EventBuilder":
        """Target an app by slug (str) or by ID (UUID)."""
        if isinstance(app, UUID):
            self._request.app_id = app
        else:
            self._request.app_slug = app
        return self

    def with_metadata(self, key: str | dict[str, Any], value: Any = None) -> "EventBuilder":
        """Add one metadata entry, or replace all metadata when given a dict."""
        if isinstance(key, dict):
            self._request.metadata = dict(key)
            return self

        if self._request.metadata is None:
            self._request.metadata = {}
        self._request.metadata[key] = value
        return self

    def with_action(self, action_id: str, label: str, webhook_url: str | None = None) -> "EventBuilder":
        if self._request.actions is None:
            self._request.actions = []
        self._request.actions.append(
            EventAction(action_id=action_id, label=label, webhook_url=webhook_url)
        )
        return self

    def build(self) -> NotifyEventRequest:
        """Return a copy of the request built so far."""
        return self._request.model_copy(deep=True)

    def send(self) -> EventResult:
        return self._client.notify(self.build())
