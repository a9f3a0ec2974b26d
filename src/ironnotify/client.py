"""HTTP client for submitting event notifications."""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING
from uuid import UUID

import httpx

from ironnotify.config import NotifyClientOptions
from ironnotify.models import EventResult, NotifyEventRequest, Severity
from ironnotify.queue.models import QueuedEvent
from ironnotify.queue.offline import NotifyOfflineQueue

if TYPE_CHECKING:
    from ironnotify.builder import EventBuilder

logger = logging.getLogger(__name__)

EVENTS_ENDPOINT = "/api/v1/events"


class NotifyClient:
    """
    Client for the notification API.

    Delivery failures never raise: ``notify`` reports them in the returned
    EventResult and, when the offline queue is enabled, queues the event for
    automatic retry.
    """

    def __init__(
        self,
        options: NotifyClientOptions | None = None,
        *,
        api_key: str | None = None,
        app_slug: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize NotifyClient.

        Args:
            options: Full client options
            api_key: Shortcut for NotifyClientOptions(api_key=...)
            app_slug: Shortcut for NotifyClientOptions(default_app_slug=...)
            transport: Custom httpx transport (testing, proxies)

        Raises:
            ValueError: If no API key is configured
        """
        if options is None:
            options = NotifyClientOptions(api_key=api_key or "", default_app_slug=app_slug)

        if not options.api_key:
            raise ValueError("API key is required")

        self._options = options

        client_kwargs: dict[str, Any] = {
            "base_url": options.base_url.rstrip("/"),
            "headers": {
                "Authorization": f"Bearer {options.api_key}",
                "Accept": "application/json",
            },
        }
        if options.timeout is not None:
            client_kwargs["timeout"] = options.timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.Client(**client_kwargs)

        self._offline_queue: NotifyOfflineQueue | None = None
        if options.enable_offline_queue:
            self._offline_queue = NotifyOfflineQueue(
                self._send_queued_event,
                options.offline_queue_directory,
                options.max_offline_queue_size,
                enable_auto_retry=True,
                initial_delay=options.retry_initial_delay,
                retry_interval=options.retry_interval,
            )

        self._closed = False

    @property
    def options(self) -> NotifyClientOptions:
        return self._options

    @property
    def offline_queue(self) -> NotifyOfflineQueue | None:
        """The offline queue, or None when disabled."""
        return self._offline_queue

    def notify(self, request: NotifyEventRequest) -> EventResult:
        """Send an event notification."""
        return self._notify(request, skip_queue=False)

    def notify_event(
        self,
        event_type: str,
        title: str,
        severity: Severity = Severity.INFO,
        message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> EventResult:
        """Send a simple event notification."""
        return self.notify(
            NotifyEventRequest(
                event_type=event_type,
                title=title,
                severity=severity,
                message=message,
                metadata=metadata,
            )
        )

    def event(self, event_type: str) -> "EventBuilder":
        """Create a fluent event builder."""
        from ironnotify.builder import EventBuilder

        return EventBuilder(self, event_type)

    def close(self) -> None:
        if not self._closed:
            if self._offline_queue is not None:
                self._offline_queue.close()
            self._http.close()
            self._closed = True

    def __enter__(self) -> "NotifyClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send_queued_event(self, queued_event: QueuedEvent) -> bool:
        """Send capability for the offline queue drain loop."""
        result = self._notify(queued_event.request, skip_queue=True)
        return result.success

    def _notify(self, request: NotifyEventRequest, skip_queue: bool) -> EventResult:
        try:
            payload = self._to_api_payload(request)
        except ValueError as e:
            # Unserializable metadata cannot be sent or persisted either
            logger.warning("Event %r could not be serialized: %s", request.event_type, e)
            return EventResult(success=False, error=str(e))

        try:
            response = self._http.post(EVENTS_ENDPOINT, json=payload)
        except Exception as e:
            # Transport errors and misuse (e.g. a closed client) both fall back to the queue
            logger.debug("Event %r not sent: %s", request.event_type, e)
            return EventResult(success=False, error=str(e), queued=self._queue_failed(request, skip_queue))

        if response.is_success:
            event_id, status = _parse_event_response(response)
            return EventResult(success=True, event_id=event_id, status=status)

        logger.debug("Event %r rejected: HTTP %d", request.event_type, response.status_code)
        return EventResult(
            success=False,
            error=response.text,
            queued=self._queue_failed(request, skip_queue),
        )

    def _queue_failed(self, request: NotifyEventRequest, skip_queue: bool) -> bool:
        # Requests replayed by the drain loop are already queued
        if skip_queue or self._offline_queue is None:
            return False
        self._offline_queue.enqueue(request)
        return True

    def _to_api_payload(self, request: NotifyEventRequest) -> dict[str, Any]:
        """Map a request to the API body, applying client defaults."""
        payload = request.to_record()
        payload.pop("appSlug", None)
        payload.pop("source", None)

        app_slug = request.app_slug or self._options.default_app_slug
        if app_slug:
            payload["appSlug"] = app_slug
        source = request.source or self._options.default_source
        if source:
            payload["source"] = source

        payload["severity"] = request.severity.value
        return payload


def _parse_event_response(response: httpx.Response) -> tuple[UUID | None, str | None]:
    """Extract (id, status) from a success body; tolerate empty or odd bodies."""
    try:
        data = response.json()
    except ValueError:
        return None, None

    if not isinstance(data, dict):
        return None, None

    event_id = None
    raw_id = data.get("id")
    if raw_id:
        try:
            event_id = UUID(str(raw_id))
        except ValueError:
            logger.debug("Unexpected event id in response: %r", raw_id)

    status = data.get("status")
    return event_id, str(status) if status is not None else None
