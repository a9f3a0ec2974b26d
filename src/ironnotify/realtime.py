"""Live notification feed with automatic reconnection.

The hub at {base_url}/hubs/notifications exposes:
- GET  /stream  newline-delimited JSON messages {"type": ..., "payload": ...}
- POST /invoke  hub methods {"method": ..., "arguments": [...]}

After an unplanned disconnect the client reconnects on the BackoffPolicy
schedule and restores its user subscription.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, TypeVar
from uuid import UUID

import httpx

from ironnotify.config import DEFAULT_BASE_URL, RealtimeOptions
from ironnotify.models import CamelModel
from ironnotify.queue.backoff import BackoffPolicy

logger = logging.getLogger(__name__)

HUB_PATH = "/hubs/notifications"
CONNECT_TIMEOUT = 10.0

Handler = TypeVar("Handler", bound=Callable[..., Any])


class ConnectionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    RECONNECTING = "Reconnecting"


class RealtimeAction(CamelModel):
    id: str
    label: str
    url: str | None = None
    is_primary: bool = False


class RealtimeNotification(CamelModel):
    """A notification pushed by the hub."""

    event_id: UUID
    delivery_id: UUID | None = None
    event_type: str = ""
    severity: str = ""
    title: str = ""
    message: str | None = None
    created_at: datetime | None = None
    app_id: UUID | None = None
    app_name: str | None = None
    app_slug: str | None = None
    data: dict[str, Any] | None = None
    actions: list[RealtimeAction] | None = None


class NotificationRead(CamelModel):
    event_id: UUID
    read_at: datetime


class EventStatusChanged(CamelModel):
    """An event was acknowledged or resolved."""

    event_id: UUID
    status: str
    updated_at: datetime


@dataclass
class ConnectionStateChange:
    state: ConnectionState
    error: str | None = None


class RealtimeClient:
    """
    Real-time notification client.

    Callbacks run on the reader thread. A callback that raises is logged and
    does not stop delivery to the others.
    """

    def __init__(
        self,
        options: RealtimeOptions | None = None,
        *,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize RealtimeClient.

        Args:
            options: Full realtime options
            api_key: Shortcut for RealtimeOptions(api_key=...)
            base_url: Shortcut for RealtimeOptions(base_url=...)
            transport: Custom httpx transport (testing, proxies)

        Raises:
            ValueError: If no API key is configured
        """
        if options is None:
            options = RealtimeOptions(api_key=api_key or "", base_url=base_url)

        if not options.api_key:
            raise ValueError("API key is required")

        self._options = options
        self._hub_url = options.base_url.rstrip("/") + HUB_PATH
        self._policy = BackoffPolicy(
            max_attempts=options.max_reconnect_attempts,
            cap_seconds=options.reconnect_cap_seconds,
        )

        client_kwargs: dict[str, Any] = {
            "headers": {"Authorization": f"Bearer {options.api_key}"},
        }
        if options.timeout is not None:
            client_kwargs["timeout"] = options.timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.Client(**client_kwargs)

        self._user_id = options.user_id

        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._response: httpx.Response | None = None
        self._reader_thread: threading.Thread | None = None

        self._notification_handlers: list[Callable[[RealtimeNotification], Any]] = []
        self._unread_count_handlers: list[Callable[[int], Any]] = []
        self._read_handlers: list[Callable[[NotificationRead], Any]] = []
        self._status_handlers: list[Callable[[EventStatusChanged], Any]] = []
        self._state_handlers: list[Callable[[ConnectionStateChange], Any]] = []

    # =========================================================================
    # Callback registration
    # =========================================================================

    def on_notification(self, handler: Handler) -> Handler:
        """Register a callback for new notifications. Usable as a decorator."""
        self._notification_handlers.append(handler)
        return handler

    def on_unread_count_changed(self, handler: Handler) -> Handler:
        self._unread_count_handlers.append(handler)
        return handler

    def on_notification_read(self, handler: Handler) -> Handler:
        self._read_handlers.append(handler)
        return handler

    def on_event_status_changed(self, handler: Handler) -> Handler:
        self._status_handlers.append(handler)
        return handler

    def on_connection_state_changed(self, handler: Handler) -> Handler:
        self._state_handlers.append(handler)
        return handler

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def connect(self) -> None:
        """
        Connect to the notification hub (no-op unless disconnected).

        Raises:
            httpx.HTTPError: If the initial connection fails
        """
        with self._state_lock:
            if self._state != ConnectionState.DISCONNECTED:
                return
            self._state = ConnectionState.CONNECTING

        self._stop_event.clear()
        try:
            response = self._open_stream()
        except Exception:
            with self._state_lock:
                self._state = ConnectionState.DISCONNECTED
            raise

        self._response = response
        self._set_state(ConnectionState.CONNECTED)

        self._reader_thread = threading.Thread(
            target=self._run,
            args=(response,),
            name="ironnotify-realtime",
            daemon=True,
        )
        self._reader_thread.start()

    def disconnect(self, timeout: float = 5.0) -> None:
        """Disconnect from the hub without reconnecting."""
        self._stop_event.set()

        response = self._response
        if response is not None:
            response.close()

        thread = self._reader_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Realtime reader did not stop within timeout")

        if self._state != ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.DISCONNECTED)

    def close(self) -> None:
        self.disconnect()
        self._http.close()

    def __enter__(self) -> "RealtimeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # =========================================================================
    # Hub methods
    # =========================================================================

    def subscribe_to_user(self, user_id: UUID) -> None:
        """Subscribe to a user's notifications; restored after reconnects."""
        self._invoke("SubscribeToUser", user_id)
        self._user_id = user_id

    def unsubscribe_from_user(self, user_id: UUID) -> None:
        self._invoke("UnsubscribeFromUser", user_id)

    def subscribe_to_app(self, app_id: UUID) -> None:
        self._invoke("SubscribeToApp", app_id)

    def unsubscribe_from_app(self, app_id: UUID) -> None:
        self._invoke("UnsubscribeFromApp", app_id)

    def mark_as_read(self, user_id: UUID, event_id: UUID) -> None:
        """Mark a notification as read; the hub broadcasts it to other clients."""
        self._invoke("MarkAsRead", user_id, event_id)

    def _invoke(self, method: str, *arguments: Any) -> None:
        if self._state == ConnectionState.DISCONNECTED:
            self.connect()

        response = self._http.post(
            f"{self._hub_url}/invoke",
            json={"method": method, "arguments": [str(arg) for arg in arguments]},
        )
        response.raise_for_status()

    # =========================================================================
    # Reader thread
    # =========================================================================

    def _open_stream(self) -> httpx.Response:
        request = self._http.build_request(
            "GET",
            f"{self._hub_url}/stream",
            headers={"Accept": "application/x-ndjson"},
            timeout=httpx.Timeout(self._options.timeout or CONNECT_TIMEOUT, read=None),
        )
        response = self._http.send(request, stream=True)
        if response.is_error:
            response.close()
            response.raise_for_status()
        return response

    def _run(self, response: httpx.Response) -> None:
        while True:
            error = self._consume(response)
            if self._stop_event.is_set():
                return

            self._set_state(ConnectionState.RECONNECTING, error)
            reconnected, error = self._reconnect(error)
            if reconnected is None:
                if not self._stop_event.is_set():
                    self._set_state(ConnectionState.DISCONNECTED, error)
                return

            response = reconnected
            self._response = response
            if self._stop_event.is_set():
                # disconnect() ran while the new stream was opening
                response.close()
                return

            self._set_state(ConnectionState.CONNECTED)
            self._restore_subscription()

    def _consume(self, response: httpx.Response) -> str | None:
        """Dispatch messages until the stream ends; return the error, if any."""
        try:
            for line in response.iter_lines():
                if self._stop_event.is_set():
                    return None
                line = line.strip()
                if line:
                    self._dispatch(line)
            return None
        except (httpx.HTTPError, httpx.StreamError) as e:
            return str(e)
        finally:
            response.close()

    def _reconnect(self, error: str | None) -> tuple[httpx.Response | None, str | None]:
        attempt = 0
        last_error = error
        while not self._stop_event.is_set():
            delay = self._policy.next_delay(attempt)
            if delay is None:
                logger.warning("Giving up reconnecting after %d attempt(s)", attempt)
                return None, last_error

            if self._stop_event.wait(timeout=delay):
                break

            try:
                return self._open_stream(), None
            except httpx.HTTPError as e:
                last_error = str(e)
                attempt += 1
                logger.debug("Reconnect attempt %d failed: %s", attempt, e)

        return None, last_error

    def _restore_subscription(self) -> None:
        if self._user_id is None:
            return
        try:
            self._invoke("SubscribeToUser", self._user_id)
        except httpx.HTTPError as e:
            logger.warning("Failed to restore user subscription: %s", e)

    def _dispatch(self, line: str) -> None:
        try:
            message = json.loads(line)
            message_type = message["type"]
            payload = message.get("payload")
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring malformed hub message: %s", e)
            return

        try:
            if message_type == "NotificationReceived":
                self._emit(self._notification_handlers, RealtimeNotification.model_validate(payload))
            elif message_type == "UnreadCountChanged":
                self._emit(self._unread_count_handlers, int(payload))
            elif message_type == "NotificationRead":
                self._emit(self._read_handlers, NotificationRead.model_validate(payload))
            elif message_type == "EventStatusChanged":
                self._emit(self._status_handlers, EventStatusChanged.model_validate(payload))
            else:
                logger.debug("Ignoring hub message of type %r", message_type)
        except (ValueError, TypeError) as e:
            logger.warning("Ignoring invalid %s payload: %s", message_type, e)

    def _set_state(self, state: ConnectionState, error: str | None = None) -> None:
        with self._state_lock:
            self._state = state
        self._emit(self._state_handlers, ConnectionStateChange(state, error))

    @staticmethod
    def _emit(handlers: list[Callable[[Any], Any]], arg: Any) -> None:
        for handler in list(handlers):
            try:
                handler(arg)
            except Exception:
                logger.exception("Realtime callback %r failed", handler)
