"""
IronNotify client SDK.

Submit event notifications to the IronNotify API, with an offline queue that
retries failed sends, and receive notifications in real time.

Example:
    with NotifyClient(api_key="...", app_slug="billing") as client:
        client.event("invoice.failed").with_title("Invoice failed").send()
"""

import logging

from ironnotify.builder import EventBuilder
from ironnotify.client import NotifyClient
from ironnotify.config import NotifyClientOptions, RealtimeOptions
from ironnotify.models import EventAction, EventResult, NotifyEventRequest, Severity
from ironnotify.queue import BackoffPolicy, NotifyOfflineQueue, QueuedEvent, QueueStore, RetryScheduler
from ironnotify.realtime import (
    ConnectionState,
    ConnectionStateChange,
    EventStatusChanged,
    NotificationRead,
    RealtimeAction,
    RealtimeClient,
    RealtimeNotification,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Sending
    "NotifyClient",
    "NotifyClientOptions",
    "EventBuilder",
    "NotifyEventRequest",
    "EventAction",
    "EventResult",
    "Severity",
    # Offline queue
    "NotifyOfflineQueue",
    "QueueStore",
    "QueuedEvent",
    "RetryScheduler",
    "BackoffPolicy",
    # Real time
    "RealtimeClient",
    "RealtimeOptions",
    "RealtimeNotification",
    "RealtimeAction",
    "NotificationRead",
    "EventStatusChanged",
    "ConnectionState",
    "ConnectionStateChange",
]
