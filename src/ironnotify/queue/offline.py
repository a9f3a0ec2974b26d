"""Offline queue owned by NotifyClient: store plus automatic retry."""

from __future__ import annotations

import logging
from pathlib import Path

from ironnotify.models import NotifyEventRequest
from ironnotify.queue.models import QueuedEvent
from ironnotify.queue.replay import (
    DEFAULT_INITIAL_DELAY,
    DEFAULT_RETRY_INTERVAL,
    RetryScheduler,
    SendFunc,
)
from ironnotify.queue.store import DEFAULT_MAX_QUEUE_SIZE, QueueStore

logger = logging.getLogger(__name__)


class NotifyOfflineQueue:
    """
    File-based offline queue for notification events.

    Persists failed sends to disk and retries them in the background until they
    are delivered, evicted by the size bound, or cleared.
    """

    def __init__(
        self,
        send: SendFunc,
        queue_directory: Path | str | None = None,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        enable_auto_retry: bool = True,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
    ) -> None:
        """
        Initialize NotifyOfflineQueue.

        Args:
            send: Delivers one queued event, returns True on success
            queue_directory: Directory for the queue file (default: per-user data dir)
            max_queue_size: Maximum items kept; oldest dropped when exceeded
            enable_auto_retry: Start the background retry timer
            initial_delay: Seconds before the first automatic retry
            retry_interval: Seconds between automatic retries
        """
        self._store = QueueStore(queue_directory, max_queue_size)
        self._scheduler = RetryScheduler(self._store, send, initial_delay, retry_interval)
        self._closed = False

        if enable_auto_retry:
            self._scheduler.start()

    @property
    def path(self) -> Path:
        return self._store.path

    @property
    def count(self) -> int:
        """Number of items currently in the queue."""
        return self._store.count()

    def __len__(self) -> int:
        return self.count

    @property
    def failure_streak(self) -> int:
        return self._scheduler.failure_streak

    def enqueue(self, request: NotifyEventRequest) -> None:
        """Queue an event that failed to send. Never raises."""
        try:
            self._store.enqueue(QueuedEvent(request=request))
        except Exception:
            logger.exception("Failed to queue event %r", getattr(request, "event_type", None))

    def retry_now(self) -> int:
        """
        Try to send all queued items immediately.

        Returns:
            Number of items delivered
        """
        return self._scheduler.retry_now()

    def clear(self) -> None:
        """Clear all queued items without sending."""
        self._store.clear()

    def get_queued_items(self) -> list[QueuedEvent]:
        """Get all queued items (for display/export)."""
        return self._store.items()

    def close(self) -> None:
        """Stop automatic retries. An in-flight drain is left to finish."""
        if not self._closed:
            self._scheduler.stop()
            self._closed = True

    def __enter__(self) -> "NotifyOfflineQueue":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
