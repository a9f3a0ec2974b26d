"""Drain loop replaying queued notifications through a send capability.

Follows a daemon-thread lifecycle:
- start(): idempotent, creates the timer thread
- stop(timeout): sets the shutdown event, waits briefly for the thread
- _background_worker(): initial delay, then a drain every interval
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ironnotify.queue.models import QueuedEvent
from ironnotify.queue.store import QueueStore

logger = logging.getLogger(__name__)

SendFunc = Callable[[QueuedEvent], bool]

DEFAULT_INITIAL_DELAY = 30.0
DEFAULT_RETRY_INTERVAL = 60.0


class RetryScheduler:
    """
    Periodically attempts to deliver everything in a QueueStore.

    ``send`` returns True when an item was delivered. Returning False and
    raising both count as a failed delivery; failed items stay queued, in
    their original order, for the next pass. There is no per-item delay: the
    timer interval is the only backoff.

    At most one drain runs at a time. A drain requested while another is in
    progress returns 0 immediately instead of waiting.
    """

    def __init__(
        self,
        store: QueueStore,
        send: SendFunc,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        interval: float = DEFAULT_RETRY_INTERVAL,
    ) -> None:
        """
        Initialize RetryScheduler.

        Args:
            store: Queue to drain
            send: Delivery capability, True on confirmed delivery
            initial_delay: Seconds before the first timed drain
            interval: Seconds between timed drains
        """
        if initial_delay < 0 or interval <= 0:
            raise ValueError(
                f"Invalid retry timing: initial_delay={initial_delay}, interval={interval}"
            )

        self._store = store
        self._send = send
        self._initial_delay = initial_delay
        self._interval = interval

        # Admission gate, only ever try-acquired
        self._drain_gate = threading.Lock()
        self._failure_streak = 0

        self._lifecycle_lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._worker_thread: threading.Thread | None = None

    @property
    def failure_streak(self) -> int:
        """Consecutive drains that left items behind (0 after a clean drain)."""
        return self._failure_streak

    @property
    def running(self) -> bool:
        return self._worker_thread is not None and self._worker_thread.is_alive()

    def start(self) -> None:
        """Start the retry timer. Safe to call more than once."""
        with self._lifecycle_lock:
            if self.running:
                return

            self._shutdown_event.clear()
            self._worker_thread = threading.Thread(
                target=self._background_worker,
                name="ironnotify-retry",
                daemon=True,
            )
            self._worker_thread.start()
            logger.debug(
                "Offline queue retry started (initial_delay=%ss, interval=%ss)",
                self._initial_delay,
                self._interval,
            )

    def stop(self, timeout: float = 1.0) -> None:
        """
        Stop the retry timer.

        An in-flight drain is not cancelled; this waits at most ``timeout``
        seconds for it before returning.
        """
        with self._lifecycle_lock:
            thread = self._worker_thread
            self._shutdown_event.set()

        if thread is None or thread is threading.current_thread():
            return

        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.debug("Offline queue drain still in flight at shutdown")

    def retry_now(self) -> int:
        """
        Run one drain pass.

        Returns:
            Number of items delivered (0 if skipped because a drain is running)
        """
        if not self._drain_gate.acquire(blocking=False):
            logger.debug("Drain already in progress, skipping")
            return 0

        try:
            snapshot = self._store.items()
            if not snapshot:
                self._failure_streak = 0
                return 0

            sent_count = 0
            remaining = []
            for item in snapshot:
                if self._attempt(item):
                    sent_count += 1
                else:
                    remaining.append(item)

            self._store.reconcile(snapshot, remaining)

            if remaining:
                self._failure_streak += 1
            else:
                self._failure_streak = 0

            logger.debug(
                "Drained offline queue: %d sent, %d remaining", sent_count, len(remaining)
            )
            return sent_count

        except Exception:
            logger.exception("Offline queue drain failed")
            self._failure_streak += 1
            return 0

        finally:
            self._drain_gate.release()

    def _attempt(self, item: QueuedEvent) -> bool:
        """Invoke the send capability; faults count as failed delivery."""
        try:
            return bool(self._send(item))
        except Exception as e:
            logger.debug("Queued event %r failed to send: %s", item.request.event_type, e)
            return False

    def _background_worker(self) -> None:
        if self._shutdown_event.wait(timeout=self._initial_delay):
            return

        while True:
            self.retry_now()
            if self._shutdown_event.wait(timeout=self._interval):
                return
