"""File-backed, bounded FIFO store for notifications awaiting delivery."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable

from platformdirs import user_data_dir

from ironnotify.queue.models import QueuedEvent

logger = logging.getLogger(__name__)

APP_NAME = "IronNotify"
QUEUE_FILENAME = "notify_queue.json"
DEFAULT_MAX_QUEUE_SIZE = 500


def get_default_queue_directory() -> Path:
    """Get the per-user queue directory ({user data dir}/IronNotify/Queue)."""
    return Path(user_data_dir(APP_NAME, appauthor=False)) / "Queue"


class QueueStore:
    """
    Durable, bounded, FIFO holding area for notifications pending delivery.

    The whole queue lives in one JSON file. Every operation loads the file,
    mutates the list and writes it back under a single store-wide lock, so no
    two operations interleave their reads and writes.

    Writes go straight to the queue file (no temp file + rename). A crash
    between load and save can lose that cycle's changes; durability is best
    effort only.

    Failures never reach the caller: an unreadable or corrupt file reads as an
    empty queue, and a failed write is logged and dropped.
    """

    def __init__(
        self,
        queue_directory: Path | str | None = None,
        max_size: int = DEFAULT_MAX_QUEUE_SIZE,
    ) -> None:
        """
        Initialize QueueStore.

        Args:
            queue_directory: Directory holding the queue file (default: per-user data dir)
            max_size: Maximum items kept; the oldest are dropped beyond this

        Raises:
            ValueError: If max_size is less than 1
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        directory = Path(queue_directory) if queue_directory is not None else get_default_queue_directory()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create queue directory %s: %s", directory, e)

        self._path = directory / QUEUE_FILENAME
        self._max_size = max_size
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Path of the backing queue file."""
        return self._path

    @property
    def max_size(self) -> int:
        return self._max_size

    def enqueue(self, item: QueuedEvent) -> None:
        """Append an item, dropping the oldest items beyond max_size."""
        with self._lock:
            queue = self._load()
            queue.append(item)
            dropped = len(queue) - self._max_size
            if dropped > 0:
                del queue[:dropped]
                logger.debug("Offline queue full, dropped %d oldest item(s)", dropped)
            self._save(queue)

    def items(self) -> list[QueuedEvent]:
        """Return the queued items in FIFO order."""
        with self._lock:
            return self._load()

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def __len__(self) -> int:
        return self.count()

    def replace(self, items: Iterable[QueuedEvent]) -> None:
        """Overwrite the queue with exactly ``items``."""
        with self._lock:
            self._save(list(items))

    def clear(self) -> None:
        """Discard every queued item."""
        self.replace([])

    def reconcile(self, snapshot: list[QueuedEvent], remaining: list[QueuedEvent]) -> None:
        """
        Commit the outcome of a drain pass.

        Persists ``remaining`` followed by any items enqueued after
        ``snapshot`` was read, trimmed to max_size. Without concurrent
        enqueues this is exactly ``replace(remaining)``.

        Args:
            snapshot: Items the drain pass read and attempted
            remaining: Items from the snapshot that still failed, in order
        """
        with self._lock:
            pending = list(snapshot)
            arrivals = []
            for item in self._load():
                # Multiset difference: the same record may legitimately appear twice
                try:
                    pending.remove(item)
                except ValueError:
                    arrivals.append(item)

            queue = list(remaining) + arrivals
            dropped = len(queue) - self._max_size
            if dropped > 0:
                del queue[:dropped]
            self._save(queue)

    def _load(self) -> list[QueuedEvent]:
        """Load the queue file (empty list if missing or corrupt)."""
        if not self._path.exists():
            return []

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError, RecursionError) as e:
            # RecursionError: pathologically nested JSON
            logger.warning("Unreadable offline queue %s, treating as empty: %s", self._path, e)
            return []

        if not isinstance(data, list):
            logger.warning("Offline queue %s is not a JSON array, treating as empty", self._path)
            return []

        items = []
        for index, record in enumerate(data):
            try:
                items.append(QueuedEvent.from_record(record))
            except (ValueError, TypeError) as e:
                logger.warning("Skipping corrupted record %d in %s: %s", index, self._path, e)
        return items

    def _save(self, items: list[QueuedEvent]) -> None:
        """Write the queue file; errors are logged and ignored."""
        try:
            payload = json.dumps([item.to_record() for item in items], separators=(",", ":"))
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                f.write(payload)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to write offline queue %s: %s", self._path, e)
