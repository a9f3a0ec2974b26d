"""
Offline retry subsystem.

This package provides the durable queue that holds notifications the API did
not accept, the drain loop that replays them, and the backoff policy shared
with the live connection.

Storage Format:
- Queue: <user data dir>/IronNotify/Queue/notify_queue.json (JSON array)
"""

from .backoff import BackoffPolicy
from .models import QueuedEvent
from .store import (
    QueueStore,
    get_default_queue_directory,
    QUEUE_FILENAME,
    DEFAULT_MAX_QUEUE_SIZE,
)
from .replay import RetryScheduler, SendFunc
from .offline import NotifyOfflineQueue

__all__ = [
    "BackoffPolicy",
    "QueuedEvent",
    "QueueStore",
    "get_default_queue_directory",
    "QUEUE_FILENAME",
    "DEFAULT_MAX_QUEUE_SIZE",
    "RetryScheduler",
    "SendFunc",
    "NotifyOfflineQueue",
]
