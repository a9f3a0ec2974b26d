"""Offline queue record with its persisted representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ironnotify.models import NotifyEventRequest


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QueuedEvent:
    """
    A notification request waiting in the offline queue.

    The request is opaque to the queue: it is only serialized, deserialized and
    handed back to the send capability.

    Fields:
    - request: The notification request that failed to send
    - queued_at: UTC timestamp when the request was queued
    - retry_count: Persisted for compatibility, not incremented by the drain loop
    """
    request: NotifyEventRequest
    queued_at: datetime = field(default_factory=_utcnow)
    retry_count: int = 0

    def to_record(self) -> dict[str, object]:
        """Serialize to the camelCase record stored in the queue file."""
        return {
            "queuedAt": self.queued_at.isoformat(),
            "retryCount": self.retry_count,
            "request": self.request.to_record(),
        }

    @classmethod
    def from_record(cls, data: dict[str, object]) -> "QueuedEvent":
        """
        Deserialize from a queue file record.

        Raises:
            ValueError: If the record is malformed or missing required fields
        """
        if not isinstance(data, dict):
            raise ValueError(f"Queue record must be an object, got {type(data).__name__}")

        request_data = data.get("request")
        if not isinstance(request_data, dict):
            raise ValueError("Queue record is missing 'request'")

        queued_at_val = data.get("queuedAt")
        if queued_at_val:
            queued_at = datetime.fromisoformat(str(queued_at_val))
            if queued_at.tzinfo is None:
                queued_at = queued_at.replace(tzinfo=timezone.utc)
        else:
            queued_at = _utcnow()

        retry_count_val = data.get("retryCount", 0)
        retry_count = int(retry_count_val) if isinstance(retry_count_val, (int, str)) else 0

        return cls(
            request=NotifyEventRequest.from_record(request_data),
            queued_at=queued_at,
            retry_count=retry_count,
        )
