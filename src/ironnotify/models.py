"""Notification request and result models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Event severity, sent to the API by name."""

    INFO = "Info"
    WARNING = "Warning"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """
        Resolve a severity from its name, case-insensitively.

        Raises:
            ValueError: If value names no severity
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid severity: {value}. Must be one of {valid}")


class CamelModel(BaseModel):
    """Base for payload models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible camelCase dict, omitting None fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EventAction(CamelModel):
    """Action button attached to a notification."""

    action_id: str
    label: str
    webhook_url: str | None = None


class NotifyEventRequest(CamelModel):
    """
    A notification to deliver to the API.

    Either app_slug or app_id identifies the target app; when both are unset the
    client's default app slug is used.
    """

    app_id: UUID | None = None
    app_slug: str | None = None
    event_type: str = ""
    severity: Severity = Severity.INFO
    source: str | None = None
    title: str = ""
    message: str | None = None
    entity_id: str | None = None
    metadata: dict[str, Any] | None = None
    actions: list[EventAction] | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Any:
        # Queue files written by other SDKs may store the enum ordinal
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(Severity)
            if 0 <= value < len(members):
                return members[value]
        if isinstance(value, str):
            return Severity.parse(value)
        return value

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "NotifyEventRequest":
        """
        Deserialize from a camelCase record.

        Raises:
            ValueError: If the record does not validate
        """
        return cls.model_validate(data)


@dataclass
class EventResult:
    """
    Outcome of a notify call.

    Fields:
    - success: True when the API accepted the event
    - event_id: Server-assigned event ID (when returned)
    - status: Server-reported event status (when returned)
    - error: Response body or transport error message on failure
    - queued: True when the failed event was placed in the offline queue
    """
    success: bool
    event_id: UUID | None = None
    status: str | None = None
    error: str | None = None
    queued: bool = False
