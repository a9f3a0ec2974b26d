"""Client options and environment loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any
from uuid import UUID

from ironnotify.queue.replay import DEFAULT_INITIAL_DELAY, DEFAULT_RETRY_INTERVAL
from ironnotify.queue.store import DEFAULT_MAX_QUEUE_SIZE

DEFAULT_BASE_URL = "https://ironnotify.com"

# Environment variables read by from_env()
ENV_API_KEY = "IRONNOTIFY_API_KEY"
ENV_BASE_URL = "IRONNOTIFY_BASE_URL"
ENV_APP_SLUG = "IRONNOTIFY_APP_SLUG"
ENV_SOURCE = "IRONNOTIFY_SOURCE"
ENV_TIMEOUT = "IRONNOTIFY_TIMEOUT"
ENV_QUEUE_DIR = "IRONNOTIFY_QUEUE_DIR"
ENV_MAX_QUEUE_SIZE = "IRONNOTIFY_MAX_QUEUE_SIZE"
ENV_OFFLINE_QUEUE = "IRONNOTIFY_OFFLINE_QUEUE"
ENV_USER_ID = "IRONNOTIFY_USER_ID"

_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_number(name: str, cast: type) -> Any:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    try:
        return cast(value)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {value!r}") from e


def _apply_overrides(options: Any, overrides: dict[str, Any]) -> None:
    valid = {f.name for f in fields(options)}
    for key, value in overrides.items():
        if key not in valid:
            raise ValueError(f"Invalid option: {key}")
        setattr(options, key, value)


@dataclass
class NotifyClientOptions:
    """
    Options for NotifyClient.

    Fields:
    - api_key: API key sent as a bearer token (required)
    - base_url: API root
    - default_app_slug: App slug used when a request names no app
    - default_source: Source used when a request names none
    - timeout: HTTP timeout in seconds (None: httpx default)
    - enable_offline_queue: Queue failed sends for automatic retry
    - offline_queue_directory: Queue directory (None: per-user data dir)
    - max_offline_queue_size: Maximum queued items, oldest dropped first
    - retry_initial_delay: Seconds before the first automatic retry
    - retry_interval: Seconds between automatic retries
    """
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    default_app_slug: str | None = None
    default_source: str | None = None
    timeout: float | None = None
    enable_offline_queue: bool = True
    offline_queue_directory: Path | None = None
    max_offline_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    retry_initial_delay: float = DEFAULT_INITIAL_DELAY
    retry_interval: float = DEFAULT_RETRY_INTERVAL

    @classmethod
    def from_env(cls, **overrides: Any) -> "NotifyClientOptions":
        """
        Build options from IRONNOTIFY_* environment variables.

        Args:
            **overrides: Option values that take precedence over the environment

        Raises:
            ValueError: If a numeric variable does not parse or an override is unknown
        """
        options = cls(
            api_key=os.getenv(ENV_API_KEY, ""),
            base_url=os.getenv(ENV_BASE_URL) or DEFAULT_BASE_URL,
            default_app_slug=os.getenv(ENV_APP_SLUG) or None,
            default_source=os.getenv(ENV_SOURCE) or None,
            timeout=_env_number(ENV_TIMEOUT, float),
            enable_offline_queue=_env_bool(ENV_OFFLINE_QUEUE, True),
        )

        queue_dir = os.getenv(ENV_QUEUE_DIR)
        if queue_dir:
            options.offline_queue_directory = Path(queue_dir).expanduser()

        max_size = _env_number(ENV_MAX_QUEUE_SIZE, int)
        if max_size is not None:
            options.max_offline_queue_size = max_size

        _apply_overrides(options, overrides)
        return options


@dataclass
class RealtimeOptions:
    """
    Options for RealtimeClient.

    Fields:
    - api_key: API key sent as a bearer token (required)
    - base_url: API root; the hub lives at {base_url}/hubs/notifications
    - user_id: User subscription restored after every reconnect
    - max_reconnect_attempts: Reconnect attempts before giving up
    - reconnect_cap_seconds: Upper bound on the delay between attempts
    - timeout: HTTP timeout in seconds for hub invocations
    """
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    user_id: UUID | None = None
    max_reconnect_attempts: int = 5
    reconnect_cap_seconds: float = 30.0
    timeout: float | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "RealtimeOptions":
        """Build options from IRONNOTIFY_* environment variables."""
        user_id = os.getenv(ENV_USER_ID)
        options = cls(
            api_key=os.getenv(ENV_API_KEY, ""),
            base_url=os.getenv(ENV_BASE_URL) or DEFAULT_BASE_URL,
            user_id=UUID(user_id) if user_id else None,
            timeout=_env_number(ENV_TIMEOUT, float),
        )
        _apply_overrides(options, overrides)
        return options
