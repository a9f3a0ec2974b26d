"""Unit tests for client options and environment loading."""

from pathlib import Path
from uuid import UUID

import pytest

from ironnotify.config import DEFAULT_BASE_URL, NotifyClientOptions, RealtimeOptions


def test_defaults():
    options = NotifyClientOptions()

    assert options.base_url == DEFAULT_BASE_URL
    assert options.enable_offline_queue is True
    assert options.max_offline_queue_size == 500
    assert options.retry_initial_delay == 30.0
    assert options.retry_interval == 60.0
    assert options.offline_queue_directory is None


def test_from_env_reads_variables(tmp_path, monkeypatch):
    monkeypatch.setenv("IRONNOTIFY_API_KEY", "key-123")
    monkeypatch.setenv("IRONNOTIFY_BASE_URL", "https://notify.internal")
    monkeypatch.setenv("IRONNOTIFY_APP_SLUG", "billing")
    monkeypatch.setenv("IRONNOTIFY_SOURCE", "worker-3")
    monkeypatch.setenv("IRONNOTIFY_TIMEOUT", "2.5")
    monkeypatch.setenv("IRONNOTIFY_QUEUE_DIR", str(tmp_path / "q"))
    monkeypatch.setenv("IRONNOTIFY_MAX_QUEUE_SIZE", "25")
    monkeypatch.setenv("IRONNOTIFY_OFFLINE_QUEUE", "false")

    options = NotifyClientOptions.from_env()

    assert options.api_key == "key-123"
    assert options.base_url == "https://notify.internal"
    assert options.default_app_slug == "billing"
    assert options.default_source == "worker-3"
    assert options.timeout == 2.5
    assert options.offline_queue_directory == Path(tmp_path / "q")
    assert options.max_offline_queue_size == 25
    assert options.enable_offline_queue is False


def test_from_env_overrides_take_precedence(monkeypatch):
    monkeypatch.setenv("IRONNOTIFY_API_KEY", "from-env")

    options = NotifyClientOptions.from_env(api_key="explicit", retry_interval=5.0)

    assert options.api_key == "explicit"
    assert options.retry_interval == 5.0


def test_from_env_unknown_override_raises():
    with pytest.raises(ValueError, match="Invalid option: colour"):
        NotifyClientOptions.from_env(colour="blue")


def test_from_env_invalid_number_raises(monkeypatch):
    monkeypatch.setenv("IRONNOTIFY_MAX_QUEUE_SIZE", "lots")

    with pytest.raises(ValueError, match="IRONNOTIFY_MAX_QUEUE_SIZE"):
        NotifyClientOptions.from_env()


def test_from_env_without_variables_uses_defaults():
    options = NotifyClientOptions.from_env()
    assert options == NotifyClientOptions()


def test_realtime_options_from_env(monkeypatch):
    monkeypatch.setenv("IRONNOTIFY_API_KEY", "key-123")
    monkeypatch.setenv("IRONNOTIFY_USER_ID", "3f2504e0-4f89-11d3-9a0c-0305e82c3301")

    options = RealtimeOptions.from_env(max_reconnect_attempts=2)

    assert options.api_key == "key-123"
    assert options.user_id == UUID("3f2504e0-4f89-11d3-9a0c-0305e82c3301")
    assert options.max_reconnect_attempts == 2
    assert options.reconnect_cap_seconds == 30.0
