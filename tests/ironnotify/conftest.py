"""Shared fixtures for ironnotify tests."""

import logging

import pytest

from ironnotify.models import NotifyEventRequest, Severity


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep the default queue directory and IRONNOTIFY_* settings hermetic.

    The default queue lives under the platformdirs user data directory, which
    follows HOME and XDG_DATA_HOME; point both at tmp_path so no test touches
    the real home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))

    for name in (
        "IRONNOTIFY_API_KEY",
        "IRONNOTIFY_BASE_URL",
        "IRONNOTIFY_APP_SLUG",
        "IRONNOTIFY_SOURCE",
        "IRONNOTIFY_TIMEOUT",
        "IRONNOTIFY_QUEUE_DIR",
        "IRONNOTIFY_MAX_QUEUE_SIZE",
        "IRONNOTIFY_OFFLINE_QUEUE",
        "IRONNOTIFY_USER_ID",
    ):
        monkeypatch.delenv(name, raising=False)

    yield

    # CLI tests install a rich handler on the package logger
    package_logger = logging.getLogger("ironnotify")
    for handler in list(package_logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def queue_dir(tmp_path):
    """Directory for a test's offline queue file."""
    path = tmp_path / "queue"
    path.mkdir()
    return path


@pytest.fixture
def make_request():
    """Factory for notification requests with distinguishable titles."""

    def _make(title: str = "Disk almost full", **fields) -> NotifyEventRequest:
        fields.setdefault("event_type", "server.alert")
        fields.setdefault("severity", Severity.WARNING)
        return NotifyEventRequest(title=title, **fields)

    return _make
