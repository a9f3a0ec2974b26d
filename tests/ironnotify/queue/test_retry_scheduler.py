"""Unit tests for the offline queue drain loop."""

import threading
import time

import pytest

from ironnotify.queue.models import QueuedEvent
from ironnotify.queue.replay import RetryScheduler
from ironnotify.queue.store import QueueStore


def _titles(items):
    return [item.request.title for item in items]


@pytest.fixture
def store(queue_dir):
    return QueueStore(queue_dir)


def _fill(store, make_request, titles):
    for title in titles:
        store.enqueue(QueuedEvent(make_request(title)))


def _wait_for(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def test_successful_drain_empties_queue(store, make_request):
    """Test an always-succeeding send delivers every item."""
    _fill(store, make_request, ["A", "B", "C", "D"])
    sent = []
    scheduler = RetryScheduler(store, lambda item: sent.append(item.request.title) or True)

    assert scheduler.retry_now() == 4
    assert store.items() == []
    assert sent == ["A", "B", "C", "D"]
    assert scheduler.failure_streak == 0


def test_failed_drain_leaves_queue_unchanged(store, make_request):
    """Test an always-failing send keeps contents and order."""
    _fill(store, make_request, ["A", "B", "C"])
    before = store.items()
    scheduler = RetryScheduler(store, lambda item: False)

    assert scheduler.retry_now() == 0
    assert store.items() == before
    assert scheduler.failure_streak == 1


def test_partial_failure_preserves_relative_order(store, make_request):
    """Test exactly the failing subset remains, in original order."""
    _fill(store, make_request, ["A", "B", "C", "D", "E"])
    failing = {"A", "C", "E"}
    scheduler = RetryScheduler(store, lambda item: item.request.title not in failing)

    assert scheduler.retry_now() == 2
    assert _titles(store.items()) == ["A", "C", "E"]


def test_bounded_queue_then_partial_drain(queue_dir, make_request):
    """Test max_size=3 with A..D queued keeps B, C, D; failing B and D leaves [B, D]."""
    store = QueueStore(queue_dir, max_size=3)
    _fill(store, make_request, ["A", "B", "C", "D"])
    assert _titles(store.items()) == ["B", "C", "D"]

    scheduler = RetryScheduler(store, lambda item: item.request.title == "C")

    assert scheduler.retry_now() == 1
    assert _titles(store.items()) == ["B", "D"]


def test_send_exception_counts_as_failure(store, make_request):
    """Test a raising send keeps the item queued and does not stop the pass."""
    _fill(store, make_request, ["A", "B"])

    def send(item):
        if item.request.title == "A":
            raise ConnectionError("API unreachable")
        return True

    scheduler = RetryScheduler(store, send)

    assert scheduler.retry_now() == 1
    assert _titles(store.items()) == ["A"]


def test_empty_queue_returns_zero_and_resets_streak(store, make_request):
    _fill(store, make_request, ["A"])
    scheduler = RetryScheduler(store, lambda item: False)
    scheduler.retry_now()
    scheduler.retry_now()
    assert scheduler.failure_streak == 2

    store.clear()
    assert scheduler.retry_now() == 0
    assert scheduler.failure_streak == 0


def test_clean_drain_resets_failure_streak(store, make_request):
    _fill(store, make_request, ["A"])
    outcome = {"ok": False}
    scheduler = RetryScheduler(store, lambda item: outcome["ok"])

    scheduler.retry_now()
    assert scheduler.failure_streak == 1

    outcome["ok"] = True
    assert scheduler.retry_now() == 1
    assert scheduler.failure_streak == 0


def test_concurrent_drain_is_skipped(store, make_request):
    """Test a drain requested mid-drain returns 0 and causes no duplicate sends."""
    _fill(store, make_request, ["A", "B"])
    started = threading.Event()
    release = threading.Event()
    attempts = []

    def send(item):
        attempts.append(item.request.title)
        started.set()
        release.wait(timeout=5)
        return True

    scheduler = RetryScheduler(store, send)
    results = []
    worker = threading.Thread(target=lambda: results.append(scheduler.retry_now()))
    worker.start()

    assert started.wait(timeout=5)
    assert scheduler.retry_now() == 0

    release.set()
    worker.join(timeout=5)

    assert results == [2]
    assert attempts == ["A", "B"]
    assert store.items() == []


def test_enqueue_during_drain_is_kept(store, make_request):
    """Test items arriving while sends are in flight survive the rewrite."""
    _fill(store, make_request, ["A", "B"])

    def send(item):
        if item.request.title == "A":
            store.enqueue(QueuedEvent(make_request("C")))
        return item.request.title != "B"

    scheduler = RetryScheduler(store, send)

    assert scheduler.retry_now() == 1
    assert _titles(store.items()) == ["B", "C"]


def test_internal_fault_releases_gate(store, make_request, monkeypatch):
    """Test a store failure mid-drain is logged, counted and not raised."""
    _fill(store, make_request, ["A"])
    scheduler = RetryScheduler(store, lambda item: True)

    def broken_reconcile(snapshot, remaining):
        raise RuntimeError("boom")

    with monkeypatch.context() as m:
        m.setattr(store, "reconcile", broken_reconcile)
        assert scheduler.retry_now() == 0
        assert scheduler.failure_streak == 1

    assert scheduler.retry_now() == 1
    assert store.items() == []


def test_background_timer_drains_queue(store, make_request):
    """Test the timer drains after the initial delay and keeps running."""
    _fill(store, make_request, ["A"])
    attempts = []

    def send(item):
        attempts.append(item.request.title)
        return len(attempts) >= 2  # fail first pass, succeed on the next

    scheduler = RetryScheduler(store, send, initial_delay=0.01, interval=0.01)
    scheduler.start()
    try:
        assert _wait_for(lambda: store.count() == 0)
    finally:
        scheduler.stop()

    assert attempts[:2] == ["A", "A"]
    assert not scheduler.running


def test_start_is_idempotent_and_stop_is_safe(store):
    scheduler = RetryScheduler(store, lambda item: True, initial_delay=60, interval=60)

    scheduler.stop()  # never started

    scheduler.start()
    first_thread = scheduler._worker_thread
    scheduler.start()
    assert scheduler._worker_thread is first_thread
    assert scheduler.running

    scheduler.stop()
    assert not scheduler.running


def test_stop_before_initial_delay_never_drains(store, make_request):
    _fill(store, make_request, ["A"])
    attempts = []
    scheduler = RetryScheduler(store, lambda item: attempts.append(item) or True, initial_delay=60)

    scheduler.start()
    scheduler.stop()

    assert attempts == []
    assert store.count() == 1


@pytest.mark.parametrize("initial_delay, interval", [(-1, 60), (30, 0)])
def test_invalid_timing_raises(store, initial_delay, interval):
    with pytest.raises(ValueError, match="Invalid retry timing"):
        RetryScheduler(store, lambda item: True, initial_delay, interval)
