"""Unit tests for the capped exponential backoff policy."""

import pytest

from ironnotify.queue.backoff import BackoffPolicy


def test_delay_doubles_until_cap():
    """Test delay(n) = min(2^n, cap) before the attempt budget runs out."""
    policy = BackoffPolicy(max_attempts=10, cap_seconds=30)

    assert policy.next_delay(0) == 1
    assert policy.next_delay(1) == 2
    assert policy.next_delay(3) == 8
    assert policy.next_delay(4) == 16
    assert policy.next_delay(5) == 30  # 32 capped
    assert policy.next_delay(6) == 30


def test_gives_up_at_max_attempts():
    """Test the policy returns None once attempt >= max_attempts."""
    policy = BackoffPolicy(max_attempts=5, cap_seconds=30)

    assert policy.next_delay(4) == 16
    assert policy.next_delay(5) is None
    assert policy.next_delay(50) is None


def test_zero_max_attempts_never_retries():
    policy = BackoffPolicy(max_attempts=0)
    assert policy.next_delay(0) is None
    assert list(policy.delays()) == []


def test_unlimited_attempts_saturate_at_cap():
    """Test max_attempts=None never gives up and huge exponents do not overflow."""
    policy = BackoffPolicy(max_attempts=None, cap_seconds=30)

    assert policy.next_delay(100) == 30
    assert policy.next_delay(5000) == 30


def test_default_schedule():
    """Test the default schedule used for reconnects: 1, 2, 4, 8, 16 then give up."""
    assert list(BackoffPolicy().delays()) == [1, 2, 4, 8, 16]


def test_schedule_is_non_decreasing():
    delays = list(BackoffPolicy(max_attempts=12, cap_seconds=45).delays())
    assert delays == sorted(delays)
    assert max(delays) == 45


def test_custom_base():
    policy = BackoffPolicy(max_attempts=None, cap_seconds=100, base=3)
    assert policy.next_delay(2) == 9


def test_negative_attempt_raises():
    with pytest.raises(ValueError, match="attempt must be >= 0"):
        BackoffPolicy().next_delay(-1)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": -1},
        {"cap_seconds": -5},
        {"base": 0.5},
    ],
)
def test_invalid_configuration_raises(kwargs):
    with pytest.raises(ValueError):
        BackoffPolicy(**kwargs)
