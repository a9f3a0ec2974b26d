"""Capped exponential backoff shared by the retry and reconnect paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Delay schedule for successive retry attempts.

    ``next_delay(n)`` is ``min(base ** n, cap_seconds)`` while ``n`` is below
    ``max_attempts`` and ``None`` afterwards, meaning "stop retrying".
    ``max_attempts=None`` retries forever.

    Examples (defaults):
        attempt 0 -> 1s, 1 -> 2s, 2 -> 4s, 3 -> 8s, 4 -> 16s, 5 -> give up
    """

    max_attempts: int | None = 5
    cap_seconds: float = 30.0
    base: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        if self.cap_seconds < 0:
            raise ValueError(f"cap_seconds must be >= 0, got {self.cap_seconds}")
        if self.base < 1:
            raise ValueError(f"base must be >= 1, got {self.base}")

    def next_delay(self, attempt: int) -> float | None:
        """
        Delay in seconds before retry number ``attempt`` (0-based).

        Args:
            attempt: Number of retries already made

        Returns:
            Seconds to wait, or None once the attempt budget is exhausted

        Raises:
            ValueError: If attempt is negative
        """
        if attempt < 0:
            raise ValueError(f"attempt must be >= 0, got {attempt}")

        if self.max_attempts is not None and attempt >= self.max_attempts:
            return None

        try:
            delay = self.base ** attempt
        except OverflowError:
            return float(self.cap_seconds)

        return float(min(delay, self.cap_seconds))

    def delays(self) -> Iterator[float]:
        """Yield the delay for every attempt until the policy gives up."""
        attempt = 0
        while True:
            delay = self.next_delay(attempt)
            if delay is None:
                return
            yield delay
            attempt += 1
