"""
Overall time budget for one dial.

A per-attempt timeout alone is not enough: ten candidates with a 5 second
connect timeout each can block for 50 seconds. A Deadline caps the whole
resolve-and-connect call, and each attempt gets whatever is left:

    Deadline(timeout=8)
    ├── resolve        0.2s   (7.8s left)
    ├── attempt #1     5.0s   timeout = min(5, 7.8) -> refused at 5.0s
    └── attempt #2     2.8s   timeout = min(5, 2.8) -> clamped!

time.monotonic() is used because wall-clock time can jump (NTP, DST).
"""

import time
from typing import Callable, Optional


class Deadline:
    """A point in time after which no new work should start."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        self._clock = clock
        self.timeout = timeout
        self.started_at = clock()
        self._expires_at = None if timeout is None else self.started_at + timeout

    @property
    def unlimited(self) -> bool:
        return self._expires_at is None

    @property
    def elapsed(self) -> float:
        return self._clock() - self.started_at

    def remaining(self) -> Optional[float]:
        """Seconds left, never negative. None means no limit."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def clamp(self, timeout: Optional[float]) -> Optional[float]:
        """
        Combine a per-attempt timeout with what is left of the budget.

        None on either side means "unlimited", so the result is None only
        when both are None.
        """
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)

    def __repr__(self) -> str:
        return f"Deadline(timeout={self.timeout!r}, remaining={self.remaining()!r})"
