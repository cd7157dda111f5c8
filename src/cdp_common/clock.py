"""Request time.

Time is an int of unix seconds, monotonically non-decreasing. Inside a
request the time is pinned so that every component observes the same value.
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall clock that never goes backwards."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        current = max(int(time.time()), self._last)
        self._last = current
        return current


class ManualClock:
    """Settable clock for tests and simulations."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"time cannot go backwards (advance {seconds})")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"time cannot go backwards ({timestamp} < {self._now})")
        self._now = timestamp


class RequestClock:
    """Wraps a source clock; `pin()` freezes `now()` for the current request."""

    def __init__(self, source: Clock) -> None:
        self._source = source
        self._pinned: int | None = None

    @property
    def pinned(self) -> bool:
        return self._pinned is not None

    def pin(self) -> int:
        self._pinned = self._source.now()
        return self._pinned

    def unpin(self) -> None:
        self._pinned = None

    def now(self) -> int:
        if self._pinned is not None:
            return self._pinned
        return self._source.now()
