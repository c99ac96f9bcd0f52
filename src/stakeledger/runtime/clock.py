from __future__ import annotations

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Monotonically non-decreasing integer time source (unix seconds)."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds, clamped so it never steps backwards within a process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def now(self) -> int:
        t = int(time.time())
        with self._lock:
            if t < self._last:
                t = self._last
            self._last = t
            return t


class ManualClock:
    """Test/simulation clock. Only moves when told to, and only forwards."""

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        s = int(seconds)
        if s < 0:
            raise ValueError(f"clock cannot move backwards: advance({s})")
        self._now += s
        return self._now

    def set(self, t: int) -> int:
        t = int(t)
        if t < self._now:
            raise ValueError(f"clock cannot move backwards: {t} < {self._now}")
        self._now = t
        return self._now
