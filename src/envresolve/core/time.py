from __future__ import annotations

"""
envresolve.core.time
====================

Clock abstractions used to stamp resolution transitions:
- Clock Protocol for dependency injection.
- SystemClock: production default.
- ManualClock: deterministic clock for tests.
"""

import time
from typing import Protocol

from .types import Millis, TimestampMs


class Clock(Protocol):
    def now_ms(self) -> TimestampMs: ...


class SystemClock:
    """Clock backed by system time."""

    def now_ms(self) -> TimestampMs:
        return time.time_ns() // 1_000_000


class ManualClock:
    """Controllable clock for tests. Time only moves when `advance()` is called."""

    def __init__(self, start_ms: Millis = 0) -> None:
        self._now: Millis = start_ms

    def now_ms(self) -> TimestampMs:
        return self._now

    def advance(self, ms: Millis) -> None:
        self._now += max(0, int(ms))
