"""
Time source for the engine.

All task and cooldown arithmetic is done in integer epoch milliseconds. Services
take a `Clock` instead of reading the wall clock so tests can move time
explicitly.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int:
        ...


class SystemClock:
    """Wall-clock time in epoch milliseconds."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """
    Manually driven clock.

    >>> clock = FixedClock(1_000)
    >>> clock.advance(seconds=30)
    >>> clock.now_ms()
    31000
    """

    def __init__(self, now_ms: int = 0) -> None:
        self._now_ms = int(now_ms)

    def now_ms(self) -> int:
        return self._now_ms

    def set(self, now_ms: int) -> None:
        self._now_ms = int(now_ms)

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self._now_ms += int(seconds * 1000) + int(ms)
