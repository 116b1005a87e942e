"""Time sources for the debounce gate.

A clock is any zero-argument callable returning the current time in
milliseconds. The coordinator only ever subtracts two readings, so the epoch
does not matter.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


class SystemClock:
    """Wall-clock time in milliseconds."""

    def __call__(self) -> float:
        return time.time() * 1000.0


class ManualClock:
    """
    A clock that only moves when told to.

    Used by tests (and by simulations) to make debounce behavior
    deterministic:

        clock = ManualClock()
        coordinator = EventCoordinator(clock=clock)
        clock.advance(600)
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    @property
    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> float:
        if ms < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += ms
        return self._now

    def set(self, ms: float) -> None:
        self._now = float(ms)
