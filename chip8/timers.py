"""Wall-clock driven delay and sound timers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from .constants import BYTE_MASK, TIMER_RATE_HZ

# Returns a monotonically increasing time in milliseconds.
Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class ManualClock:
    """Deterministic clock advanced explicitly by the caller."""

    now_ms: float = 0.0

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        if ms < 0:
            raise ValueError("Clock cannot move backwards")
        self.now_ms += ms


@dataclass
class TimerSubsystem:
    """Delay and sound counters decremented at a fixed real-time rate.

    ``cycle()`` is called once per CPU cycle. It adds the wall-clock time
    elapsed since the previous call to an accumulator and drains it in
    ``1000 / rate_hz`` ms steps, so the counters decay at the same rate no
    matter how many instructions run per tick.
    """

    clock: Clock = field(default=monotonic_ms, repr=False)
    rate_hz: int = TIMER_RATE_HZ

    def __post_init__(self) -> None:
        if self.rate_hz <= 0:
            raise ValueError("Timer rate must be positive")
        self._delay = 0
        self._sound = 0
        self._accumulator = 0.0
        self._last = self.clock()
        self.ticks = 0

    @property
    def period_ms(self) -> float:
        return 1000.0 / self.rate_hz

    @property
    def delay(self) -> int:
        return self._delay

    @delay.setter
    def delay(self, value: int) -> None:
        self._delay = int(value) & BYTE_MASK

    @property
    def sound(self) -> int:
        return self._sound

    @sound.setter
    def sound(self, value: int) -> None:
        self._sound = int(value) & BYTE_MASK

    @property
    def accumulator_ms(self) -> float:
        return self._accumulator

    def reset(self) -> None:
        """Zero both counters and restart the elapsed-time reference."""

        self._delay = 0
        self._sound = 0
        self._accumulator = 0.0
        self._last = self.clock()
        self.ticks = 0

    def cycle(self) -> int:
        """Apply elapsed time; return the number of 60 Hz ticks consumed."""

        now = self.clock()
        # A clock that steps backwards contributes nothing.
        self._accumulator += max(0.0, now - self._last)
        self._last = now

        period = self.period_ms
        fired = 0
        while self._accumulator >= period:
            if self._delay > 0:
                self._delay -= 1
            if self._sound > 0:
                self._sound -= 1
            self._accumulator -= period
            fired += 1

        self.ticks += fired
        return fired


__all__ = ["Clock", "ManualClock", "TimerSubsystem", "monotonic_ms"]
