from __future__ import annotations

from time import perf_counter
from typing import Callable, Iterator, List


class TimeAccumulator:
    """Turns variable frame deltas into whole fixed-size steps.

    ``update(dt)`` banks elapsed time; iterating drains one ``step`` per item
    and keeps the remainder for the next update.
    """

    def __init__(self, step: float):
        if step <= 0.0:
            raise ValueError("step must be positive")
        self._accumulator = 0.0
        self._step = step

    @property
    def pending(self) -> float:
        return self._accumulator

    def update(self, delta: float) -> "TimeAccumulator":
        self._accumulator += delta
        return self

    def __iter__(self) -> Iterator[float]:
        return self

    def __next__(self) -> float:
        if self._accumulator >= self._step:
            self._accumulator -= self._step
            return self._step
        raise StopIteration


class TickMeter:
    """Rolling ticks-per-second over the last ``window`` ticks."""

    def __init__(self, window: int = 100, clock: Callable[[], float] = perf_counter):
        self._clock = clock
        self._tick_times: List[float] = [0.0] * window
        self._idx = 0
        self._filled = 0
        self._tick_start = clock()

    def tick(self) -> None:
        end = self._clock()
        self._tick_times[self._idx] = end - self._tick_start
        self._tick_start = end
        self._idx = (self._idx + 1) % len(self._tick_times)
        self._filled = min(self._filled + 1, len(self._tick_times))

    def measure(self) -> float:
        total = sum(self._tick_times)
        if self._filled == 0 or total <= 0.0:
            return 0.0
        return self._filled / total
