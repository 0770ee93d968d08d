"""
Tick-based scheduling for the reconciliation loop.

The host calls tick() once per simulation tick; every `interval` ticks the
scheduler fires, provided the host says a pass may run right now.
"""

from typing import Callable

from ..host.protocols import HostClock, clock_allows_run

# ~2 real-time seconds at normal game speed
DEFAULT_TICK_INTERVAL = 120


class IntervalScheduler:
    """
    Fires every `interval` ticks when the can-run gate allows.

    The counter resets whenever the interval elapses, whether or not the
    gate was open, so a paused game does not cause a burst of passes on
    unpause.
    """

    def __init__(
        self,
        interval: int = DEFAULT_TICK_INTERVAL,
        can_run: Callable[[], bool] | None = None,
    ):
        if interval < 1:
            raise ValueError(f"Tick interval must be at least 1, got {interval}")
        self.interval = interval
        self._can_run = can_run or (lambda: True)
        self.counter = 0

    @classmethod
    def for_clock(cls, clock: HostClock, interval: int = DEFAULT_TICK_INTERVAL) -> "IntervalScheduler":
        """Gate on the host clock: session active, map present, not paused."""
        return cls(interval, lambda: clock_allows_run(clock))

    def tick(self) -> bool:
        """Advance one tick. Returns True if a pass should run now."""
        self.counter += 1
        if self.counter < self.interval:
            return False
        self.counter = 0
        return self._can_run()

    def reset(self) -> None:
        self.counter = 0
