"""
Simulated Clock & Timer Scheduler

Replaces wall-clock background timers with an explicit time advance:
- SimulatedClock: injectable time source, moved only by advance()
- TimerScheduler: one-shot timers fired in (due time, scheduling order)

Owners that need stale-timer protection capture a generation counter in the
callback and compare it when the timer fires.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class SimulatedClock:
    """Time source advanced explicitly by tick()."""

    def __init__(self, start: Optional[datetime] = None):
        self._start = start or datetime.now(timezone.utc)
        self._elapsed: float = 0.0

    @property
    def elapsed(self) -> float:
        """Seconds since the clock was created."""
        return self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards ({seconds}s)")
        self._elapsed += seconds


@dataclass(order=True)
class TimerHandle:
    """A scheduled one-shot timer."""
    due_at: float
    seq: int
    name: str = field(compare=False, default="")
    callback: Optional[Callable[[], None]] = field(compare=False, default=None, repr=False)
    cancelled: bool = field(compare=False, default=False)
    fired: bool = field(compare=False, default=False)

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class TimerScheduler:
    """Deterministic one-shot timer queue driven by advance()."""

    def __init__(self, clock: SimulatedClock):
        self.clock = clock
        self._queue: list[TimerHandle] = []
        self._seq = itertools.count()

    def schedule(
        self,
        delay_sec: float,
        callback: Callable[[], None],
        name: str = "",
    ) -> TimerHandle:
        """Schedule callback to run delay_sec from now."""
        if delay_sec < 0:
            raise ValueError(f"Timer delay must be >= 0 (got {delay_sec})")

        handle = TimerHandle(
            due_at=self.clock.elapsed + delay_sec,
            seq=next(self._seq),
            name=name,
            callback=callback,
        )
        heapq.heappush(self._queue, handle)
        logger.debug("[SCHEDULER] Scheduled %s in %.1fs", name or "timer", delay_sec)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> bool:
        """Cancel a timer. Returns False if it already fired or was cancelled."""
        if handle is None or not handle.active:
            return False
        handle.cancelled = True
        handle.callback = None
        logger.debug("[SCHEDULER] Cancelled %s", handle.name or "timer")
        return True

    def remaining(self, handle: Optional[TimerHandle]) -> float:
        """Seconds until handle fires (0 if inactive)."""
        if handle is None or not handle.active:
            return 0.0
        return max(0.0, handle.due_at - self.clock.elapsed)

    def pending(self) -> list[TimerHandle]:
        """Active timers in firing order."""
        return sorted(h for h in self._queue if h.active)

    def next_due_in(self) -> Optional[float]:
        self._drop_inactive()
        if not self._queue:
            return None
        return max(0.0, self._queue[0].due_at - self.clock.elapsed)

    def advance(
        self,
        elapsed_sec: float,
        on_elapsed: Optional[Callable[[float], None]] = None,
    ) -> int:
        """Move the clock forward, firing due timers at their due times.

        on_elapsed(dt) is called for each stretch of time between timer
        firings so continuous processes (battery charge) see time pass in
        order with the timers.

        Returns:
            Number of timers fired
        """
        if elapsed_sec < 0:
            raise ValueError(f"elapsed_sec must be >= 0 (got {elapsed_sec})")

        target = self.clock.elapsed + elapsed_sec
        fired = 0

        while True:
            self._drop_inactive()
            if not self._queue or self._queue[0].due_at > target:
                break

            handle = heapq.heappop(self._queue)
            self._elapse(handle.due_at - self.clock.elapsed, on_elapsed)

            callback = handle.callback
            handle.fired = True
            handle.callback = None
            if callback is not None:
                callback()
                fired += 1

        self._elapse(target - self.clock.elapsed, on_elapsed)
        return fired

    def _elapse(self, dt: float, on_elapsed: Optional[Callable[[float], None]]) -> None:
        if dt <= 0:
            return
        self.clock.advance(dt)
        if on_elapsed is not None:
            on_elapsed(dt)

    def _drop_inactive(self) -> None:
        while self._queue and not self._queue[0].active:
            heapq.heappop(self._queue)
