"""
Emergency Lighting State Machine

CHARGED ⇄ ACTIVE      mains-lost signal, sampled each tick
CHARGED → TESTING     start_test(); back to CHARGED after test_duration_sec
CHARGED ⇄ OFF         power_off() / power_on()
any     → FAULT       report_fault(); clear_fault() → CHARGED

Battery:
- ACTIVE: -discharge_per_sec per elapsed second, floored at discharge_floor
- CHARGED below 100: +recharge_per_sec per elapsed second, capped at 100
- TESTING / FAULT / OFF: unchanged

Notifications are queued while the lock is held and delivered after the
outermost command returns.

Every transition bumps a generation counter. Timers capture the generation
at scheduling time and no-op if it has moved on.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Optional

from ..config import LightingConfig
from ..domain.enums import (
    LIGHTING_STATE_LABELS,
    Connectivity,
    LightingError,
    LightingState,
    NotificationKind,
    NotificationSource,
)
from ..domain.models import CommandResult, LightingStatus, Notification
from .scheduler import SimulatedClock, TimerHandle, TimerScheduler


logger = logging.getLogger(__name__)


class LightingStateMachine:
    """Battery-backed emergency lighting controller."""

    def __init__(
        self,
        scheduler: TimerScheduler,
        config: Optional[LightingConfig] = None,
        notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.scheduler = scheduler
        self.config = config or LightingConfig()
        self.notify = notify

        self._state = LightingState.CHARGED
        self._charge: float = 100.0
        self._connectivity = Connectivity.ONLINE
        self._mains_lost = False
        self._fault_reason: Optional[str] = None

        self._generation = 0
        self._test_timer: Optional[TimerHandle] = None
        self._lock = threading.RLock()
        self._depth = 0
        self._outbox: list[Notification] = []

    @contextmanager
    def _command(self):
        """Run under the lock. Queued notifications go out once the outermost
        command or timer callback has released it.
        """
        with self._lock:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                pending = []
                if self._depth == 0:
                    pending, self._outbox = self._outbox, []
        self._deliver(pending)

    def _ok(self, reason: str, **kwargs) -> CommandResult:
        return CommandResult.ok(reason, timestamp=self.clock.now(), **kwargs)

    def _fail(self, error: LightingError, reason: str, **kwargs) -> CommandResult:
        return CommandResult.fail(error, reason, timestamp=self.clock.now(), **kwargs)

    @property
    def clock(self) -> SimulatedClock:
        return self.scheduler.clock

    @property
    def state(self) -> LightingState:
        return self._state

    @property
    def charge_percent(self) -> float:
        return self._charge

    @property
    def generation(self) -> int:
        return self._generation

    def status(self) -> LightingStatus:
        with self._lock:
            return LightingStatus(
                state=self._state,
                label=LIGHTING_STATE_LABELS[self._state],
                charge_percent=self._charge,
                connectivity=self._connectivity,
                mains_lost=self._mains_lost,
                test_remaining_sec=(
                    self.scheduler.remaining(self._test_timer)
                    if self._state == LightingState.TESTING else None
                ),
                fault_reason=self._fault_reason,
            )

    # =========================================================================
    # Time & external signal
    # =========================================================================

    def set_mains_lost(self, lost: bool) -> CommandResult:
        """Record the mains signal. Takes effect on the next tick."""
        with self._command():
            self._mains_lost = lost
            logger.info("[LIGHTING] Mains signal: %s", "LOST" if lost else "present")
            return self._ok(f"Mains power {'lost' if lost else 'present'}")

    def tick(self, elapsed_sec: float) -> int:
        """Advance time: sample mains, evolve charge, fire due timers."""
        with self._command():
            self.sample_mains()
            return self.scheduler.advance(elapsed_sec, self._elapse)

    def sample_mains(self) -> None:
        with self._command():
            if self._mains_lost:
                if self._state == LightingState.TESTING:
                    self._cancel_test_timer()
                    self._emit(
                        NotificationKind.TEST_ABORTED,
                        "Test Aborted",
                        "Building power lost during self-test.",
                    )
                    self._transition(LightingState.ACTIVE, "mains lost during test")
                elif self._state == LightingState.CHARGED:
                    self._transition(LightingState.ACTIVE, "mains lost")
            elif self._state == LightingState.ACTIVE:
                self._transition(LightingState.CHARGED, "mains restored")

    def _elapse(self, dt: float) -> None:
        self.sample_mains()
        cfg = self.config
        if self._state == LightingState.ACTIVE and self._charge > cfg.discharge_floor:
            self._charge = max(cfg.discharge_floor, self._charge - cfg.discharge_per_sec * dt)
        elif self._state == LightingState.CHARGED and self._charge < 100:
            self._charge = min(100.0, self._charge + cfg.recharge_per_sec * dt)

    # =========================================================================
    # Commands
    # =========================================================================

    def start_test(self) -> CommandResult:
        with self._command():
            if self._state != LightingState.CHARGED:
                reason = f"Cannot start test while system is {self._state.value}."
                logger.info("[LIGHTING] Test blocked (%s)", self._state.value)
                self._emit(NotificationKind.TEST_BLOCKED, "Test Blocked", reason)
                return self._fail(LightingError.NOT_CHARGED, reason)

            self._charge = max(self._charge - self.config.test_charge_draw, 0.0)
            self._transition(LightingState.TESTING, "self-test started")

            generation = self._generation
            self._test_timer = self.scheduler.schedule(
                self.config.test_duration_sec,
                lambda: self._complete_test(generation),
                name="lighting_self_test",
            )

            description = f"The system test will run for {self.config.test_duration_sec:g} seconds."
            self._emit(
                NotificationKind.TEST_STARTED,
                "Emergency Light Test Initiated",
                description,
                duration_sec=self.config.test_duration_sec,
            )
            return self._ok(description)

    def _complete_test(self, generation: int) -> None:
        with self._command():
            if generation != self._generation or self._state != LightingState.TESTING:
                logger.debug("[LIGHTING] Stale test timer ignored (gen %d != %d)", generation, self._generation)
                return

            self._test_timer = None
            self._transition(LightingState.CHARGED, "self-test complete")
            self._emit(
                NotificationKind.TEST_COMPLETED,
                "Test Complete",
                "Emergency light system is fully operational.",
            )

    def abort_test(self) -> CommandResult:
        with self._command():
            if self._state != LightingState.TESTING:
                return self._fail(
                    LightingError.NOT_TESTING,
                    f"No self-test in progress (system is {self._state.value}).",
                )
            self._cancel_test_timer()
            self._transition(LightingState.CHARGED, "self-test aborted")
            self._emit(NotificationKind.TEST_ABORTED, "Test Aborted", "Self-test cancelled.")
            return self._ok("Self-test cancelled.")

    def power_off(self) -> CommandResult:
        with self._command():
            if self._state != LightingState.CHARGED:
                return self._fail(
                    LightingError.NOT_CHARGED,
                    f"Cannot power off while system is {self._state.value}.",
                )
            self._transition(LightingState.OFF, "The system has been manually deactivated.")
            return self._ok("Emergency Lights Powered Off")

    def power_on(self) -> CommandResult:
        with self._command():
            if self._state != LightingState.OFF:
                return self._fail(
                    LightingError.NOT_OFF,
                    f"System is already on ({self._state.value}).",
                )
            self._transition(LightingState.CHARGED, "The system is now active and charging.")
            return self._ok("Emergency Lights Powered On")

    def report_fault(self, reason: str = "") -> CommandResult:
        """External fault injection. Aborts a running self-test."""
        with self._command():
            self._cancel_test_timer()
            self._fault_reason = reason or None
            self._transition(LightingState.FAULT, reason or "fault reported")
            return self._ok(f"System Fault Detected{': ' + reason if reason else ''}")

    def clear_fault(self) -> CommandResult:
        with self._command():
            if self._state != LightingState.FAULT:
                return self._fail(
                    LightingError.NOT_FAULTED,
                    f"No fault to clear (system is {self._state.value}).",
                )
            self._fault_reason = None
            self._transition(LightingState.CHARGED, "fault cleared")
            return self._ok("Fault cleared")

    def set_connectivity(self, online: bool) -> CommandResult:
        with self._command():
            connectivity = Connectivity.ONLINE if online else Connectivity.OFFLINE
            if connectivity != self._connectivity:
                self._connectivity = connectivity
                self._emit(
                    NotificationKind.CONNECTIVITY_CHANGED,
                    "System Network",
                    connectivity.value.capitalize(),
                    connectivity=connectivity.value,
                )
            return self._ok(f"Connectivity {connectivity.value}")

    # =========================================================================
    # Internal
    # =========================================================================

    def _transition(self, new_state: LightingState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        self._generation += 1
        if new_state != LightingState.TESTING:
            self._cancel_test_timer()

        logger.info("[LIGHTING] %s -> %s (%s)", old_state.value, new_state.value, reason)
        self._emit(
            NotificationKind.LIGHTING_STATE_CHANGED,
            LIGHTING_STATE_LABELS[new_state],
            reason,
            from_state=old_state.value,
            state=new_state.value,
            label=LIGHTING_STATE_LABELS[new_state],
            charge_percent=self._charge,
        )

    def _cancel_test_timer(self) -> None:
        if self._test_timer is not None:
            self.scheduler.cancel(self._test_timer)
            self._test_timer = None

    def _emit(self, kind: NotificationKind, title: str, description: str = "", **payload) -> None:
        if self.notify is None:
            return
        self._outbox.append(Notification(
            kind=kind,
            source=NotificationSource.LIGHTING,
            title=title,
            description=description,
            timestamp=self.clock.now(),
            payload=payload,
        ))

    def _deliver(self, pending: list[Notification]) -> None:
        for notification in pending:
            self.notify(notification)
