"""
Suppression Control State Machine

Owns armed × power_on state, the reserve tracker and the audit log.

Rules:
1. armed / power_on change only after the Authorization Gate commits
2. Firing requires armed AND power_on
3. Multi-resource actuators check every reserve before draining any
4. A successful fire cuts non-essential power automatically (no auth)

Notifications raised during a command are queued and delivered after the
command has finished and released the machine lock. A subscriber that
issues a command from its callback sees the completed state (e.g. power
already cut after a fire).
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Optional

from ..domain.enums import (
    ActuatorKind,
    FireError,
    GateError,
    GateStage,
    NotificationKind,
    NotificationSource,
    PendingActionType,
    ReserveError,
    ResourceKind,
)
from ..domain.models import (
    ACTUATOR_PROFILES,
    AuditEntry,
    AuthorizationStatus,
    CommandResult,
    InvariantViolation,
    Notification,
    PendingAction,
    ReserveSnapshot,
    SuppressionSystemState,
)
from .audit_log import AuditLog
from .auth_gate import AuthorizationGate
from .reserve_tracker import ReserveTracker
from .scheduler import SimulatedClock


logger = logging.getLogger(__name__)


AUTO_POWER_CUT_MESSAGE = "Auto Power-Cut Protocol initiated due to suppression activation."


class SuppressionStateMachine:
    """Suppression control state machine.

    Every public command takes the machine lock, so commands run to
    completion one at a time. The lock is not reentrant: nothing inside a
    command calls back out to subscribers while it is held.
    """

    def __init__(
        self,
        gate: AuthorizationGate,
        capacities: dict[ResourceKind, float],
        clock: Optional[SimulatedClock] = None,
        notify: Optional[Callable[[Notification], None]] = None,
        audit_max_entries: Optional[int] = None,
    ):
        self.gate = gate
        self.clock = clock or SimulatedClock()
        self.gate.clock = self.clock
        self.notify = notify

        self.reserves = ReserveTracker(capacities)
        self.audit = AuditLog(self.clock, max_entries=audit_max_entries)

        self._armed = True
        self._power_on = True
        self._lock = threading.Lock()
        self._outbox: list[Notification] = []

    @contextmanager
    def _command(self):
        """Run a command under the lock, then deliver its notifications."""
        with self._lock:
            try:
                yield
            finally:
                pending, self._outbox = self._outbox, []
        self._deliver(pending)

    def _ok(self, reason: str, **kwargs) -> CommandResult:
        return CommandResult.ok(reason, timestamp=self.clock.now(), **kwargs)

    def _fail(self, error: FireError, reason: str, **kwargs) -> CommandResult:
        return CommandResult.fail(error, reason, timestamp=self.clock.now(), **kwargs)

    # =========================================================================
    # State Queries
    # =========================================================================

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def power_on(self) -> bool:
        return self._power_on

    def status(self) -> SuppressionSystemState:
        with self._lock:
            return SuppressionSystemState(armed=self._armed, power_on=self._power_on)

    def reserve_levels(self) -> list[ReserveSnapshot]:
        with self._lock:
            return self.reserves.levels()

    def audit_log(self, limit: Optional[int] = None) -> list[AuditEntry]:
        with self._lock:
            return self.audit.entries(limit)

    def authorization_status(self) -> AuthorizationStatus:
        with self._lock:
            return self.gate.get_status()

    # =========================================================================
    # Gated commands
    # =========================================================================

    def request_arm_toggle(self, target: bool) -> CommandResult:
        with self._command():
            return self.gate.begin_gate(PendingAction.toggle_system_armed(target))

    def request_power_toggle(self, target: bool) -> CommandResult:
        with self._command():
            return self.gate.begin_gate(PendingAction.toggle_power(target))

    def submit_primary(self, secret: str) -> CommandResult:
        with self._command():
            return self._submit_primary(secret)

    def submit_secondary(self, code: str) -> CommandResult:
        """Second factor. On success the pending action is applied."""
        with self._command():
            return self._submit_secondary(code)

    def complete_authorization(self, primary: str, secondary: str) -> CommandResult:
        """Drive the remaining gate stages in one call.

        If the password was already accepted, only the one-time password
        is checked.
        """
        with self._command():
            if self.gate.stage != GateStage.AWAITING_SECONDARY:
                result = self._submit_primary(primary)
                if not result.success:
                    return result
            return self._submit_secondary(secondary)

    def cancel_authorization(self) -> CommandResult:
        with self._command():
            dropped = self.gate.cancel()
            if dropped is None:
                return self._ok("No action was awaiting authorization")
            return self._ok(f"Cancelled: {dropped.describe()}", action=dropped)

    def _submit_primary(self, secret: str) -> CommandResult:
        result = self.gate.submit_primary(secret)
        self._notify_auth_failure(result)
        return result

    def _submit_secondary(self, code: str) -> CommandResult:
        result = self.gate.submit_secondary(code)
        if not result.success:
            self._notify_auth_failure(result)
            return result
        return self._apply(result.action)

    def _apply(self, action: Optional[PendingAction]) -> CommandResult:
        if action is None:
            raise InvariantViolation("Gate committed without a pending action")

        target = action.target_state
        if action.action_type == PendingActionType.TOGGLE_SYSTEM_ARMED:
            self._armed = target
            message = f"System has been {'activated' if target else 'deactivated'}"
            self.audit.record(message)
            self._emit(
                NotificationKind.SYSTEM_ARMED if target else NotificationKind.SYSTEM_DISARMED,
                message,
                f"The suppression system is now {'online' if target else 'offline'}.",
                armed=target,
            )
        elif action.action_type == PendingActionType.TOGGLE_POWER:
            self._power_on = target
            message = f"Non-essential power {'restored' if target else 'cut'}"
            self.audit.record(message)
            self._emit(
                NotificationKind.POWER_RESTORED if target else NotificationKind.POWER_CUT,
                f"Power has been turned {'ON' if target else 'OFF'}",
                f"Non-essential power is now {'active' if target else 'inactive'}.",
                power_on=target,
                automatic=False,
            )
        else:
            raise InvariantViolation(f"Unknown pending action {action.action_type}")

        logger.info("[SUPPRESSION] %s (armed=%s, power_on=%s)", message, self._armed, self._power_on)
        return self._ok(message, action=action)

    # =========================================================================
    # Actuators
    # =========================================================================

    def fire_actuator(self, kind: ActuatorKind) -> CommandResult:
        """Fire an actuator, draining its reserves and cutting power."""
        with self._command():
            profile = ACTUATOR_PROFILES[kind]

            if not self._armed:
                logger.info("[SUPPRESSION] Refused %s: system disarmed", profile.display_name)
                return self._fail(
                    FireError.SYSTEM_DISARMED,
                    "Cannot activate suppression system while it is turned off.",
                )

            if not self._power_on:
                logger.info("[SUPPRESSION] Refused %s: power off", profile.display_name)
                return self._fail(
                    FireError.POWER_OFF,
                    "Cannot activate suppression system while non-essential power is off.",
                )

            needs = profile.requirements()

            # All reserves are checked before any is drained
            for resource in needs:
                if not self.reserves.can_drain(resource):
                    name = resource.value.capitalize()
                    logger.warning("[SUPPRESSION] Refused %s: %s depleted", profile.display_name, resource.value)
                    self._emit(
                        NotificationKind.RESOURCE_EXHAUSTED,
                        f"{name} Depleted",
                        f"{name} reserve is empty.",
                        resource=resource.value,
                        actuator=kind.value,
                    )
                    return self._fail(
                        FireError.RESOURCE_EXHAUSTED,
                        f"{name} reserve is empty.",
                        resource=resource,
                    )

            used = []
            for resource, liters in needs.items():
                outcome = self.reserves.drain(resource, liters)
                if outcome is ReserveError.EXHAUSTED:
                    raise InvariantViolation(f"{resource.value} drained after availability check")
                used.append(f"{liters:g}L {resource.value.capitalize()} used.")

            message = f"{profile.display_name} activated at {profile.pressure_label}. {' '.join(used)}"
            self.audit.record(message)
            logger.info("[SUPPRESSION] %s", message)
            self._emit(
                NotificationKind.ACTUATOR_FIRED,
                "Suppression System Override",
                f"Manually activating {profile.display_name}.",
                actuator=kind.value,
                pressure=profile.pressure_label,
                reserves=self.reserves.snapshot(),
            )

            if self._power_on:
                self._auto_power_cut()

            return self._ok(message)

    def _auto_power_cut(self) -> None:
        """System-triggered power cut after a fire."""
        self._power_on = False
        self.audit.record(AUTO_POWER_CUT_MESSAGE)
        logger.warning("[SUPPRESSION] %s", AUTO_POWER_CUT_MESSAGE)
        self._emit(
            NotificationKind.AUTO_POWER_CUT,
            "Auto Power-Cut Activated",
            "Non-essential power has been automatically cut.",
            power_on=False,
            automatic=True,
        )

    # =========================================================================
    # Maintenance
    # =========================================================================

    def refill_reserve(self, kind: ResourceKind) -> CommandResult:
        with self._command():
            before = self.reserves.refill(kind)
            name = kind.value.capitalize()
            message = f"{name} reserve refilled ({before:g}% -> 100%)"
            self.audit.record(message)
            self._emit(
                NotificationKind.RESERVE_REFILLED,
                f"{name} Reserve Refilled",
                f"{name} reserve is back to full capacity.",
                resource=kind.value,
                percent_before=before,
            )
            return self._ok(message, resource=kind)

    # =========================================================================
    # Notifications
    # =========================================================================

    def _notify_auth_failure(self, result: CommandResult) -> None:
        if result.error not in (GateError.INVALID_PRIMARY, GateError.INVALID_SECONDARY):
            return
        self._emit(
            NotificationKind.AUTHORIZATION_FAILED,
            "Authorization Failed",
            result.reason,
            error=result.error.value,
        )

    def _emit(self, kind: NotificationKind, title: str, description: str = "", **payload) -> None:
        """Queue a notification for delivery once the command finishes."""
        if self.notify is None:
            return
        self._outbox.append(Notification(
            kind=kind,
            source=NotificationSource.SUPPRESSION,
            title=title,
            description=description,
            timestamp=self.clock.now(),
            payload=payload,
        ))

    def _deliver(self, pending: list[Notification]) -> None:
        for notification in pending:
            self.notify(notification)
