"""
Fire Panel - command surface for both state machines

Wires a shared clock, timer scheduler and notification manager into the
suppression and lighting state machines, and exposes the inbound command
set and queryable snapshots used by the API layer and tests.
"""

import logging
from typing import Any, Dict, Optional

from ..config import PanelConfig
from ..domain.enums import ActuatorKind, ResourceKind
from ..domain.models import (
    AuditEntry,
    AuthorizationStatus,
    CommandResult,
    LightingStatus,
    ReserveSnapshot,
    SuppressionSystemState,
)
from .auth_gate import AuthorizationGate, CredentialVerifier, StaticCredentialVerifier
from .lighting_sm import LightingStateMachine
from .notifications import LoggingChannel, MemoryChannel, NotificationManager
from .scheduler import SimulatedClock, TimerScheduler
from .suppression_sm import SuppressionStateMachine


logger = logging.getLogger(__name__)


class FirePanel:
    """Suppression + emergency lighting control plane.

    The two machines share only the clock and the notification manager.
    """

    def __init__(
        self,
        config: PanelConfig,
        clock: Optional[SimulatedClock] = None,
        verifier: Optional[CredentialVerifier] = None,
        notifications: Optional[NotificationManager] = None,
    ):
        self.config = config
        self.clock = clock or SimulatedClock()
        self.scheduler = TimerScheduler(self.clock)

        if notifications is None:
            notifications = NotificationManager()
            notifications.register_channel(
                MemoryChannel(max_items=config.notification_history)
            )
            notifications.register_channel(LoggingChannel())
        self.notifications = notifications

        self.gate = AuthorizationGate(
            verifier or StaticCredentialVerifier(config.primary_secret, config.secondary_code),
            clock=self.clock,
        )
        self.suppression = SuppressionStateMachine(
            gate=self.gate,
            capacities=config.reserves.capacities(),
            clock=self.clock,
            notify=self.notifications.notify,
            audit_max_entries=config.audit_max_entries,
        )
        self.lighting = LightingStateMachine(
            scheduler=self.scheduler,
            config=config.lighting,
            notify=self.notifications.notify,
        )

        logger.info("[PANEL] Fire panel initialized")

    # =========================================================================
    # Suppression commands
    # =========================================================================

    def request_arm_toggle(self, target: bool) -> CommandResult:
        return self.suppression.request_arm_toggle(target)

    def request_power_toggle(self, target: bool) -> CommandResult:
        return self.suppression.request_power_toggle(target)

    def submit_primary(self, secret: str) -> CommandResult:
        return self.suppression.submit_primary(secret)

    def submit_secondary(self, code: str) -> CommandResult:
        return self.suppression.submit_secondary(code)

    def complete_authorization(self, primary: str, secondary: str) -> CommandResult:
        return self.suppression.complete_authorization(primary, secondary)

    def cancel_authorization(self) -> CommandResult:
        return self.suppression.cancel_authorization()

    def fire_actuator(self, kind: ActuatorKind) -> CommandResult:
        return self.suppression.fire_actuator(kind)

    def refill_reserve(self, kind: ResourceKind) -> CommandResult:
        return self.suppression.refill_reserve(kind)

    # =========================================================================
    # Lighting commands
    # =========================================================================

    def start_test(self) -> CommandResult:
        return self.lighting.start_test()

    def abort_test(self) -> CommandResult:
        return self.lighting.abort_test()

    def power_on_lights(self) -> CommandResult:
        return self.lighting.power_on()

    def power_off_lights(self) -> CommandResult:
        return self.lighting.power_off()

    def set_mains_lost(self, lost: bool) -> CommandResult:
        return self.lighting.set_mains_lost(lost)

    def report_fault(self, reason: str = "") -> CommandResult:
        return self.lighting.report_fault(reason)

    def clear_fault(self) -> CommandResult:
        return self.lighting.clear_fault()

    def set_connectivity(self, online: bool) -> CommandResult:
        return self.lighting.set_connectivity(online)

    def tick(self, elapsed_sec: float) -> int:
        """Advance panel time. Returns the number of timers fired."""
        return self.lighting.tick(elapsed_sec)

    # =========================================================================
    # Snapshots
    # =========================================================================

    def suppression_status(self) -> SuppressionSystemState:
        return self.suppression.status()

    def reserve_levels(self) -> list[ReserveSnapshot]:
        return self.suppression.reserve_levels()

    def audit_log(self, limit: Optional[int] = None) -> list[AuditEntry]:
        return self.suppression.audit_log(limit)

    def lighting_status(self) -> LightingStatus:
        return self.lighting.status()

    def authorization_status(self) -> AuthorizationStatus:
        return self.suppression.authorization_status()

    def get_status(self) -> Dict[str, Any]:
        """Combined snapshot for dashboards."""
        return {
            "suppression": self.suppression_status().model_dump(mode="json"),
            "reserves": [r.model_dump(mode="json") for r in self.reserve_levels()],
            "authorization": self.authorization_status().model_dump(mode="json"),
            "lighting": self.lighting_status().model_dump(mode="json"),
            "clock": self.clock.now().isoformat(),
            "pending_timers": len(self.scheduler.pending()),
        }
