"""
Fire Panel Core Models

Data models for reserves, audit entries, authorization sessions, status
snapshots and notifications. Snapshots and notifications use Pydantic for
validation and serialization; mutable internals are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    ActuatorKind,
    Connectivity,
    GateStage,
    LightingState,
    NotificationKind,
    NotificationSource,
    PendingActionType,
    ResourceKind,
)


class InvariantViolation(RuntimeError):
    """Raised when internal state would leave its valid range.

    These are programming errors, never user-facing refusals.
    """


# =============================================================================
# Actuators
# =============================================================================

@dataclass(frozen=True)
class ActuatorProfile:
    """Fixed firing profile for an actuator."""
    kind: ActuatorKind
    display_name: str
    pressure_label: str
    water_liters: float = 0
    foam_liters: float = 0

    def requirements(self) -> dict[ResourceKind, float]:
        """Liters drawn per resource, omitting unused ones."""
        needs = {}
        if self.water_liters > 0:
            needs[ResourceKind.WATER] = self.water_liters
        if self.foam_liters > 0:
            needs[ResourceKind.FOAM] = self.foam_liters
        return needs


ACTUATOR_PROFILES: dict[ActuatorKind, ActuatorProfile] = {
    ActuatorKind.WATER_SPRINKLERS: ActuatorProfile(
        kind=ActuatorKind.WATER_SPRINKLERS,
        display_name="Water Sprinklers",
        pressure_label="150 PSI",
        water_liters=500,
    ),
    ActuatorKind.FOAM_CONCENTRATE: ActuatorProfile(
        kind=ActuatorKind.FOAM_CONCENTRATE,
        display_name="Foam Concentrate",
        pressure_label="200 PSI",
        foam_liters=200,
    ),
    ActuatorKind.COMBINATION_GUN: ActuatorProfile(
        kind=ActuatorKind.COMBINATION_GUN,
        display_name="Combination Gun",
        pressure_label="300 PSI",
        water_liters=100,
        foam_liters=100,
    ),
}


# =============================================================================
# Reserves
# =============================================================================

@dataclass
class ReserveLevel:
    """A consumable reserve. Liters are authoritative; percent is derived."""
    kind: ResourceKind
    capacity_liters: float
    liters_remaining: Optional[float] = None

    def __post_init__(self):
        if self.liters_remaining is None:
            self.liters_remaining = self.capacity_liters

    @property
    def percent_remaining(self) -> float:
        return self.liters_remaining * 100 / self.capacity_liters

    @property
    def is_exhausted(self) -> bool:
        return self.liters_remaining <= 0


@dataclass(frozen=True)
class DrainOutcome:
    """Result of a successful drain."""
    kind: ResourceKind
    liters: float
    percent_before: float
    percent_remaining: float


class ReserveSnapshot(BaseModel):
    """Read-only view of one reserve."""
    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    capacity_liters: float
    percent_remaining: float = Field(ge=0.0, le=100.0)
    liters_remaining: float = Field(ge=0.0)


# =============================================================================
# Audit
# =============================================================================

class AuditEntry(BaseModel):
    """Immutable audit trail entry."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    message: str

    @property
    def time(self) -> str:
        """Wall-clock time, 24-hour, second precision.

        Rendered in the timestamp's own zone. The panel clock runs in UTC,
        so audit times read as UTC unless the clock is started in another
        zone (SimulatedClock(start=...) with a local tzinfo).
        """
        return self.timestamp.strftime("%H:%M:%S")

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
        }


# =============================================================================
# Authorization
# =============================================================================

@dataclass(frozen=True)
class PendingAction:
    """A gated transition awaiting authorization."""
    action_type: PendingActionType
    target_state: bool

    @classmethod
    def toggle_system_armed(cls, target_state: bool) -> "PendingAction":
        return cls(PendingActionType.TOGGLE_SYSTEM_ARMED, target_state)

    @classmethod
    def toggle_power(cls, target_state: bool) -> "PendingAction":
        return cls(PendingActionType.TOGGLE_POWER, target_state)

    def describe(self) -> str:
        if self.action_type == PendingActionType.TOGGLE_SYSTEM_ARMED:
            return f"{'arm' if self.target_state else 'disarm'} system"
        return f"{'restore' if self.target_state else 'cut'} non-essential power"


@dataclass
class AuthorizationSession:
    """Open two-factor session for one pending action."""
    action: PendingAction
    stage: GateStage = GateStage.AWAITING_PRIMARY
    primary_attempt_error: Optional[str] = None
    secondary_attempt_error: Optional[str] = None
    primary_attempts: int = 0
    secondary_attempts: int = 0


class AuthorizationStatus(BaseModel):
    """Read-only view of the gate."""
    stage: GateStage
    pending_action: Optional[PendingActionType] = None
    target_state: Optional[bool] = None
    primary_attempt_error: Optional[str] = None
    secondary_attempt_error: Optional[str] = None


# =============================================================================
# Status snapshots
# =============================================================================

class SuppressionSystemState(BaseModel):
    """Armed/power snapshot of the suppression system."""
    model_config = ConfigDict(frozen=True)

    armed: bool = True
    power_on: bool = True

    @property
    def can_fire(self) -> bool:
        return self.armed and self.power_on


class LightingStatus(BaseModel):
    """Emergency lighting snapshot."""
    model_config = ConfigDict(frozen=True)

    state: LightingState
    label: str
    charge_percent: float = Field(ge=0.0, le=100.0)
    connectivity: Connectivity
    mains_lost: bool = False
    test_remaining_sec: Optional[float] = None
    fault_reason: Optional[str] = None


# =============================================================================
# Notifications
# =============================================================================

class Notification(BaseModel):
    """Structured event delivered to notification channels."""
    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    source: NotificationSource
    title: str
    description: str = ""
    timestamp: datetime
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# Command results
# =============================================================================

@dataclass
class CommandResult:
    """Outcome of a panel command.

    Refusals are returned, never raised: `error` carries the machine-checkable
    kind and `reason` a display string. The state machines stamp results
    from the panel clock; the wall-clock default only covers results built
    outside a machine.
    """
    success: bool
    reason: str
    error: Optional[Enum] = None
    action: Optional[PendingAction] = None
    resource: Optional[ResourceKind] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, reason: str, **kwargs) -> "CommandResult":
        return cls(success=True, reason=reason, **kwargs)

    @classmethod
    def fail(cls, error: Enum, reason: str, **kwargs) -> "CommandResult":
        return cls(success=False, reason=reason, error=error, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "reason": self.reason,
            "error": self.error.value if self.error else None,
            "action": self.action.action_type.value if self.action else None,
            "target_state": self.action.target_state if self.action else None,
            "resource": self.resource.value if self.resource else None,
            "timestamp": self.timestamp.isoformat(),
        }
