"""
Fire Panel Core Enums

This module defines all core enumerations used throughout the panel.
Values are part of the notification/API ABI and must stay stable.
"""

from enum import Enum


# =============================================================================
# Suppression: reserves & actuators
# =============================================================================

class ResourceKind(str, Enum):
    """Depletable consumable held in a reserve tank."""
    WATER = "water"
    FOAM = "foam"


class ActuatorKind(str, Enum):
    """Suppression actuators that can be fired from the panel."""
    WATER_SPRINKLERS = "water_sprinklers"
    FOAM_CONCENTRATE = "foam_concentrate"
    COMBINATION_GUN = "combination_gun"


# =============================================================================
# Authorization
# =============================================================================

class GateStage(str, Enum):
    """Authorization gate stage."""
    IDLE = "idle"
    AWAITING_PRIMARY = "awaiting_primary"       # Password
    AWAITING_SECONDARY = "awaiting_secondary"   # One-time code


class PendingActionType(str, Enum):
    """Gated transitions awaiting authorization."""
    TOGGLE_SYSTEM_ARMED = "toggle_system_armed"
    TOGGLE_POWER = "toggle_power"


# =============================================================================
# Emergency lighting
# =============================================================================

class LightingState(str, Enum):
    """Emergency lighting states."""
    CHARGED = "charged"
    ACTIVE = "active"       # Mains lost, running on battery
    TESTING = "testing"     # Self-test in progress
    FAULT = "fault"         # Externally reported fault
    OFF = "off"             # Manually powered off


LIGHTING_STATE_LABELS = {
    LightingState.CHARGED: "Fully Charged & Ready",
    LightingState.ACTIVE: "Active - Building Power Lost",
    LightingState.TESTING: "System Self-Test in Progress...",
    LightingState.FAULT: "System Fault Detected",
    LightingState.OFF: "System Manually Off",
}


class Connectivity(str, Enum):
    """Lighting network connectivity."""
    ONLINE = "online"
    OFFLINE = "offline"


# =============================================================================
# Notifications
# =============================================================================

class NotificationKind(str, Enum):
    """Outbound notification kinds."""
    # Suppression
    SYSTEM_ARMED = "system_armed"
    SYSTEM_DISARMED = "system_disarmed"
    POWER_CUT = "power_cut"
    POWER_RESTORED = "power_restored"
    AUTO_POWER_CUT = "auto_power_cut"
    ACTUATOR_FIRED = "actuator_fired"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    RESERVE_REFILLED = "reserve_refilled"
    AUTHORIZATION_FAILED = "authorization_failed"

    # Lighting
    TEST_STARTED = "test_started"
    TEST_COMPLETED = "test_completed"
    TEST_BLOCKED = "test_blocked"
    TEST_ABORTED = "test_aborted"
    LIGHTING_STATE_CHANGED = "lighting_state_changed"
    CONNECTIVITY_CHANGED = "connectivity_changed"


class NotificationSource(str, Enum):
    """Which state machine emitted a notification."""
    SUPPRESSION = "suppression"
    LIGHTING = "lighting"


# =============================================================================
# Error kinds (machine-checkable)
# =============================================================================

class ReserveError(str, Enum):
    EXHAUSTED = "exhausted"


class GateError(str, Enum):
    ALREADY_PENDING = "already_pending"
    INVALID_PRIMARY = "invalid_primary"
    INVALID_SECONDARY = "invalid_secondary"
    WRONG_STAGE = "wrong_stage"     # Secondary submitted before primary
    NO_SESSION = "no_session"


class FireError(str, Enum):
    SYSTEM_DISARMED = "system_disarmed"
    POWER_OFF = "power_off"
    RESOURCE_EXHAUSTED = "resource_exhausted"


class LightingError(str, Enum):
    NOT_CHARGED = "not_charged"
    NOT_OFF = "not_off"
    NOT_TESTING = "not_testing"
    NOT_FAULTED = "not_faulted"
