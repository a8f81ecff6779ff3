"""Fire Panel Domain Models"""

from .enums import (
    # Suppression
    ResourceKind,
    ActuatorKind,

    # Authorization
    GateStage,
    PendingActionType,

    # Lighting
    LightingState,
    LIGHTING_STATE_LABELS,
    Connectivity,

    # Notifications
    NotificationKind,
    NotificationSource,

    # Errors
    ReserveError,
    GateError,
    FireError,
    LightingError,
)

from .models import (
    InvariantViolation,
    ActuatorProfile,
    ACTUATOR_PROFILES,
    ReserveLevel,
    DrainOutcome,
    ReserveSnapshot,
    AuditEntry,
    PendingAction,
    AuthorizationSession,
    AuthorizationStatus,
    SuppressionSystemState,
    LightingStatus,
    Notification,
    CommandResult,
)

__all__ = [
    # Enums
    'ResourceKind',
    'ActuatorKind',
    'GateStage',
    'PendingActionType',
    'LightingState',
    'LIGHTING_STATE_LABELS',
    'Connectivity',
    'NotificationKind',
    'NotificationSource',
    'ReserveError',
    'GateError',
    'FireError',
    'LightingError',

    # Models
    'InvariantViolation',
    'ActuatorProfile',
    'ACTUATOR_PROFILES',
    'ReserveLevel',
    'DrainOutcome',
    'ReserveSnapshot',
    'AuditEntry',
    'PendingAction',
    'AuthorizationSession',
    'AuthorizationStatus',
    'SuppressionSystemState',
    'LightingStatus',
    'Notification',
    'CommandResult',
]
