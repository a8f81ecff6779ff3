"""Fire Panel Services"""

from .scheduler import SimulatedClock, TimerHandle, TimerScheduler
from .reserve_tracker import ReserveTracker
from .audit_log import AuditLog
from .auth_gate import (
    AuthorizationGate,
    CredentialVerifier,
    StaticCredentialVerifier,
)
from .notifications import (
    NotificationChannel,
    MemoryChannel,
    CallbackChannel,
    LoggingChannel,
    NotificationManager,
)
from .suppression_sm import SuppressionStateMachine
from .lighting_sm import LightingStateMachine
from .panel import FirePanel

__all__ = [
    # Time
    'SimulatedClock',
    'TimerHandle',
    'TimerScheduler',
    # Reserves & audit
    'ReserveTracker',
    'AuditLog',
    # Authorization
    'AuthorizationGate',
    'CredentialVerifier',
    'StaticCredentialVerifier',
    # Notifications
    'NotificationChannel',
    'MemoryChannel',
    'CallbackChannel',
    'LoggingChannel',
    'NotificationManager',
    # State machines
    'SuppressionStateMachine',
    'LightingStateMachine',
    'FirePanel',
]
