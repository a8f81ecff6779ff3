"""
Authorization Gate - two-factor commit protocol

IDLE → AWAITING_PRIMARY → AWAITING_SECONDARY → (committed) IDLE
                                             ↘ cancel() → IDLE

The gate only verifies; it knows nothing about what a PendingAction means.
The caller applies the action returned by a successful submit_secondary().

NOTE: retries are unlimited (no lockout or rate limiting). A real deployment
must add attempt limits before exposing the gate to untrusted input.
"""

import hmac
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..domain.enums import GateError, GateStage
from ..domain.models import (
    AuthorizationSession,
    AuthorizationStatus,
    CommandResult,
    PendingAction,
)
from .scheduler import SimulatedClock


logger = logging.getLogger(__name__)


INVALID_PRIMARY_MESSAGE = "Incorrect password. Please try again."
INVALID_SECONDARY_MESSAGE = "Incorrect OTP. Please try again."


class CredentialVerifier(ABC):
    """Pluggable check for both authorization factors."""

    @abstractmethod
    def verify_primary(self, secret: str) -> bool:
        ...

    @abstractmethod
    def verify_secondary(self, code: str) -> bool:
        ...


class StaticCredentialVerifier(CredentialVerifier):
    """Compares against configured values in constant time."""

    def __init__(self, primary_secret: str, secondary_code: str):
        if not primary_secret or not secondary_code:
            raise ValueError("Both credentials must be non-empty")
        self._primary = primary_secret.encode()
        self._secondary = secondary_code.encode()

    def verify_primary(self, secret: str) -> bool:
        return hmac.compare_digest(secret.encode(), self._primary)

    def verify_secondary(self, code: str) -> bool:
        return hmac.compare_digest(code.encode(), self._secondary)


class AuthorizationGate:
    """Holds at most one AuthorizationSession."""

    def __init__(self, verifier: CredentialVerifier, clock: Optional[SimulatedClock] = None):
        self.verifier = verifier
        self.clock = clock or SimulatedClock()
        self._session: Optional[AuthorizationSession] = None

    def _ok(self, reason: str, **kwargs) -> CommandResult:
        return CommandResult.ok(reason, timestamp=self.clock.now(), **kwargs)

    def _fail(self, error: GateError, reason: str, **kwargs) -> CommandResult:
        return CommandResult.fail(error, reason, timestamp=self.clock.now(), **kwargs)

    @property
    def stage(self) -> GateStage:
        return self._session.stage if self._session else GateStage.IDLE

    @property
    def session(self) -> Optional[AuthorizationSession]:
        return self._session

    @property
    def pending_action(self) -> Optional[PendingAction]:
        return self._session.action if self._session else None

    def is_open(self) -> bool:
        return self._session is not None

    def begin_gate(self, action: PendingAction) -> CommandResult:
        """Open a session for action. Fails if one is already open."""
        if self._session is not None:
            return self._fail(
                GateError.ALREADY_PENDING,
                f"Another action is awaiting authorization ({self._session.action.describe()})",
                action=self._session.action,
            )

        self._session = AuthorizationSession(action=action)
        logger.info("[GATE] Authorization requested: %s", action.describe())
        return self._ok(
            "Admin authentication required. Enter your password.",
            action=action,
        )

    def submit_primary(self, secret: str) -> CommandResult:
        session = self._session
        if session is None:
            return self._fail(GateError.NO_SESSION, "No action is awaiting authorization")
        if session.stage != GateStage.AWAITING_PRIMARY:
            return self._fail(
                GateError.WRONG_STAGE,
                "Password already accepted. Enter the one-time password.",
                action=session.action,
            )

        session.primary_attempts += 1
        if not self.verifier.verify_primary(secret):
            session.primary_attempt_error = INVALID_PRIMARY_MESSAGE
            logger.warning("[GATE] Invalid password (attempt %d)", session.primary_attempts)
            return self._fail(
                GateError.INVALID_PRIMARY,
                INVALID_PRIMARY_MESSAGE,
                action=session.action,
            )

        session.primary_attempt_error = None
        session.stage = GateStage.AWAITING_SECONDARY
        logger.info("[GATE] Password accepted, awaiting one-time password")
        return self._ok(
            "Enter the one-time password sent to your registered device.",
            action=session.action,
        )

    def submit_secondary(self, code: str) -> CommandResult:
        """On success the session is closed and result.action is returned."""
        session = self._session
        if session is None:
            return self._fail(GateError.NO_SESSION, "No action is awaiting authorization")
        if session.stage != GateStage.AWAITING_SECONDARY:
            return self._fail(
                GateError.WRONG_STAGE,
                "Enter your password before the one-time password.",
                action=session.action,
            )

        session.secondary_attempts += 1
        if not self.verifier.verify_secondary(code):
            session.secondary_attempt_error = INVALID_SECONDARY_MESSAGE
            logger.warning("[GATE] Invalid one-time password (attempt %d)", session.secondary_attempts)
            return self._fail(
                GateError.INVALID_SECONDARY,
                INVALID_SECONDARY_MESSAGE,
                action=session.action,
            )

        action = session.action
        self._session = None
        logger.info("[GATE] Authorized: %s", action.describe())
        return self._ok(f"Authorized: {action.describe()}", action=action)

    def cancel(self) -> Optional[PendingAction]:
        """Discard any open session. Returns the dropped action, if any."""
        session, self._session = self._session, None
        if session is not None:
            logger.info("[GATE] Authorization cancelled: %s", session.action.describe())
            return session.action
        return None

    def get_status(self) -> AuthorizationStatus:
        session = self._session
        if session is None:
            return AuthorizationStatus(stage=GateStage.IDLE)
        return AuthorizationStatus(
            stage=session.stage,
            pending_action=session.action.action_type,
            target_state=session.action.target_state,
            primary_attempt_error=session.primary_attempt_error,
            secondary_attempt_error=session.secondary_attempt_error,
        )
