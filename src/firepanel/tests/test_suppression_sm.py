"""
Tests for SuppressionStateMachine
"""

import pytest

from firepanel.domain.enums import (
    ActuatorKind,
    FireError,
    GateError,
    GateStage,
    NotificationKind,
    ResourceKind,
)
from firepanel.services.auth_gate import AuthorizationGate, StaticCredentialVerifier
from firepanel.services.notifications import CallbackChannel
from firepanel.services.suppression_sm import AUTO_POWER_CUT_MESSAGE, SuppressionStateMachine

from .conftest import PRIMARY, SECONDARY, authorize


@pytest.fixture
def sm(clock, notifications):
    return SuppressionStateMachine(
        gate=AuthorizationGate(StaticCredentialVerifier(PRIMARY, SECONDARY)),
        capacities={ResourceKind.WATER: 5000, ResourceKind.FOAM: 1000},
        clock=clock,
        notify=notifications.notify,
    )


def restore_power(sm):
    assert sm.request_power_toggle(True).success
    assert authorize(sm).success


def disarm(sm):
    sm.request_arm_toggle(False)
    assert authorize(sm).success


# =============================================================================
# Initial state & snapshots
# =============================================================================

class TestSuppressionInitialState:

    def test_defaults(self, sm):
        status = sm.status()
        assert status.armed is True
        assert status.power_on is True
        assert status.can_fire is True
        assert sm.audit_log() == []

    def test_reserves_start_full(self, sm):
        levels = {r.kind: r.percent_remaining for r in sm.reserve_levels()}
        assert levels == {ResourceKind.WATER: 100, ResourceKind.FOAM: 100}


# =============================================================================
# Gated commands
# =============================================================================

class TestGatedCommands:

    def test_disarm_scenario(self, sm, memory_channel):
        """Wrong password, then full exchange disarms the system."""
        assert sm.request_arm_toggle(False).success

        result = sm.submit_primary("wrong")
        assert result.error == GateError.INVALID_PRIMARY
        assert sm.authorization_status().stage == GateStage.AWAITING_PRIMARY
        assert sm.status().armed is True

        assert sm.submit_primary(PRIMARY).success
        result = sm.submit_secondary(SECONDARY)

        assert result.success
        assert sm.status().armed is False
        assert sm.audit_log()[0].message == "System has been deactivated"
        assert NotificationKind.SYSTEM_DISARMED in memory_channel.kinds()
        assert NotificationKind.AUTHORIZATION_FAILED in memory_channel.kinds()

    def test_arm(self, sm, memory_channel):
        disarm(sm)
        sm.request_arm_toggle(True)
        authorize(sm)

        assert sm.status().armed is True
        assert sm.audit_log()[0].message == "System has been activated"
        assert memory_channel.kinds()[-1] == NotificationKind.SYSTEM_ARMED

    def test_manual_power_cut_and_restore(self, sm, memory_channel):
        sm.request_power_toggle(False)
        authorize(sm)
        assert sm.status().power_on is False
        assert sm.audit_log()[0].message == "Non-essential power cut"

        restore_power(sm)
        assert sm.status().power_on is True
        assert sm.audit_log()[0].message == "Non-essential power restored"

        kinds = memory_channel.kinds()
        assert NotificationKind.POWER_CUT in kinds
        assert NotificationKind.POWER_RESTORED in kinds
        assert NotificationKind.AUTO_POWER_CUT not in kinds

    def test_state_unchanged_until_secondary(self, sm):
        sm.request_arm_toggle(False)
        sm.submit_primary(PRIMARY)
        sm.submit_secondary("bad")

        assert sm.status().armed is True
        assert sm.audit_log() == []

    def test_second_request_already_pending(self, sm):
        sm.request_arm_toggle(False)

        result = sm.request_power_toggle(False)

        assert result.error == GateError.ALREADY_PENDING
        assert sm.status().power_on is True

    def test_cancel_authorization(self, sm):
        sm.request_arm_toggle(False)
        sm.submit_primary(PRIMARY)

        result = sm.cancel_authorization()

        assert result.success
        assert sm.authorization_status().stage == GateStage.IDLE
        assert sm.authorization_status().pending_action is None
        assert sm.submit_secondary(SECONDARY).error == GateError.NO_SESSION
        assert sm.status().armed is True

    def test_complete_authorization_stops_at_bad_primary(self, sm):
        sm.request_arm_toggle(False)

        result = sm.complete_authorization("nope", SECONDARY)

        assert result.error == GateError.INVALID_PRIMARY
        assert sm.status().armed is True

    def test_complete_authorization_after_primary_accepted(self, sm):
        sm.request_arm_toggle(False)
        assert sm.submit_primary(PRIMARY).success

        result = sm.complete_authorization(PRIMARY, SECONDARY)

        assert result.success
        assert sm.status().armed is False
        assert sm.authorization_status().stage == GateStage.IDLE

    def test_results_carry_machine_clock_time(self, sm, clock):
        clock.advance(90)

        assert sm.request_arm_toggle(False).timestamp == clock.now()
        assert sm.submit_primary("wrong").timestamp == clock.now()
        assert sm.cancel_authorization().timestamp == clock.now()

        clock.advance(5)
        assert sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS).timestamp == clock.now()


# =============================================================================
# Actuators
# =============================================================================

class TestFireActuator:

    def test_fire_while_disarmed_is_refused(self, sm):
        disarm(sm)
        audit_before = len(sm.audit_log())

        for kind in ActuatorKind:
            result = sm.fire_actuator(kind)
            assert result.error == FireError.SYSTEM_DISARMED

        assert len(sm.audit_log()) == audit_before
        assert all(r.percent_remaining == 100 for r in sm.reserve_levels())

    def test_fire_while_power_off_is_refused(self, sm):
        sm.request_power_toggle(False)
        authorize(sm)

        result = sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS)

        assert result.error == FireError.POWER_OFF
        assert sm.reserves.level_of(ResourceKind.WATER) == 100

    def test_disarmed_checked_before_power(self, sm):
        sm.request_power_toggle(False)
        authorize(sm)
        disarm(sm)

        assert sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE).error == FireError.SYSTEM_DISARMED

    def test_fire_logs_drains_and_cuts_power(self, sm, memory_channel):
        result = sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS)

        assert result.success
        assert sm.reserves.level_of(ResourceKind.WATER) == 90
        assert sm.reserves.level_of(ResourceKind.FOAM) == 100
        assert sm.status().power_on is False

        messages = [e.message for e in sm.audit_log()]
        assert messages == [
            AUTO_POWER_CUT_MESSAGE,
            "Water Sprinklers activated at 150 PSI. 500L Water used.",
        ]

        kinds = memory_channel.kinds()
        assert kinds.count(NotificationKind.AUTO_POWER_CUT) == 1
        assert kinds.index(NotificationKind.ACTUATOR_FIRED) < kinds.index(NotificationKind.AUTO_POWER_CUT)

    def test_combination_gun_uses_both(self, sm):
        result = sm.fire_actuator(ActuatorKind.COMBINATION_GUN)

        assert result.success
        assert sm.reserves.level_of(ResourceKind.WATER) == 98
        assert sm.reserves.level_of(ResourceKind.FOAM) == 90
        assert sm.audit_log()[1].message == (
            "Combination Gun activated at 300 PSI. 100L Water used. 100L Foam used."
        )

    def test_fire_cannot_repeat_without_power_restore(self, sm):
        sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE)

        assert sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE).error == FireError.POWER_OFF

    def test_water_exhaustion_scenario(self, sm, memory_channel):
        """Ten 500L shots empty the 5000L tank; the eleventh is refused."""
        for shot in range(10):
            if shot:
                restore_power(sm)
            assert sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS).success

        assert sm.reserves.level_of(ResourceKind.WATER) == 0

        restore_power(sm)
        audit_before = len(sm.audit_log())
        result = sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS)

        assert result.error == FireError.RESOURCE_EXHAUSTED
        assert result.resource == ResourceKind.WATER
        assert sm.status().power_on is True
        assert len(sm.audit_log()) == audit_before
        assert memory_channel.notifications[-1].kind == NotificationKind.RESOURCE_EXHAUSTED
        assert memory_channel.notifications[-1].payload["resource"] == "water"

    def test_combination_gun_does_not_drain_water_when_foam_empty(self, sm):
        for shot in range(5):
            if shot:
                restore_power(sm)
            sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE)
        assert sm.reserves.level_of(ResourceKind.FOAM) == 0

        restore_power(sm)
        result = sm.fire_actuator(ActuatorKind.COMBINATION_GUN)

        assert result.error == FireError.RESOURCE_EXHAUSTED
        assert result.resource == ResourceKind.FOAM
        assert sm.reserves.level_of(ResourceKind.WATER) == 100

    def test_partial_availability_allowed(self, sm):
        sm.reserves.drain(ResourceKind.FOAM, 950)

        result = sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE)

        assert result.success
        assert sm.reserves.level_of(ResourceKind.FOAM) == 0

    def test_refill(self, sm, memory_channel):
        sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS)

        result = sm.refill_reserve(ResourceKind.WATER)

        assert result.success
        assert sm.reserves.level_of(ResourceKind.WATER) == 100
        assert sm.audit_log()[0].message == "Water reserve refilled (90% -> 100%)"
        assert memory_channel.kinds()[-1] == NotificationKind.RESERVE_REFILLED

    def test_uneven_capacity_empties_after_exact_shot_count(self, clock):
        """6000L / 500L is exactly twelve shots; the thirteenth is refused."""
        sm = SuppressionStateMachine(
            gate=AuthorizationGate(StaticCredentialVerifier(PRIMARY, SECONDARY)),
            capacities={ResourceKind.WATER: 6000, ResourceKind.FOAM: 1000},
            clock=clock,
        )

        results = []
        for shot in range(14):
            if shot:
                restore_power(sm)
            results.append(sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS))

        assert sum(r.success for r in results) == 12
        assert all(r.error == FireError.RESOURCE_EXHAUSTED for r in results[12:])
        assert sm.reserves.level_of(ResourceKind.WATER) == 0


# =============================================================================
# Subscribers issuing commands
# =============================================================================

class TestSubscriberCommands:

    def test_fire_from_callback_sees_power_cut(self, sm, notifications, memory_channel):
        """A toast handler firing again is refused; power was already cut."""
        nested = []

        def fire_again(notification):
            if notification.kind == NotificationKind.ACTUATOR_FIRED:
                nested.append(sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE))

        notifications.register_channel(CallbackChannel(fire_again, name="toast"))

        assert sm.fire_actuator(ActuatorKind.FOAM_CONCENTRATE).success

        assert [r.error for r in nested] == [FireError.POWER_OFF]
        assert memory_channel.kinds() == [
            NotificationKind.ACTUATOR_FIRED,
            NotificationKind.AUTO_POWER_CUT,
        ]
        assert sm.reserves.level_of(ResourceKind.FOAM) == 80
        assert len(sm.audit_log()) == 2

    def test_callback_observes_completed_command(self, sm, notifications):
        seen = []
        notifications.register_channel(
            CallbackChannel(lambda n: seen.append((n.kind, sm.status().power_on)), name="observer")
        )

        sm.fire_actuator(ActuatorKind.WATER_SPRINKLERS)

        assert seen == [
            (NotificationKind.ACTUATOR_FIRED, False),
            (NotificationKind.AUTO_POWER_CUT, False),
        ]
