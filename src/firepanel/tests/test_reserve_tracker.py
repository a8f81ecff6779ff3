"""
Tests for ReserveTracker
"""

import pytest

from firepanel.domain.enums import ReserveError, ResourceKind
from firepanel.domain.models import DrainOutcome, InvariantViolation
from firepanel.services.reserve_tracker import ReserveTracker


@pytest.fixture
def tracker():
    return ReserveTracker({ResourceKind.WATER: 5000, ResourceKind.FOAM: 1000})


class TestReserveTracker:

    def test_starts_full(self, tracker):
        assert tracker.level_of(ResourceKind.WATER) == 100
        assert tracker.level_of(ResourceKind.FOAM) == 100

    def test_drain_reduces_by_capacity_fraction(self, tracker):
        outcome = tracker.drain(ResourceKind.WATER, 500)

        assert isinstance(outcome, DrainOutcome)
        assert outcome.percent_before == 100
        assert outcome.percent_remaining == 90
        assert tracker.level_of(ResourceKind.WATER) == 90

        tracker.drain(ResourceKind.FOAM, 200)
        assert tracker.level_of(ResourceKind.FOAM) == 80

    def test_overdraw_clamps_to_zero_and_succeeds(self, tracker):
        tracker.drain(ResourceKind.FOAM, 900)
        outcome = tracker.drain(ResourceKind.FOAM, 500)

        assert isinstance(outcome, DrainOutcome)
        assert outcome.percent_remaining == 0
        assert tracker.level_of(ResourceKind.FOAM) == 0

    def test_drain_when_empty_is_refused(self, tracker):
        tracker.drain(ResourceKind.FOAM, 1000)

        assert tracker.can_drain(ResourceKind.FOAM) is False
        assert tracker.drain(ResourceKind.FOAM, 1) is ReserveError.EXHAUSTED
        assert tracker.level_of(ResourceKind.FOAM) == 0

    def test_level_stays_in_range_for_any_sequence(self, tracker):
        for liters in [0, 1, 250, 4999, 7, 10000, 3]:
            tracker.drain(ResourceKind.WATER, liters)
            assert 0 <= tracker.level_of(ResourceKind.WATER) <= 100

    def test_uneven_capacity_reaches_exactly_zero(self):
        tracker = ReserveTracker({ResourceKind.WATER: 6000})

        for _ in range(12):
            assert isinstance(tracker.drain(ResourceKind.WATER, 500), DrainOutcome)

        assert tracker.level_of(ResourceKind.WATER) == 0
        assert tracker.can_drain(ResourceKind.WATER) is False
        assert tracker.drain(ResourceKind.WATER, 500) is ReserveError.EXHAUSTED

    def test_liters_remaining_reported(self, tracker):
        tracker.drain(ResourceKind.WATER, 1234)

        water = next(r for r in tracker.levels() if r.kind == ResourceKind.WATER)
        assert water.liters_remaining == 3766

    def test_negative_drain_is_rejected(self, tracker):
        with pytest.raises(ValueError):
            tracker.drain(ResourceKind.WATER, -1)

    def test_refill(self, tracker):
        tracker.drain(ResourceKind.WATER, 2500)

        before = tracker.refill(ResourceKind.WATER)

        assert before == 50
        assert tracker.level_of(ResourceKind.WATER) == 100

    def test_levels_snapshot(self, tracker):
        tracker.drain(ResourceKind.WATER, 1000)

        levels = {s.kind: s for s in tracker.levels()}

        assert levels[ResourceKind.WATER].percent_remaining == 80
        assert levels[ResourceKind.WATER].liters_remaining == 4000
        assert levels[ResourceKind.FOAM].liters_remaining == 1000
        assert tracker.snapshot() == {"water": 80, "foam": 100}

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ReserveTracker({ResourceKind.WATER: 0})

    def test_out_of_range_write_is_invariant_violation(self, tracker):
        level = tracker._get(ResourceKind.WATER)
        with pytest.raises(InvariantViolation):
            ReserveTracker._set(level, -0.5)
