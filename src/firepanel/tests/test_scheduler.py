"""
Tests for SimulatedClock and TimerScheduler
"""

from datetime import timedelta

import pytest


class TestSimulatedClock:

    def test_advance(self, clock):
        start = clock.now()
        clock.advance(90)
        assert clock.now() - start == timedelta(seconds=90)
        assert clock.elapsed == 90

    def test_cannot_go_backwards(self, clock):
        with pytest.raises(ValueError):
            clock.advance(-1)


class TestTimerScheduler:

    def test_fires_when_due(self, scheduler):
        fired = []
        scheduler.schedule(10, lambda: fired.append("a"))

        assert scheduler.advance(9) == 0
        assert fired == []
        assert scheduler.advance(1) == 1
        assert fired == ["a"]

    def test_same_due_time_fires_in_scheduling_order(self, scheduler):
        fired = []
        for name in ["first", "second", "third"]:
            scheduler.schedule(5, lambda n=name: fired.append(n))

        scheduler.advance(5)
        assert fired == ["first", "second", "third"]

    def test_fires_in_due_order_across_one_advance(self, scheduler):
        fired = []
        scheduler.schedule(8, lambda: fired.append(8))
        scheduler.schedule(3, lambda: fired.append(3))

        scheduler.advance(10)
        assert fired == [3, 8]

    def test_clock_is_at_due_time_inside_callback(self, scheduler, clock):
        seen = []
        scheduler.schedule(4, lambda: seen.append(clock.elapsed))

        scheduler.advance(10)
        assert seen == [4]
        assert clock.elapsed == 10

    def test_on_elapsed_segments(self, scheduler):
        segments = []
        scheduler.schedule(4, lambda: segments.append("timer"))

        scheduler.advance(10, segments.append)
        assert segments == [4, "timer", 6]

    def test_cancel(self, scheduler):
        fired = []
        handle = scheduler.schedule(5, lambda: fired.append(1))

        assert scheduler.cancel(handle) is True
        assert scheduler.cancel(handle) is False
        scheduler.advance(10)

        assert fired == []
        assert scheduler.pending() == []
        assert scheduler.next_due_in() is None

    def test_remaining(self, scheduler):
        handle = scheduler.schedule(15, lambda: None)
        scheduler.advance(6)

        assert scheduler.remaining(handle) == 9
        assert scheduler.next_due_in() == 9

        scheduler.advance(9)
        assert scheduler.remaining(handle) == 0
        assert handle.fired

    def test_timer_scheduled_from_callback(self, scheduler):
        fired = []

        def first():
            fired.append("first")
            scheduler.schedule(2, lambda: fired.append("second"))

        scheduler.schedule(1, first)
        scheduler.advance(5)
        assert fired == ["first", "second"]

    def test_invalid_arguments(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule(-1, lambda: None)
        with pytest.raises(ValueError):
            scheduler.advance(-0.5)
