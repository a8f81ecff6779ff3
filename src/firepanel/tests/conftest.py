"""
Shared fixtures for panel tests
"""

from datetime import datetime, timezone

import pytest

from firepanel.config import PanelConfig
from firepanel.services.notifications import MemoryChannel, NotificationManager
from firepanel.services.panel import FirePanel
from firepanel.services.scheduler import SimulatedClock, TimerScheduler


PRIMARY = "test-password"
SECONDARY = "424242"


@pytest.fixture
def clock():
    """Clock pinned to a known start time."""
    return SimulatedClock(start=datetime(2025, 1, 15, 13, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def scheduler(clock):
    return TimerScheduler(clock)


@pytest.fixture
def memory_channel():
    return MemoryChannel(name="memory", max_items=500)


@pytest.fixture
def notifications(memory_channel):
    manager = NotificationManager()
    manager.register_channel(memory_channel)
    return manager


@pytest.fixture
def config():
    return PanelConfig(primary_secret=PRIMARY, secondary_code=SECONDARY)


@pytest.fixture
def panel(config, clock, notifications):
    return FirePanel(config, clock=clock, notifications=notifications)


def authorize(panel_or_sm):
    """Complete a pending gate with the test credentials."""
    return panel_or_sm.complete_authorization(PRIMARY, SECONDARY)
