"""
Shared fixtures for planner tests.
"""

import pendulum
import pytest

from studyplanner.domain.block_store import BlockStore
from studyplanner.domain.conflict_detector import ConflictDetector
from studyplanner.domain.models import PlannerPreferences, PreferredWindow
from studyplanner.domain.reschedule import RescheduleStrategies
from studyplanner.domain.slot_suggester import SlotSuggester

TZ = "Europe/Berlin"


class Planner:
    """Store, detector, suggester and strategies wired together."""

    def __init__(self, preferences, class_events=()):
        self.store = BlockStore()
        self.events = list(class_events)
        self.detector = ConflictDetector(self.store, class_events=lambda: self.events, timezone=TZ)
        self.suggester = SlotSuggester(preferences, self.detector)
        self.strategies = RescheduleStrategies(self.store, self.suggester)


@pytest.fixture
def make_planner():
    def _make(window=PreferredWindow.MORNING, block_size=30, focus=50, class_events=()):
        preferences = PlannerPreferences(
            block_size=block_size,
            preferred_window=window,
            preferred_focus_duration=focus,
        )
        return Planner(preferences, class_events)
    return _make


@pytest.fixture
def day():
    return pendulum.date(2024, 3, 10)
