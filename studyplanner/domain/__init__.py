"""
Domain layer - Pure planning logic without external dependencies.
"""

from .block_store import BlockStore, ValidationPolicy
from .conflict_detector import ConflictDetector, ConflictInfo
from .models import (
    BlockCategory,
    BlockStatus,
    ClassEvent,
    FeedPost,
    PlannedBlock,
    PlannerPreferences,
    PreferredWindow,
    TimeSlot,
    TrailStep,
)
from .reschedule import RescheduleStrategies
from .slot_suggester import SlotSuggester, StudyPlan, StudySuggestion

__all__ = [
    "BlockCategory",
    "BlockStatus",
    "BlockStore",
    "ClassEvent",
    "ConflictDetector",
    "ConflictInfo",
    "FeedPost",
    "PlannedBlock",
    "PlannerPreferences",
    "PreferredWindow",
    "RescheduleStrategies",
    "SlotSuggester",
    "StudyPlan",
    "StudySuggestion",
    "TimeSlot",
    "TrailStep",
    "ValidationPolicy",
]
