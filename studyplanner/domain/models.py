"""
Domain models for planned study blocks, class events and planner preferences.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .timeutil import parse_date, to_minutes

DEFAULT_EVENT_DURATION_MINUTES = 60


class BlockCategory(str, Enum):
    """Semantic tag of a planned block. Has no effect on conflict logic."""
    STUDY = "study"
    EXECUTION = "execution"
    REVIEW = "review"


class BlockStatus(str, Enum):
    """Lifecycle status of a planned block."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class PreferredWindow(str, Enum):
    """Part of the day the user prefers to study in."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ALL = "all"

    def bounds(self) -> Tuple[int, int]:
        """Return the window as (start, end) minutes since midnight."""
        return WINDOW_BOUNDS[self]


WINDOW_BOUNDS = {
    PreferredWindow.MORNING: (8 * 60, 12 * 60),
    PreferredWindow.AFTERNOON: (13 * 60, 18 * 60),
    PreferredWindow.EVENING: (19 * 60, 22 * 60),
    PreferredWindow.ALL: (8 * 60, 22 * 60),
}


@dataclass(frozen=True)
class PlannedBlock:
    """
    A block of time the user reserved on a given day.

    Invariant: ``start_time`` is before ``end_time`` on the same day. Blocks
    never span midnight.
    """
    id: str
    date: Date
    start_time: str
    end_time: str
    category: BlockCategory = BlockCategory.STUDY
    activity_id: Optional[str] = None
    created_at: DateTime = field(default_factory=pendulum.now)
    status: BlockStatus = BlockStatus.SCHEDULED

    def __post_init__(self):
        if self.start_minutes() >= self.end_minutes():
            raise ValueError(f"Start time {self.start_time} must be before end time {self.end_time}")

    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end_minutes() - self.start_minutes()

    def is_active(self) -> bool:
        """Completed and skipped blocks no longer occupy their slot."""
        return self.status == BlockStatus.SCHEDULED

    def overlaps(self, start_time: str, end_time: str) -> bool:
        """Half-open overlap test against a time-of-day range on the same day."""
        return (
            self.start_minutes() < to_minutes(end_time)
            and self.end_minutes() > to_minutes(start_time)
        )

    def with_changes(self, **changes: Any) -> "PlannedBlock":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "activity_id": self.activity_id,
            "date": self.date.to_date_string(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "category": self.category.value,
            "created_at": self.created_at.to_iso8601_string(),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannedBlock":
        return cls(
            id=data["id"],
            activity_id=data.get("activity_id"),
            date=parse_date(data["date"]),
            start_time=data["start_time"],
            end_time=data["end_time"],
            category=BlockCategory(data.get("category", BlockCategory.STUDY.value)),
            created_at=pendulum.parse(data["created_at"]),
            status=BlockStatus(data.get("status", BlockStatus.SCHEDULED.value)),
        )

    def __str__(self) -> str:
        return f"{self.date.format('DD.MM.YYYY')} {self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class ClassEvent:
    """
    A fixed class activity from the post feed.

    Class events cannot be moved; planned blocks have to avoid them.
    """
    start_at: DateTime
    end_at: Optional[DateTime] = None
    post_id: Optional[str] = None
    title: str = ""

    @property
    def effective_end(self) -> DateTime:
        if self.end_at is not None:
            return self.end_at
        return self.start_at.add(minutes=DEFAULT_EVENT_DURATION_MINUTES)

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        return self.start_at < end and self.effective_end > start


# Post types carried by the feed
EVENT_POST_TYPE = "EVENTO"
ACTIVITY_POST_TYPES = ("ATIVIDADE", "TRABALHO", "PROVA")


@dataclass(frozen=True)
class FeedPost:
    """Subset of a published feed post the planner cares about."""
    id: str
    type: str
    title: str = ""
    due_at: Optional[DateTime] = None
    event_start_at: Optional[DateTime] = None
    event_end_at: Optional[DateTime] = None

    def is_class_event(self) -> bool:
        return self.type == EVENT_POST_TYPE and self.event_start_at is not None

    def is_activity(self) -> bool:
        return self.type in ACTIVITY_POST_TYPES and self.due_at is not None

    def to_class_event(self) -> ClassEvent:
        return ClassEvent(
            start_at=self.event_start_at,
            end_at=self.event_end_at,
            post_id=self.id,
            title=self.title,
        )


@dataclass(frozen=True)
class TrailStep:
    """One step of an activity's work breakdown."""
    id: str
    estimated_minutes: int
    completed: bool = False


@dataclass
class PlannerPreferences:
    """
    Slot search preferences.

    ``block_size`` is the step between candidate start times,
    ``preferred_focus_duration`` the largest chunk the study planner allocates.
    """
    block_size: int = 60
    preferred_window: PreferredWindow = PreferredWindow.AFTERNOON
    preferred_focus_duration: int = 50

    def window_bounds(self) -> List[Tuple[int, int]]:
        return [self.preferred_window.bounds()]


@dataclass(frozen=True)
class TimeSlot:
    """A free slot on a given day."""
    date: Date
    start_time: str
    end_time: str

    def format_display(self) -> str:
        return f"{self.date.format('ddd, DD.MM.YYYY')} | {self.start_time} - {self.end_time}"
