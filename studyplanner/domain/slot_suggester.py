"""
Time-slot suggestions inside the user's preferred study window.

Candidates are enumerated at ``block_size`` granularity and filtered through
the ``ConflictDetector`` so every suggested slot is free of planned blocks and
class events.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import pendulum
from pendulum import Date, DateTime

from .conflict_detector import ConflictDetector
from .models import BlockCategory, PlannerPreferences, TimeSlot
from .timeutil import at_time, parse_date, to_time_string

MAX_SUGGESTIONS = 5

# Remaining work at or below this many chunks is planned as review
REVIEW_THRESHOLD = 1.5


@dataclass(frozen=True)
class StudySuggestion:
    """A proposed study block for an activity."""
    start_at: DateTime
    duration: int
    category: BlockCategory

    @property
    def end_at(self) -> DateTime:
        return self.start_at.add(minutes=self.duration)


@dataclass
class StudyPlan:
    """
    Suggested blocks for an activity plus the work that did not fit.

    ``shortfall_minutes`` is greater than zero when the due date arrives before
    all estimated work could be placed.
    """
    suggestions: List[StudySuggestion] = field(default_factory=list)
    shortfall_minutes: int = 0

    @property
    def planned_minutes(self) -> int:
        return sum(suggestion.duration for suggestion in self.suggestions)

    @property
    def is_complete(self) -> bool:
        return self.shortfall_minutes == 0


class SlotSuggester:
    """
    Enumerates free slots for a day and plans study blocks up to a due date.
    """

    def __init__(self, preferences: PlannerPreferences, detector: ConflictDetector):
        self.preferences = preferences
        self.detector = detector
        detector.attach_suggester(self)

    def capacity_slots(self, date, duration_minutes: int) -> List[TimeSlot]:
        """
        All slots that fit inside the preferred window, ignoring conflicts.

        A candidate start is kept when ``start + duration <= window_end``.
        """
        if duration_minutes <= 0:
            return []

        day = parse_date(date)
        step = max(self.preferences.block_size, 1)
        slots: List[TimeSlot] = []

        for window_start, window_end in self.preferences.window_bounds():
            for start in range(window_start, window_end - duration_minutes + 1, step):
                slots.append(
                    TimeSlot(
                        date=day,
                        start_time=to_time_string(start),
                        end_time=to_time_string(start + duration_minutes),
                    )
                )

        return slots

    def free_slots(
        self,
        date,
        duration_minutes: int,
        exclude_id: Optional[str] = None,
    ) -> List[TimeSlot]:
        """Capacity slots that clash with neither planned blocks nor class events."""
        return [
            slot for slot in self.capacity_slots(date, duration_minutes)
            if not self._is_taken(slot, exclude_id)
        ]

    def available_slots(
        self,
        date,
        duration_minutes: int,
        exclude_id: Optional[str] = None,
    ) -> List[TimeSlot]:
        """
        Up to five free slots for ``date``, earliest first.

        Args:
            date: Day to search
            duration_minutes: Required length of the slot
            exclude_id: Block to ignore, typically the one being moved

        Returns:
            Conflict-free slots within the preferred window
        """
        return self.free_slots(date, duration_minutes, exclude_id)[:MAX_SUGGESTIONS]

    def suggest_study_blocks(
        self,
        total_minutes: int,
        due_at: DateTime,
        now: Optional[DateTime] = None,
    ) -> StudyPlan:
        """
        Greedily spread ``total_minutes`` of work over the days before ``due_at``.

        Each day receives at most one chunk of up to ``preferred_focus_duration``
        minutes, placed in the earliest free slot that starts after ``now`` and
        ends by ``due_at``. Days without a free slot are skipped. Work that
        does not fit is reported as ``shortfall_minutes``.
        """
        tz = self.detector.timezone
        current = (now or pendulum.now(tz)).in_timezone(tz)
        due = due_at.in_timezone(tz)

        plan = StudyPlan()
        remaining = max(total_minutes, 0)
        focus = max(self.preferences.preferred_focus_duration, 1)

        while remaining > 0 and current < due:
            chunk = min(remaining, focus)
            day = parse_date(current)

            start_at = self._first_free_start(day, chunk, earliest=current, latest_end=due)
            if start_at is not None:
                category = (
                    BlockCategory.REVIEW
                    if remaining <= chunk * REVIEW_THRESHOLD
                    else BlockCategory.STUDY
                )
                plan.suggestions.append(
                    StudySuggestion(start_at=start_at, duration=chunk, category=category)
                )
                remaining -= chunk

            current = pendulum.datetime(day.year, day.month, day.day, tz=tz).add(days=1)

        plan.shortfall_minutes = remaining
        return plan

    def _first_free_start(
        self,
        day: Date,
        duration_minutes: int,
        earliest: DateTime,
        latest_end: DateTime,
    ) -> DateTime | None:
        tz = self.detector.timezone
        for slot in self.free_slots(day, duration_minutes):
            start_at = at_time(day, slot.start_time, tz)
            if start_at < earliest:
                continue
            if start_at.add(minutes=duration_minutes) > latest_end:
                return None
            return start_at
        return None

    def _is_taken(self, slot: TimeSlot, exclude_id: Optional[str]) -> bool:
        if self.detector.has_conflict(slot.date, slot.start_time, slot.end_time, exclude_id):
            return True
        return bool(self.detector.conflicts_with_events(slot.date, slot.start_time, slot.end_time))
