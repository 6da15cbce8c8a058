"""
Application service for the personal study agenda.

The service wires the block store, conflict detector, slot suggester and
reschedule strategies together and feeds them class events and activities
from a feed client. The feed dependency is a simple protocol so tests can
pass a stub.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

import pendulum
from pendulum import DateTime

from ..domain.block_store import BlockStore
from ..domain.conflict_detector import ConflictDetector, ConflictInfo
from ..domain.models import (
    BlockCategory,
    BlockStatus,
    ClassEvent,
    FeedPost,
    PlannedBlock,
    PlannerPreferences,
    TrailStep,
)
from ..domain.reschedule import RescheduleStrategies
from ..domain.slot_suggester import SlotSuggester, StudyPlan
from ..domain.timeutil import at_time, parse_date

logger = logging.getLogger(__name__)

WEEKLY_TOP_ACTIVITIES = 3
MIN_WEEKLY_BLOCKS = 2
MAX_WEEKLY_BLOCKS = 4

# Activities due this many days out or later get priority 0
PRIORITY_HORIZON_DAYS = 14

WEEKEND = (pendulum.SATURDAY, pendulum.SUNDAY)


@dataclass(frozen=True)
class WeeklySuggestion:
    """A proposed block for one of the week's most urgent activities."""
    activity_id: str
    start_at: DateTime
    duration: int
    priority: float

    @property
    def end_at(self) -> DateTime:
        return self.start_at.add(minutes=self.duration)


class FeedClientProtocol(Protocol):
    """Protocol describing the feed data needed by the service."""

    def get_posts(self) -> List[FeedPost]:
        """Return the published posts."""

    def get_trail_steps(self, activity_id: str) -> Optional[List[TrailStep]]:
        """Return the work breakdown of an activity, if it has one."""


class StudyAgendaService:
    """
    Orchestrates planning operations for one user's block store.
    """

    def __init__(
        self,
        feed_client: FeedClientProtocol,
        store: BlockStore,
        preferences: PlannerPreferences,
        timezone: str = "Europe/Berlin",
    ) -> None:
        self._feed_client = feed_client
        self.store = store
        self.timezone = timezone
        self.detector = ConflictDetector(store, class_events=self.class_events, timezone=timezone)
        self.suggester = SlotSuggester(preferences, self.detector)
        self.strategies = RescheduleStrategies(store, self.suggester)

        # Strict stores also refuse blocks that overlap class events
        if store.validator is None:
            store.validator = self.detector.check_block_conflict

    def class_events(self) -> List[ClassEvent]:
        return [post.to_class_event() for post in self._feed_client.get_posts() if post.is_class_event()]

    def activities(self) -> List[FeedPost]:
        return [post for post in self._feed_client.get_posts() if post.is_activity()]

    def find_activity(self, activity_id: str) -> FeedPost | None:
        for activity in self.activities():
            if activity.id == activity_id:
                return activity
        return None

    def check(self, date, start_time: str, end_time: str, exclude_id: Optional[str] = None) -> ConflictInfo:
        return self.detector.check_block_conflict(date, start_time, end_time, exclude_id)

    def suggest_study_blocks(self, activity_id: str, now: Optional[DateTime] = None) -> StudyPlan:
        """
        Plan study blocks for the remaining steps of an activity.

        Returns an empty plan when the activity is unknown or has no trail.
        """
        activity = self.find_activity(activity_id)
        if activity is None:
            logger.info("No activity with due date found for %s", activity_id)
            return StudyPlan()

        steps = self._feed_client.get_trail_steps(activity_id)
        if not steps:
            logger.info("Activity %s has no trail to plan from", activity_id)
            return StudyPlan()

        total_minutes = sum(step.estimated_minutes for step in steps if not step.completed)
        plan = self.suggester.suggest_study_blocks(total_minutes, activity.due_at, now=now)

        if plan.shortfall_minutes:
            logger.info(
                "%d of %d minute(s) for %s do not fit before %s",
                plan.shortfall_minutes, total_minutes, activity_id, activity.due_at,
            )
        return plan

    def activity_priority(self, activity: FeedPost, now: Optional[DateTime] = None) -> float:
        """Urgency in ``[0, 1]``: 1 once due, falling to 0 two weeks ahead."""
        current = now or pendulum.now(self.timezone)
        days_left = (activity.due_at - current).total_seconds() / 86400
        return min(1.0, max(0.0, 1 - days_left / PRIORITY_HORIZON_DAYS))

    def weekly_suggestions(
        self,
        now: Optional[DateTime] = None,
        top: int = WEEKLY_TOP_ACTIVITIES,
    ) -> List[WeeklySuggestion]:
        """
        Spread blocks for the most urgent activities over the current week.

        The ``top`` activities that are not yet due each get two to four
        blocks of ``block_size`` minutes, more for higher priority, in free
        weekday slots from Monday on. Slots that start before ``now``, end
        after the activity's due date or overlap an earlier suggestion are
        skipped. Nothing is stored.
        """
        current = (now or pendulum.now(self.timezone)).in_timezone(self.timezone)
        week_start = parse_date(current.start_of("week"))
        duration = self.suggester.preferences.block_size

        pending = [activity for activity in self.activities() if activity.due_at > current]
        ranked = sorted(pending, key=lambda a: (-self.activity_priority(a, current), a.due_at))[:top]

        suggestions: List[WeeklySuggestion] = []
        taken: List[Tuple[DateTime, DateTime]] = []

        for activity in ranked:
            priority = self.activity_priority(activity, current)
            wanted = max(MIN_WEEKLY_BLOCKS, min(MAX_WEEKLY_BLOCKS, math.ceil(priority * MAX_WEEKLY_BLOCKS)))
            placed = 0

            for offset in range(7):
                day = week_start.add(days=offset)
                if placed >= wanted:
                    break
                if day.day_of_week in WEEKEND:
                    continue

                for slot in self.suggester.free_slots(day, duration):
                    if placed >= wanted:
                        break
                    start_at = at_time(day, slot.start_time, self.timezone)
                    end_at = start_at.add(minutes=duration)
                    if start_at < current or end_at > activity.due_at:
                        continue
                    if any(start_at < other_end and end_at > other_start for other_start, other_end in taken):
                        continue

                    suggestions.append(
                        WeeklySuggestion(
                            activity_id=activity.id,
                            start_at=start_at,
                            duration=duration,
                            priority=priority,
                        )
                    )
                    taken.append((start_at, end_at))
                    placed += 1

            if placed < wanted:
                logger.info("Only %d of %d block(s) for %s fit this week", placed, wanted, activity.id)

        return suggestions

    def schedule_study_block(
        self,
        activity_id: Optional[str],
        start_at: DateTime,
        duration: int,
        category: BlockCategory = BlockCategory.STUDY,
    ) -> PlannedBlock:
        """Store a block starting at ``start_at`` for ``duration`` minutes."""
        local_start = start_at.in_timezone(self.timezone)
        local_end = local_start.add(minutes=duration)
        return self.store.add(
            date=parse_date(local_start),
            start_time=local_start.format("HH:mm"),
            end_time=local_end.format("HH:mm"),
            category=category,
            activity_id=activity_id,
        )

    def today_blocks(self, now: Optional[DateTime] = None) -> List[PlannedBlock]:
        today = parse_date((now or pendulum.now(self.timezone)).in_timezone(self.timezone))
        return sorted(self.store.blocks_on(today), key=lambda block: block.start_minutes())

    def next_block(self, now: Optional[DateTime] = None) -> PlannedBlock | None:
        """The earliest scheduled block that starts after ``now``."""
        current = (now or pendulum.now(self.timezone)).in_timezone(self.timezone)

        upcoming = [
            block for block in self.store
            if block.status == BlockStatus.SCHEDULED and self._starts_at(block) > current
        ]
        if not upcoming:
            return None
        return min(upcoming, key=self._starts_at)

    def move_to_next_slot(self, block_id: str) -> bool:
        return self.strategies.move_to_next_slot(block_id)

    def smart_snooze(self, block_id: str, due_date=None) -> bool:
        """Snooze a block, bounded by its activity's due date when none is given."""
        if due_date is None:
            block = self.store.get(block_id)
            activity = self.find_activity(block.activity_id) if block and block.activity_id else None
            if activity is not None:
                due_date = activity.due_at.in_timezone(self.timezone)
        return self.strategies.smart_snooze(block_id, due_date)

    def _starts_at(self, block: PlannedBlock) -> DateTime:
        return at_time(block.date, block.start_time, self.timezone)
