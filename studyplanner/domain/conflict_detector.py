"""
Conflict detection for planned blocks.

Two independent sources are checked: the user's own planned blocks (times of
day on a calendar date) and fixed class events from the feed (absolute
instants). Both use the half-open overlap test.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .block_store import BlockStore
from .models import ClassEvent, PlannedBlock, TimeSlot
from .timeutil import at_time, parse_date, to_minutes

ClassEventSource = Union[Sequence[ClassEvent], Callable[[], Iterable[ClassEvent]]]


@dataclass
class ConflictInfo:
    """Result of checking a candidate block against both conflict sources."""
    has_conflict: bool
    conflicting_blocks: List[PlannedBlock] = field(default_factory=list)
    conflicting_events: List[ClassEvent] = field(default_factory=list)
    next_available_slot: Optional[TimeSlot] = None


class ConflictDetector:
    """
    Checks candidate intervals against a ``BlockStore`` and class events.

    ``class_events`` is either a sequence or a zero-argument callable returning
    the already-fetched events, so the detector always sees the current feed.
    """

    def __init__(
        self,
        store: BlockStore,
        class_events: ClassEventSource = (),
        timezone: str = "Europe/Berlin",
    ):
        self.store = store
        self._class_events = class_events
        self.timezone = timezone
        self.suggester = None

    def attach_suggester(self, suggester) -> None:
        """
        Use ``suggester`` to propose the next free slot on conflict.

        Without one, ``check_block_conflict`` reports conflicts but leaves
        ``next_available_slot`` empty.
        """
        self.suggester = suggester

    def class_events(self) -> List[ClassEvent]:
        source = self._class_events
        if callable(source):
            return list(source())
        return list(source)

    def has_conflict(
        self,
        date,
        start_time: str,
        end_time: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        """Check the interval against active planned blocks on ``date``."""
        return bool(self.conflicting_blocks(date, start_time, end_time, exclude_id))

    def conflicting_blocks(
        self,
        date,
        start_time: str,
        end_time: str,
        exclude_id: Optional[str] = None,
    ) -> List[PlannedBlock]:
        query_start = to_minutes(start_time)
        query_end = to_minutes(end_time)

        return [
            block for block in self.store.blocks_on(date)
            if block.id != exclude_id
            and block.is_active()
            and block.start_minutes() < query_end
            and block.end_minutes() > query_start
        ]

    def conflicts_with_events(self, date, start_time: str, end_time: str) -> List[ClassEvent]:
        """Class events on the same calendar day that overlap the interval."""
        day = parse_date(date)
        block_start = at_time(day, start_time, self.timezone)
        block_end = at_time(day, end_time, self.timezone)

        conflicting: List[ClassEvent] = []
        for event in self.class_events():
            event_day = parse_date(event.start_at.in_timezone(self.timezone))
            if event_day != day:
                continue
            if event.overlaps(block_start, block_end):
                conflicting.append(event)
        return conflicting

    def check_block_conflict(
        self,
        date,
        start_time: str,
        end_time: str,
        exclude_id: Optional[str] = None,
    ) -> ConflictInfo:
        """
        Check both conflict sources and propose the next free slot on conflict.

        The alternative is searched on the same day first, then the next day.
        """
        day = parse_date(date)
        blocks = self.conflicting_blocks(day, start_time, end_time, exclude_id)
        events = self.conflicts_with_events(day, start_time, end_time)

        info = ConflictInfo(
            has_conflict=bool(blocks or events),
            conflicting_blocks=blocks,
            conflicting_events=events,
        )

        if info.has_conflict and self.suggester is not None:
            duration = to_minutes(end_time) - to_minutes(start_time)
            for candidate_day in (day, day.add(days=1)):
                slots = self.suggester.available_slots(candidate_day, duration, exclude_id=exclude_id)
                if slots:
                    info.next_available_slot = slots[0]
                    break

        return info
