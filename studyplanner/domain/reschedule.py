"""
Reschedule policies built on conflict detection and slot suggestions.

Both strategies either move the block and return ``True`` or leave the store
untouched and return ``False``.
"""

import logging
from typing import Optional

from .block_store import BlockStore
from .models import PlannedBlock
from .slot_suggester import SlotSuggester
from .timeutil import parse_date

logger = logging.getLogger(__name__)

SNOOZE_SEARCH_DAYS = 7


class RescheduleStrategies:
    """Moves planned blocks to the next free slot that fits their duration."""

    def __init__(self, store: BlockStore, suggester: SlotSuggester):
        self.store = store
        self.suggester = suggester

    def move_to_next_slot(self, block_id: str) -> bool:
        """
        Move a block to the first free slot on its day, else the following day.

        The block's own position is ignored when checking for conflicts, and
        staying where it is does not count as a move.
        """
        block = self.store.get(block_id)
        if block is None:
            logger.info("Cannot reschedule unknown block %s", block_id)
            return False

        duration = block.duration_minutes()

        same_day = [
            slot for slot in self.suggester.available_slots(block.date, duration, exclude_id=block.id)
            if slot.start_time != block.start_time
        ]
        if same_day:
            return self._apply(block, same_day[0].date, same_day[0].start_time)

        next_day = block.date.add(days=1)
        slots = self.suggester.available_slots(next_day, duration, exclude_id=block.id)
        if slots:
            return self._apply(block, next_day, slots[0].start_time)

        logger.info("No free slot for block %s on %s or the day after", block.id, block.date)
        return False

    def smart_snooze(self, block_id: str, due_date=None) -> bool:
        """
        Push a block to the first free slot on a later day.

        Searches up to seven days starting the day after the block's date and
        gives up as soon as the search day would pass ``due_date``.
        """
        block = self.store.get(block_id)
        if block is None:
            logger.info("Cannot snooze unknown block %s", block_id)
            return False

        deadline = parse_date(due_date) if due_date is not None else None
        duration = block.duration_minutes()
        day = block.date.add(days=1)

        for _ in range(SNOOZE_SEARCH_DAYS):
            if deadline is not None and day > deadline:
                logger.info("Snoozing block %s would pass its due date %s", block.id, deadline)
                return False

            slots = self.suggester.available_slots(day, duration, exclude_id=block.id)
            if slots:
                return self._apply(block, day, slots[0].start_time)

            day = day.add(days=1)

        logger.info("No free slot for block %s within %d days", block.id, SNOOZE_SEARCH_DAYS)
        return False

    def _apply(self, block: PlannedBlock, date, start_time: str) -> bool:
        self.store.move(block.id, date, start_time)
        logger.info(
            "Rescheduled block %s from %s %s to %s %s",
            block.id, block.date, block.start_time, parse_date(date), start_time,
        )
        return True
