"""
Tests for conflict detection.
"""

import itertools

import pendulum
import pytest

from studyplanner.domain.block_store import BlockStore, ValidationPolicy
from studyplanner.domain.conflict_detector import ConflictDetector
from studyplanner.domain.exceptions import BlockConflictError
from studyplanner.domain.models import ClassEvent, PreferredWindow, TimeSlot
from studyplanner.domain.timeutil import to_time_string

TZ = "Europe/Berlin"


def _event(day, start_hour, end_hour=None):
    start = pendulum.datetime(day.year, day.month, day.day, start_hour, 0, tz=TZ)
    end = pendulum.datetime(day.year, day.month, day.day, end_hour, 0, tz=TZ) if end_hour else None
    return ClassEvent(start_at=start, end_at=end, post_id=f"evt-{start_hour}")


class TestHasConflict:
    """Tests for block-only overlap checks."""

    def test_overlap_and_adjacency(self, day):
        store = BlockStore()
        store.add(day, "09:00", "10:00")
        detector = ConflictDetector(store)

        assert detector.has_conflict(day, "09:30", "10:30")
        assert not detector.has_conflict(day, "10:00", "11:00")
        assert not detector.has_conflict(day, "08:00", "09:00")
        assert not detector.has_conflict(day.add(days=1), "09:30", "10:30")

    def test_exclude_id(self, day):
        store = BlockStore()
        block = store.add(day, "09:00", "10:00")
        detector = ConflictDetector(store)

        assert not detector.has_conflict(day, "09:00", "10:00", exclude_id=block.id)

    def test_finished_blocks_do_not_conflict(self, day):
        store = BlockStore()
        done = store.add(day, "09:00", "10:00")
        skipped = store.add(day, "10:00", "11:00")
        store.mark_completed(done.id)
        store.mark_skipped(skipped.id)
        detector = ConflictDetector(store)

        assert not detector.has_conflict(day, "09:00", "11:00")

    def test_matches_interval_overlap_everywhere(self, day):
        """Result equals s1 < e2 and s2 < e1 for every pair of intervals."""
        points = range(8 * 60, 11 * 60 + 1, 30)
        intervals = [(s, e) for s, e in itertools.combinations(points, 2)]

        for (s1, e1), (s2, e2) in itertools.product(intervals, repeat=2):
            store = BlockStore()
            store.add(day, to_time_string(s1), to_time_string(e1))
            detector = ConflictDetector(store)

            expected = s1 < e2 and s2 < e1
            assert detector.has_conflict(day, to_time_string(s2), to_time_string(e2)) is expected


class TestCheckBlockConflict:
    """Tests for the merged conflict report."""

    def test_class_event_conflict(self, day):
        detector = ConflictDetector(BlockStore(), class_events=[_event(day, 14)], timezone=TZ)

        info = detector.check_block_conflict(day, "14:30", "15:30")

        assert info.has_conflict
        assert info.conflicting_blocks == []
        assert [e.post_id for e in info.conflicting_events] == ["evt-14"]

    def test_class_event_end_is_exclusive(self, day):
        detector = ConflictDetector(BlockStore(), class_events=[_event(day, 14)], timezone=TZ)

        assert not detector.check_block_conflict(day, "15:00", "16:00").has_conflict
        assert not detector.check_block_conflict(day, "13:00", "14:00").has_conflict

    def test_events_on_other_days_are_ignored(self, day):
        detector = ConflictDetector(BlockStore(), class_events=[_event(day.add(days=1), 14, 16)], timezone=TZ)

        assert not detector.check_block_conflict(day, "14:00", "15:00").has_conflict

    def test_event_source_is_read_on_every_check(self, day):
        events = []
        detector = ConflictDetector(BlockStore(), class_events=lambda: events, timezone=TZ)

        assert not detector.check_block_conflict(day, "14:00", "15:00").has_conflict
        events.append(_event(day, 14))
        assert detector.check_block_conflict(day, "14:00", "15:00").has_conflict

    def test_both_sources_reported(self, make_planner, day):
        planner = make_planner(window=PreferredWindow.AFTERNOON, block_size=60, class_events=[_event(day, 15)])
        block = planner.store.add(day, "13:00", "14:30")

        info = planner.detector.check_block_conflict(day, "14:00", "16:00")

        assert info.has_conflict
        assert [b.id for b in info.conflicting_blocks] == [block.id]
        assert len(info.conflicting_events) == 1

    def test_detector_without_suggester_reports_no_alternative(self, day):
        detector = ConflictDetector(BlockStore(), class_events=[_event(day, 14)], timezone=TZ)

        info = detector.check_block_conflict(day, "14:00", "15:00")

        assert info.has_conflict
        assert info.next_available_slot is None

    def test_suggester_attaches_itself(self, make_planner):
        planner = make_planner()

        assert planner.detector.suggester is planner.suggester

    def test_no_conflict_has_no_suggestion(self, make_planner, day):
        planner = make_planner(window=PreferredWindow.AFTERNOON, block_size=60)

        info = planner.detector.check_block_conflict(day, "13:00", "14:00")

        assert not info.has_conflict
        assert info.next_available_slot is None

    def test_next_slot_same_day(self, make_planner, day):
        planner = make_planner(window=PreferredWindow.AFTERNOON, block_size=60)
        planner.store.add(day, "13:00", "14:00")

        info = planner.detector.check_block_conflict(day, "13:00", "14:00")

        assert info.next_available_slot == TimeSlot(date=day, start_time="14:00", end_time="15:00")

    def test_next_slot_falls_back_to_next_day(self, make_planner, day):
        planner = make_planner(
            window=PreferredWindow.AFTERNOON,
            block_size=60,
            class_events=[_event(day, 13, 18)],
        )

        info = planner.detector.check_block_conflict(day, "13:00", "14:00")

        assert info.next_available_slot == TimeSlot(date=day.add(days=1), start_time="13:00", end_time="14:00")

    def test_no_next_slot_when_both_days_full(self, make_planner, day):
        planner = make_planner(
            window=PreferredWindow.AFTERNOON,
            block_size=60,
            class_events=[_event(day, 13, 18), _event(day.add(days=1), 13, 18)],
        )

        info = planner.detector.check_block_conflict(day, "13:00", "14:00")

        assert info.has_conflict
        assert info.next_available_slot is None


def test_store_validated_by_detector_rejects_class_event_overlap(day):
    """A strict store using the detector also refuses blocks over class events."""
    store = BlockStore(policy=ValidationPolicy.STRICT)
    detector = ConflictDetector(store, class_events=[_event(day, 14)], timezone=TZ)
    store.validator = detector.check_block_conflict

    with pytest.raises(BlockConflictError) as excinfo:
        store.add(day, "14:30", "15:00")

    assert excinfo.value.conflict.conflicting_events
    assert len(store) == 0
