"""
In-memory collection of planned blocks for one user.

The store is an explicit object owned by its caller. Each mutation swaps the
whole block tuple in one step, so readers never observe a half-applied change.
"""

import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import pendulum

from .exceptions import BlockConflictError, SnapshotError
from .models import BlockCategory, BlockStatus, PlannedBlock
from .timeutil import MINUTES_PER_DAY, parse_date, to_minutes, to_time_string

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

IMMUTABLE_FIELDS = ("id", "created_at")


class ValidationPolicy(str, Enum):
    """
    How the store reacts to overlapping blocks on mutation.

    ``advisory`` inserts whatever it is given and leaves checking to callers.
    ``strict`` refuses overlapping mutations with ``BlockConflictError``.
    """
    ADVISORY = "advisory"
    STRICT = "strict"


# validator(date, start_time, end_time, exclude_id) -> object with ``has_conflict``
Validator = Callable[..., Any]


def _new_block_id() -> str:
    return f"block-{uuid.uuid4().hex[:12]}"


class BlockStore:
    """
    Ordered collection of ``PlannedBlock`` objects.

    Lookups by date return blocks in insertion order; callers sort if needed.
    """

    def __init__(
        self,
        blocks: Optional[List[PlannedBlock]] = None,
        policy: ValidationPolicy = ValidationPolicy.ADVISORY,
        validator: Optional[Validator] = None,
    ):
        self._blocks: Tuple[PlannedBlock, ...] = tuple(blocks or ())
        self.policy = policy
        self.validator = validator

    @property
    def blocks(self) -> Tuple[PlannedBlock, ...]:
        return self._blocks

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[PlannedBlock]:
        return iter(self._blocks)

    def get(self, block_id: str) -> PlannedBlock | None:
        for block in self._blocks:
            if block.id == block_id:
                return block
        return None

    def add(
        self,
        date,
        start_time: str,
        end_time: str,
        category: BlockCategory = BlockCategory.STUDY,
        activity_id: Optional[str] = None,
    ) -> PlannedBlock:
        """
        Create a block with a fresh id and creation timestamp.

        Under the advisory policy no conflict check is made.

        Raises:
            ValueError: if ``start_time`` is not before ``end_time``
            BlockConflictError: strict policy and the block overlaps another
        """
        block = PlannedBlock(
            id=_new_block_id(),
            date=parse_date(date),
            start_time=start_time,
            end_time=end_time,
            category=BlockCategory(category),
            activity_id=activity_id,
            created_at=pendulum.now(),
        )
        self._validate(block)

        self._blocks = self._blocks + (block,)
        logger.debug("Added block %s on %s %s-%s", block.id, block.date, start_time, end_time)
        return block

    def update(self, block_id: str, **changes: Any) -> None:
        """
        Merge ``changes`` into the matching block. No-op when the id is absent.

        Raises:
            ValueError: if an immutable field is part of ``changes``
            BlockConflictError: strict policy and the result overlaps another block
        """
        forbidden = [name for name in IMMUTABLE_FIELDS if name in changes]
        if forbidden:
            raise ValueError(f"Cannot update immutable field(s): {', '.join(forbidden)}")

        current = self.get(block_id)
        if current is None:
            logger.debug("Update ignored, no block %s", block_id)
            return

        if "date" in changes:
            changes["date"] = parse_date(changes["date"])
        if "category" in changes:
            changes["category"] = BlockCategory(changes["category"])
        if "status" in changes:
            changes["status"] = BlockStatus(changes["status"])

        self._replace(current.with_changes(**changes))

    def remove(self, block_id: str) -> None:
        """Delete a block by id. No-op when the id is absent."""
        remaining = tuple(block for block in self._blocks if block.id != block_id)
        if len(remaining) != len(self._blocks):
            logger.debug("Removed block %s", block_id)
        self._blocks = remaining

    def move(self, block_id: str, new_date, new_start_time: str) -> None:
        """
        Move a block to a new day and start time, keeping its duration.

        A completed or skipped block that is moved is scheduled again. A move
        that would run past midnight is ignored.
        """
        current = self.get(block_id)
        if current is None:
            logger.debug("Move ignored, no block %s", block_id)
            return

        new_end = to_minutes(new_start_time) + current.duration_minutes()
        if new_end > MINUTES_PER_DAY:
            logger.debug("Move ignored, block %s would cross midnight from %s", block_id, new_start_time)
            return

        moved = current.with_changes(
            date=parse_date(new_date),
            start_time=new_start_time,
            end_time="24:00" if new_end == MINUTES_PER_DAY else to_time_string(new_end),
            status=BlockStatus.SCHEDULED,
        )
        self._replace(moved)

    def mark_completed(self, block_id: str) -> None:
        self.update(block_id, status=BlockStatus.COMPLETED)

    def mark_skipped(self, block_id: str) -> None:
        self.update(block_id, status=BlockStatus.SKIPPED)

    def blocks_on(self, date) -> List[PlannedBlock]:
        """All blocks on the exact calendar day."""
        day = parse_date(date)
        return [block for block in self._blocks if block.date == day]

    def blocks_in_week(self, start_date) -> List[PlannedBlock]:
        """All blocks within ``[start_date, start_date + 6 days]``."""
        first = parse_date(start_date)
        last = first.add(days=6)
        return [block for block in self._blocks if first <= block.date <= last]

    def to_snapshot(self) -> Dict[str, Any]:
        """Plain-data representation for the host persistence layer."""
        return {
            "version": SNAPSHOT_VERSION,
            "blocks": [block.to_dict() for block in self._blocks],
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], **kwargs: Any) -> "BlockStore":
        """
        Restore a store from ``to_snapshot`` output.

        Raises:
            SnapshotError: if the snapshot is malformed or of an unknown version
        """
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot must be a mapping.")

        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise SnapshotError(f"Unsupported snapshot version: {version!r}")

        try:
            blocks = [PlannedBlock.from_dict(item) for item in data.get("blocks", [])]
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Invalid block in snapshot: {exc}") from exc

        return cls(blocks=blocks, **kwargs)

    def _replace(self, updated: PlannedBlock) -> None:
        self._validate(updated)
        self._blocks = tuple(
            updated if block.id == updated.id else block
            for block in self._blocks
        )
        logger.debug(
            "Updated block %s to %s %s-%s",
            updated.id, updated.date, updated.start_time, updated.end_time,
        )

    def _validate(self, block: PlannedBlock) -> None:
        if self.policy != ValidationPolicy.STRICT or not block.is_active():
            return

        if self.validator is not None:
            conflict = self.validator(block.date, block.start_time, block.end_time, block.id)
            if conflict.has_conflict:
                raise BlockConflictError(f"Block {block} overlaps existing entries", conflict)
            return

        clashing = [
            other for other in self._blocks
            if other.id != block.id
            and other.is_active()
            and other.date == block.date
            and other.overlaps(block.start_time, block.end_time)
        ]
        if clashing:
            raise BlockConflictError(f"Block {block} overlaps {clashing[0]}")
