"""
Domain-specific exception hierarchy for the study planner.

Searches that find no free slot are not errors; they return ``False`` or
``None``. These exceptions cover invalid input and broken persisted state.
"""


class PlannerError(Exception):
    """Base class for all application-level errors."""


class InvalidDateError(PlannerError, ValueError):
    """Raised when a calendar date cannot be parsed."""


class BlockConflictError(PlannerError):
    """Raised by a strictly validated store when a block would overlap another."""

    def __init__(self, message: str, conflict=None):
        super().__init__(message)
        self.conflict = conflict


class SnapshotError(PlannerError):
    """Raised when a persisted store snapshot cannot be restored."""


class FeedError(PlannerError):
    """Raised when post feed data cannot be loaded or parsed."""
