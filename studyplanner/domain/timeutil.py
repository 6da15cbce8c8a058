"""
Time-of-day arithmetic on ``"HH:mm"`` strings.

Times are parsed leniently: the planner accepts whatever the UI hands over and
never rejects a block because of a sloppy time string.
"""

from datetime import date, datetime

import pendulum
from pendulum import Date

from .exceptions import InvalidDateError

MINUTES_PER_DAY = 24 * 60


def _to_int(part: str) -> int:
    part = part.strip()
    try:
        return int(part)
    except ValueError:
        return 0


def to_minutes(time_str: str) -> int:
    """
    Convert ``"HH:mm"`` to minutes since midnight.

    Missing or non-numeric parts count as zero. Out-of-range hours or minutes
    are passed through unchanged.
    """
    parts = str(time_str).strip().split(":")
    hours = _to_int(parts[0]) if parts else 0
    minutes = _to_int(parts[1]) if len(parts) > 1 else 0
    return hours * 60 + minutes


def to_time_string(minutes: int) -> str:
    """Format minutes since midnight as zero-padded ``"HH:mm"``."""
    if minutes < 0:
        minutes = 0
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(time_str: str, delta: int) -> str:
    """Shift a ``"HH:mm"`` time by ``delta`` minutes."""
    return to_time_string(to_minutes(time_str) + delta)


def parse_date(value) -> Date:
    """
    Normalise a calendar date.

    Accepts a ``date``/``datetime`` (pendulum or stdlib) or an ISO string.
    """
    if isinstance(value, datetime):
        return pendulum.date(value.year, value.month, value.day)
    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    try:
        parsed = pendulum.parse(str(value).strip(), exact=True)
    except (ValueError, TypeError) as exc:
        raise InvalidDateError(f"Invalid date: {value!r}") from exc

    if isinstance(parsed, datetime):
        return pendulum.date(parsed.year, parsed.month, parsed.day)
    if isinstance(parsed, date):
        return pendulum.date(parsed.year, parsed.month, parsed.day)

    raise InvalidDateError(f"Invalid date: {value!r}")


def at_time(day: Date, time_str: str, tz: str) -> pendulum.DateTime:
    """Combine a calendar day and a ``"HH:mm"`` time into an aware instant."""
    minutes = to_minutes(time_str)
    start_of_day = pendulum.datetime(day.year, day.month, day.day, tz=tz)

    hours, mins = divmod(minutes, 60)
    if 0 <= hours < 24:
        return start_of_day.set(hour=hours, minute=mins)
    # Out-of-range times roll over into the next day
    return start_of_day.add(minutes=minutes)
