"""
Post feed client backed by a JSON export of the published feed.

Expected file layout::

    {
      "posts": [
        {"id": "p1", "type": "EVENTO", "event_start_at": "2024-03-10T14:00:00"},
        {"id": "p2", "type": "PROVA", "due_at": "2024-03-15T23:59:00"}
      ],
      "trails": {
        "p2": [{"id": "s1", "estimated_minutes": 90, "completed": false}]
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import FeedError
from ..domain.models import FeedPost, TrailStep

logger = logging.getLogger(__name__)


class JsonFeedClient:
    """
    Feed client reading posts and activity trails from a JSON file.

    Naive timestamps are interpreted in ``timezone``.
    """

    def __init__(self, data_file: Path | None = None, timezone: str = "Europe/Berlin", data: Optional[Dict[str, Any]] = None):
        """
        Initialize the client.

        Args:
            data_file: JSON file to read; ignored when ``data`` is given
            timezone: IANA timezone for naive timestamps
            data: Already-loaded feed mapping
        """
        self.data_file = data_file
        self.timezone = timezone
        self._data = data if data is not None else self._load_feed_data()

    def _load_feed_data(self) -> Dict[str, Any]:
        """Load feed data from the JSON file."""
        if self.data_file is None:
            return {}

        if not self.data_file.exists():
            logger.warning("Feed file %s not found, using an empty feed", self.data_file)
            return {}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise FeedError(f"Could not read feed file {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise FeedError("Feed file must contain a mapping at the root level.")
        return data

    def _parse_instant(self, value: Optional[str]) -> DateTime | None:
        if not value:
            return None
        try:
            return pendulum.parse(value, tz=self.timezone)
        except ValueError as exc:
            raise FeedError(f"Invalid timestamp in feed: {value!r}") from exc

    def get_posts(self) -> List[FeedPost]:
        """Return all posts of the feed."""
        posts: List[FeedPost] = []

        for item in self._data.get("posts", []):
            try:
                posts.append(
                    FeedPost(
                        id=str(item["id"]),
                        type=str(item.get("type", "")).upper(),
                        title=item.get("title", ""),
                        due_at=self._parse_instant(item.get("due_at")),
                        event_start_at=self._parse_instant(item.get("event_start_at")),
                        event_end_at=self._parse_instant(item.get("event_end_at")),
                    )
                )
            except KeyError as exc:
                raise FeedError(f"Feed post without {exc}") from exc

        return posts

    def get_trail_steps(self, activity_id: str) -> List[TrailStep] | None:
        """Return the work breakdown of an activity, or None if it has none."""
        steps = self._data.get("trails", {}).get(activity_id)
        if steps is None:
            return None

        trail: List[TrailStep] = []
        for index, step in enumerate(steps):
            try:
                estimated_minutes = int(step.get("estimated_minutes", 0))
            except (TypeError, ValueError) as exc:
                raise FeedError(
                    f"Invalid estimated_minutes in trail of {activity_id}: {step.get('estimated_minutes')!r}"
                ) from exc

            trail.append(
                TrailStep(
                    id=str(step.get("id", index)),
                    estimated_minutes=estimated_minutes,
                    completed=bool(step.get("completed", False)),
                )
            )
        return trail
