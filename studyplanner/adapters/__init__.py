"""
Adapters layer - Feed data and snapshot files.
"""

from .feed_client import JsonFeedClient
from .snapshot_file import SnapshotFile

__all__ = ["JsonFeedClient", "SnapshotFile"]
