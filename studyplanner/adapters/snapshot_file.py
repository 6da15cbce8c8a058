"""
JSON file persistence for block store snapshots, used by the CLI.
"""

import json
import logging
from pathlib import Path
from typing import Any

from ..domain.block_store import BlockStore
from ..domain.exceptions import SnapshotError

logger = logging.getLogger(__name__)


class SnapshotFile:
    """Reads and writes ``BlockStore`` snapshots as JSON."""

    def __init__(self, path: Path):
        self.path = path

    def load(self, **store_options: Any) -> BlockStore:
        """
        Restore the store, or return an empty one if the file does not exist.

        Raises:
            SnapshotError: if the file is unreadable or malformed
        """
        if not self.path.exists():
            logger.debug("No snapshot at %s, starting empty", self.path)
            return BlockStore(**store_options)

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(f"Could not read snapshot {self.path}: {exc}") from exc

        return BlockStore.from_snapshot(data, **store_options)

    def save(self, store: BlockStore) -> None:
        """Write the snapshot atomically by replacing the file."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(store.to_snapshot(), f, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise SnapshotError(f"Could not write snapshot {self.path}: {exc}") from exc
        logger.debug("Saved %d block(s) to %s", len(store), self.path)
