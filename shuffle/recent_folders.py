"""Most-recently-used list of opened music folders."""

import json
from typing import List, Optional

from shuffle.events import EventBus
from shuffle.exceptions import PersistenceError
from shuffle.logging import get_logger
from shuffle.storage import KeyValueStore

logger = get_logger(__name__)

RECENT_FOLDERS_KEY = "recentFolders"
MAX_RECENT_FOLDERS = 5


class RecentFolders:
    """Bounded MRU registry, persisted as one JSON array under a fixed key.

    Storage failures never propagate: a bad or missing value loads as an
    empty list and failed writes are logged and dropped.
    """

    def __init__(
        self,
        store: KeyValueStore,
        event_bus: Optional[EventBus] = None,
        key: str = RECENT_FOLDERS_KEY,
        limit: int = MAX_RECENT_FOLDERS,
    ):
        self._store = store
        self._events = event_bus
        self._key = key
        self._limit = limit
        self._folders: List[str] = self._load()

    def _load(self) -> List[str]:
        try:
            raw = self._store.get(self._key)
        except PersistenceError as e:
            logger.warning("Could not read recent folders: %s", e)
            return []
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.warning("Ignoring corrupt recent folders value: %s", e)
            return []
        if not isinstance(value, list):
            logger.warning("Ignoring recent folders value of type %s", type(value).__name__)
            return []

        folders: List[str] = []
        for item in value:
            if isinstance(item, str) and item and item not in folders:
                folders.append(item)
        return folders[: self._limit]

    def add(self, path: str) -> None:
        """Move ``path`` to the front, dropping entries past the limit."""
        folders = [folder for folder in self._folders if folder != path]
        self._folders = [path, *folders][: self._limit]
        self._save()
        self._publish()

    def list(self) -> List[str]:
        """Folders, most recent first."""
        return self._folders.copy()

    def clear(self) -> None:
        self._folders = []
        try:
            self._store.remove(self._key)
        except PersistenceError as e:
            logger.warning("Could not remove recent folders: %s", e)
        self._publish()

    def __len__(self) -> int:
        return len(self._folders)

    def _save(self) -> None:
        try:
            self._store.set(self._key, json.dumps(self._folders))
        except PersistenceError as e:
            logger.warning("Could not save recent folders: %s", e)

    def _publish(self) -> None:
        if self._events:
            self._events.publish(
                EventBus.RECENT_FOLDERS_CHANGED, {"folders": self.list()}
            )
