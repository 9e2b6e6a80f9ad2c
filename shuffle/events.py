"""Centralized event bus for decoupled component communication."""

from typing import Any, Callable, Dict, List
from shuffle.logging import get_logger

logger = get_logger(__name__)


class EventBus:
    """Publish-subscribe event system. Components publish/subscribe without knowing each other.

    Event Flow Architecture:
    - The UI calls the catalog and playback controller directly (intents)
    - Core objects (MusicLibrary, PlaybackController, RecentFolders) publish
      *_CHANGED events (notifications) that the UI renders
    """

    # =========================================================================
    # Core -> UI: State Change Notifications
    # =========================================================================

    # Playback (published by PlaybackController)
    # {"state": PlayerStatus.value, "track": Track?, "is_playing": bool}
    PLAYBACK_STATE_CHANGED = "playback.state_changed"
    # {"position": float, "duration": float}
    PLAYBACK_PROGRESS = "playback.progress"
    # {"volume": int, "muted": bool}
    VOLUME_CHANGED = "volume.changed"
    # {"track": Track?}
    TRACK_CHANGED = "track.changed"
    # {"error": PlaybackError, "track": Track?}
    PLAYBACK_ERROR = "playback.error"

    # Catalog (published by MusicLibrary)
    # {"folder": str}
    LIBRARY_SCAN_STARTED = "library.scan_started"
    # {"folder": str, "count": int}
    LIBRARY_CHANGED = "library.changed"
    # {"track": Track?}
    SELECTION_CHANGED = "library.selection_changed"

    # Recent folders (published by RecentFolders)
    # {"folders": List[str]}
    RECENT_FOLDERS_CHANGED = "recent_folders.changed"

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        if event not in self._subscribers:
            self._subscribers[event] = []
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        if event in self._subscribers:
            try:
                self._subscribers[event].remove(callback)
            except ValueError:
                pass

    def publish(self, event: str, data: Any = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(data)
            except Exception as e:
                logger.error(
                    "Error in event callback for %s: %s", event, e, exc_info=True
                )
