"""Music library: the tracks of the open folder and the current selection."""

from typing import List, Optional, TYPE_CHECKING

from shuffle.events import EventBus
from shuffle.logging import get_logger
from shuffle.scanner import DirectoryScanner
from shuffle.track import Track

if TYPE_CHECKING:
    from shuffle.playback_controller import PlaybackController
    from shuffle.recent_folders import RecentFolders

logger = get_logger(__name__)

SORT_KEYS = ("name", "artist", "album", "path")


class MusicLibrary:
    """Holds the result of the latest scan and the user's selection.

    The track list is replaced wholesale by each scan. The selection is
    only cleared explicitly, so it survives a re-scan even when its file is
    gone.
    """

    def __init__(
        self,
        scanner: DirectoryScanner,
        event_bus: EventBus,
        playback: Optional["PlaybackController"] = None,
        recent_folders: Optional["RecentFolders"] = None,
    ):
        self._scanner = scanner
        self._events = event_bus
        self._playback = playback
        self._recent_folders = recent_folders
        self._tracks: List[Track] = []
        self._selected: Optional[Track] = None
        self._folder: Optional[str] = None
        self._scan_generation = 0
        self._pending_scans = 0

    @property
    def tracks(self) -> List[Track]:
        """Tracks in scan order (read-only copy)."""
        return self._tracks.copy()

    @property
    def selected_track(self) -> Optional[Track]:
        return self._selected

    @property
    def folder(self) -> Optional[str]:
        """Folder the current track list came from."""
        return self._folder

    def is_scanning(self) -> bool:
        return self._pending_scans > 0

    def replace_tracks(self, tracks: List[Track], folder: Optional[str] = None) -> None:
        self._tracks = list(tracks)
        self._folder = folder
        self._events.publish(
            EventBus.LIBRARY_CHANGED, {"folder": folder, "count": len(self._tracks)}
        )

    async def open_folder(self, path: str) -> List[Track]:
        """Scan ``path`` and make it the library contents.

        When a newer ``open_folder`` call starts before this one finishes,
        this result is dropped and the newer one wins.
        """
        self._scan_generation += 1
        generation = self._scan_generation
        if self._recent_folders is not None:
            self._recent_folders.add(path)
        self._events.publish(EventBus.LIBRARY_SCAN_STARTED, {"folder": path})

        self._pending_scans += 1
        try:
            tracks = await self._scanner.scan(path)
        finally:
            self._pending_scans -= 1

        if generation != self._scan_generation:
            logger.debug("Discarding stale scan of %s", path)
            return self.tracks
        self.replace_tracks(tracks, folder=path)
        return self.tracks

    async def select(self, track: Track) -> bool:
        """Select ``track`` and hand it to the playback controller."""
        self._selected = track
        self._events.publish(EventBus.SELECTION_CHANGED, {"track": track})
        if self._playback is None:
            return False
        return await self._playback.select_track(track)

    def clear_selection(self) -> None:
        if self._selected is None:
            return
        self._selected = None
        self._events.publish(EventBus.SELECTION_CHANGED, {"track": None})

    def sorted_tracks(self, key: str = "name") -> List[Track]:
        """Tracks ordered for display, case-insensitively, ties broken by path."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        return sorted(
            self._tracks, key=lambda t: (str(getattr(t, key)).lower(), t.path)
        )
