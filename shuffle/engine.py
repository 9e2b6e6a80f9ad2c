"""Audio engine capability.

The controller talks to an ``AudioEngine``: commands go in, events come back
through listeners registered per event name. Commands that can suspend
(load, play, pause, seek) are coroutines and raise ``PlaybackError`` when the
engine rejects them.
"""

from typing import Any, Callable, Dict, List

from shuffle.logging import get_logger

logger = get_logger(__name__)

# Engine events
TIMEUPDATE = "timeupdate"  # data: position in seconds
LOADEDMETADATA = "loadedmetadata"  # data: duration in seconds
ENDED = "ended"  # data: None
ERROR = "error"  # data: PlaybackError

ENGINE_EVENTS = (TIMEUPDATE, LOADEDMETADATA, ENDED, ERROR)


class AudioEngine:
    """Base class for playback engines."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}

    def add_event_listener(self, event: str, callback: Callable[[Any], None]) -> None:
        if event not in ENGINE_EVENTS:
            raise ValueError(f"Unknown engine event: {event}")
        self._listeners.setdefault(event, []).append(callback)

    def remove_event_listener(self, event: str, callback: Callable[[Any], None]) -> None:
        try:
            self._listeners.get(event, []).remove(callback)
        except ValueError:
            pass

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, data: Any = None) -> None:
        """Deliver an event to its listeners in registration order."""
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(data)
            except Exception as e:
                logger.error("Error in engine listener for %s: %s", event, e, exc_info=True)

    # Commands

    def set_source(self, uri: str) -> None:
        raise NotImplementedError

    async def load(self) -> None:
        raise NotImplementedError

    async def play(self) -> None:
        raise NotImplementedError

    async def pause(self) -> None:
        raise NotImplementedError

    async def set_current_time(self, seconds: float) -> None:
        raise NotImplementedError

    def set_volume(self, level: float) -> None:
        """Set output level on the 0.0-1.0 scale."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release engine resources. Safe to call more than once."""
