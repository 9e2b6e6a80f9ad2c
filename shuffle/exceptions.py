"""Custom exception hierarchy for the player core.

No error raised here is fatal to the process: each one narrows to a single
operation that did not complete.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from shuffle.track import Track


class ShuffleError(Exception):
    """Base exception for all player errors."""

    pass


class ScanError(ShuffleError):
    """A directory could not be listed; its subtree is skipped."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"Cannot read directory {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class TrackProcessingError(ShuffleError):
    """A single file could not be turned into a Track."""

    pass


class PlaybackError(ShuffleError):
    """The audio engine rejected a load, play, pause or seek command."""

    def __init__(self, message: str, track: Optional["Track"] = None):
        super().__init__(message)
        self.track = track


class PersistenceError(ShuffleError):
    """The key-value store could not be read or written."""

    pass

