"""Playback controller - single playback session over an audio engine.

UI intents (select, toggle, seek, volume, mute) become engine commands, and
engine events (time update, metadata, ended, error) are folded back into one
``PlaybackState``. All state changes go through this class and are published
on the event bus.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
from shuffle.engine import ENDED, ERROR, LOADEDMETADATA, TIMEUPDATE, AudioEngine
from shuffle.events import EventBus
from shuffle.exceptions import PlaybackError
from shuffle.filesystem import path_to_uri
from shuffle.logging import get_logger
from shuffle.track import Track

logger = get_logger(__name__)


class PlayerStatus(Enum):
    """State machine for the playback session."""

    IDLE = "idle"  # No track
    LOADING = "loading"  # Source assigned, waiting for the engine
    PLAYING = "playing"
    PAUSED = "paused"  # Includes a track the engine rejected
    ENDED = "ended"  # Reached the end; replay or select to leave


@dataclass
class PlaybackState:
    """UI-observable playback state, owned by one PlaybackController.

    ``current_time`` follows the engine only while ``is_seeking`` is False;
    during a drag it holds the local preview position.
    """

    current_track: Optional[Track] = None
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    volume: float = 100.0
    is_muted: bool = False
    is_seeking: bool = False
    status: PlayerStatus = PlayerStatus.IDLE

    @property
    def output_level(self) -> float:
        """Level sent to the engine, 0.0-1.0."""
        return 0.0 if self.is_muted else self.volume / 100.0


class EngineSubscription:
    """A set of engine listeners registered and removed as a unit.

    Usable as a context manager; ``release`` is idempotent so it can sit in
    every teardown path.
    """

    def __init__(self, engine: AudioEngine, handlers: Dict[str, Callable[[Any], None]]):
        self._engine = engine
        self._handlers = dict(handlers)
        self._registered: List[Tuple[str, Callable[[Any], None]]] = []

    @property
    def active(self) -> bool:
        return bool(self._registered)

    def acquire(self) -> "EngineSubscription":
        if self._registered:
            return self
        try:
            for event, callback in self._handlers.items():
                self._engine.add_event_listener(event, callback)
                self._registered.append((event, callback))
        except Exception:
            self.release()
            raise
        return self

    def release(self) -> None:
        while self._registered:
            event, callback = self._registered.pop()
            self._engine.remove_event_listener(event, callback)

    def __enter__(self) -> "EngineSubscription":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class PlaybackController:
    """Owns "what should be playing" and keeps it consistent with the engine.

    Use as an async context manager (or call ``attach``/``detach``) so engine
    listeners exist exactly as long as the controller is live.
    """

    def __init__(
        self,
        engine: AudioEngine,
        event_bus: EventBus,
        state: Optional[PlaybackState] = None,
        resolve_uri: Callable[[str], str] = path_to_uri,
    ):
        self._engine = engine
        self._events = event_bus
        self._state = state if state is not None else PlaybackState()
        self._resolve_uri = resolve_uri
        self._subscription = EngineSubscription(
            engine,
            {
                TIMEUPDATE: self.on_time_update,
                LOADEDMETADATA: self.on_metadata_ready,
                ENDED: self.on_ended,
                ERROR: self.on_engine_error,
            },
        )
        # Bumped on every selection; a load that finishes with an older
        # token lost the race to a newer selection.
        self._load_token = 0
        self.last_error: Optional[PlaybackError] = None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_attached(self) -> bool:
        return self._subscription.active

    # ============================================================================
    # Lifecycle
    # ============================================================================

    def attach(self) -> None:
        """Register engine listeners and push the current output level."""
        self._subscription.acquire()
        self._engine.set_volume(self._state.output_level)

    async def detach(self) -> None:
        """Stop playback and remove every engine listener."""
        try:
            if self._state.is_playing:
                await self._engine.pause()
        except PlaybackError as e:
            logger.warning("Pause on teardown failed: %s", e)
        finally:
            self._subscription.release()
            if self._state.is_playing:
                self._state.is_playing = False
                self._state.status = PlayerStatus.PAUSED
                self._publish_state()

    async def __aenter__(self) -> "PlaybackController":
        self.attach()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.detach()

    # ============================================================================
    # UI intents
    # ============================================================================

    async def select_track(self, track: Track) -> bool:
        """Load ``track`` and start playing it.

        Returns:
            True if the engine accepted the track and this is still the
            latest selection
        """
        self._load_token += 1
        token = self._load_token

        state = self._state
        state.current_track = track
        state.current_time = 0.0
        state.duration = 0.0
        state.is_seeking = False
        state.is_playing = True
        state.status = PlayerStatus.LOADING
        self.last_error = None
        self._events.publish(EventBus.TRACK_CHANGED, {"track": track})
        self._publish_state()
        self._publish_progress()

        try:
            self._engine.set_source(self._resolve_uri(track.path))
            await self._engine.load()
            if self._still_loading(token):
                await self._engine.play()
        except PlaybackError as e:
            if token == self._load_token:
                self._fail(e)
            return False

        if token != self._load_token:
            logger.debug("Discarding superseded load of %s", track.path)
            return False
        if state.status is not PlayerStatus.LOADING:
            # Paused, failed or stopped while the engine was loading
            logger.debug("Load of %s interrupted (%s)", track.path, state.status.value)
            return False
        state.status = PlayerStatus.PLAYING
        self._publish_state()
        logger.info("Playing %s", track.path)
        return True

    async def toggle_play_pause(self) -> None:
        """Pause if playing, play otherwise. No-op without a track."""
        state = self._state
        track = state.current_track
        if track is None:
            return
        if state.status == PlayerStatus.ENDED:
            await self.select_track(track)
            return

        if state.is_playing:
            state.is_playing = False
            state.status = PlayerStatus.PAUSED
            self._publish_state()
            try:
                await self._engine.pause()
            except PlaybackError as e:
                self._fail(e)
        else:
            state.is_playing = True
            state.status = PlayerStatus.PLAYING
            self._publish_state()
            try:
                await self._engine.play()
            except PlaybackError as e:
                self._fail(e)

    def seek_start(self) -> None:
        """Begin a drag: engine time updates stop driving current_time."""
        if self._state.current_track is None:
            return
        self._state.is_seeking = True

    def seek_preview(self, seconds: float) -> None:
        """Move the displayed position during a drag without touching the engine."""
        if not self._state.is_seeking:
            return
        self._state.current_time = self._clamp(seconds)
        self._publish_progress()

    async def seek_commit(self, seconds: float) -> None:
        """End a drag by sending exactly one seek to the engine."""
        if self._state.current_track is None:
            return
        await self._commit_seek(seconds)

    async def seek_to_fraction(self, fraction: float) -> None:
        """Jump to ``fraction`` of the track (a click on the progress bar)."""
        if self._state.current_track is None:
            return
        fraction = max(0.0, min(1.0, fraction))
        self._state.is_seeking = True
        await self._commit_seek(fraction * self._state.duration)

    def set_volume(self, volume: float) -> None:
        """Set volume on the 0..100 scale; raising it above 0 unmutes."""
        state = self._state
        state.volume = max(0.0, min(100.0, volume))
        if state.volume > 0 and state.is_muted:
            state.is_muted = False
        self._push_volume()

    def toggle_mute(self) -> None:
        """Flip mute; the stored volume is left alone so unmuting restores it."""
        self._state.is_muted = not self._state.is_muted
        self._push_volume()

    # ============================================================================
    # Engine events
    # ============================================================================

    def on_time_update(self, seconds: float) -> None:
        # While loading, updates still describe the previous source
        if self._state.is_seeking or self._state.status is PlayerStatus.LOADING:
            return
        self._state.current_time = float(seconds)
        self._publish_progress()

    def on_metadata_ready(self, duration: float) -> None:
        duration = float(duration)
        if not math.isfinite(duration) or duration < 0:
            logger.debug("Ignoring unusable duration %r", duration)
            return
        self._state.duration = duration
        self._publish_progress()

    def on_ended(self, data: Any = None) -> None:
        state = self._state
        state.is_playing = False
        state.current_time = 0.0
        state.status = PlayerStatus.ENDED if state.current_track else PlayerStatus.IDLE
        self._publish_state()
        self._publish_progress()

    def on_engine_error(self, error: Any) -> None:
        if not isinstance(error, PlaybackError):
            error = PlaybackError(str(error))
        self._fail(error)

    # ============================================================================
    # Helpers
    # ============================================================================

    async def _commit_seek(self, seconds: float) -> None:
        state = self._state
        position = self._clamp(seconds)
        try:
            await self._engine.set_current_time(position)
            state.current_time = position
        except PlaybackError as e:
            self._fail(e)
        finally:
            state.is_seeking = False
        self._publish_progress()

    def _still_loading(self, token: int) -> bool:
        return token == self._load_token and self._state.status is PlayerStatus.LOADING

    def _clamp(self, seconds: float) -> float:
        seconds = max(0.0, float(seconds))
        if self._state.duration > 0:
            seconds = min(seconds, self._state.duration)
        return seconds

    def _fail(self, error: PlaybackError) -> None:
        """Record an engine rejection; the session stays usable."""
        state = self._state
        if error.track is None:
            error.track = state.current_track
        state.is_playing = False
        state.status = PlayerStatus.PAUSED if state.current_track else PlayerStatus.IDLE
        self.last_error = error
        logger.error("Playback error: %s", error)
        self._publish_state()
        self._events.publish(
            EventBus.PLAYBACK_ERROR, {"error": error, "track": error.track}
        )

    def _push_volume(self) -> None:
        self._engine.set_volume(self._state.output_level)
        self._events.publish(
            EventBus.VOLUME_CHANGED,
            {"volume": self._state.volume, "muted": self._state.is_muted},
        )

    def _publish_state(self) -> None:
        state = self._state
        self._events.publish(
            EventBus.PLAYBACK_STATE_CHANGED,
            {
                "state": state.status.value,
                "track": state.current_track,
                "is_playing": state.is_playing,
            },
        )

    def _publish_progress(self) -> None:
        self._events.publish(
            EventBus.PLAYBACK_PROGRESS,
            {"position": self._state.current_time, "duration": self._state.duration},
        )
