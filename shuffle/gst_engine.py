"""GStreamer-based audio engine.

Wraps a ``playbin`` element behind the ``AudioEngine`` interface. Bus
messages and the playback position are polled from an asyncio task, so
engine events are delivered on the event loop thread in bus order.
"""

import asyncio
import contextlib
from typing import Optional

import gi
gi.require_version('Gst', '1.0')
from gi.repository import Gst

from shuffle.engine import ENDED, ERROR, LOADEDMETADATA, TIMEUPDATE, AudioEngine
from shuffle.exceptions import PlaybackError
from shuffle.logging import get_logger

logger = get_logger(__name__)

# GStreamer playbin flags
GST_FLAG_AUDIO = 0x02
GST_FLAG_SOFT_VOLUME = 0x10

# Polling intervals (seconds)
BUS_POLL_INTERVAL = 0.1
POSITION_UPDATE_INTERVAL = 0.5


class GstAudioEngine(AudioEngine):
    """Audio-only playback through GStreamer."""

    def __init__(self, bus_interval: float = BUS_POLL_INTERVAL,
                 position_interval: float = POSITION_UPDATE_INTERVAL):
        super().__init__()
        if not Gst.is_initialized():
            Gst.init(None)

        self._bus_interval = bus_interval
        self._position_interval = position_interval
        self._poll_task: Optional[asyncio.Task] = None
        self._last_position_report = 0.0
        self._playing = False
        self._duration = 0.0

        self.playbin = Gst.ElementFactory.make("playbin", "playbin")
        if not self.playbin:
            raise PlaybackError("Failed to create GStreamer playbin")
        try:
            self.playbin.set_property("flags", GST_FLAG_AUDIO | GST_FLAG_SOFT_VOLUME)
        except (AttributeError, TypeError):
            # Older playbin builds without the flags property
            pass
        self._bus = self.playbin.get_bus()

    def set_source(self, uri: str) -> None:
        self._require_playbin()
        self.playbin.set_state(Gst.State.NULL)
        self._playing = False
        self._duration = 0.0
        self.playbin.set_property("uri", uri)
        logger.debug("Engine source: %s", uri)

    async def load(self) -> None:
        self._require_playbin()
        self._change_state(Gst.State.PAUSED, "Failed to load track")
        self._ensure_polling()

    async def play(self) -> None:
        self._require_playbin()
        self._change_state(Gst.State.PLAYING, "Failed to start playback")
        self._playing = True
        self._ensure_polling()

    async def pause(self) -> None:
        self._require_playbin()
        self._change_state(Gst.State.PAUSED, "Failed to pause playback")
        self._playing = False

    async def set_current_time(self, seconds: float) -> None:
        self._require_playbin()
        success = self.playbin.seek_simple(
            Gst.Format.TIME,
            Gst.SeekFlags.FLUSH | Gst.SeekFlags.KEY_UNIT,
            int(max(0.0, seconds) * Gst.SECOND),
        )
        if not success:
            raise PlaybackError(f"Seek failed for position {seconds:.2f}s")

    def set_volume(self, level: float) -> None:
        if self.playbin:
            self.playbin.set_property("volume", max(0.0, min(1.0, level)))

    async def close(self) -> None:
        """Stop polling, stop playback and release the pipeline."""
        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None
        if self.playbin:
            self.playbin.set_state(Gst.State.NULL)
            self.playbin = None
        self._playing = False

    def _require_playbin(self) -> None:
        if self.playbin is None:
            raise PlaybackError("Audio engine is closed")

    def _change_state(self, state, message: str) -> None:
        ret = self.playbin.set_state(state)
        if ret == Gst.StateChangeReturn.FAILURE:
            raise PlaybackError(message)

    def _ensure_polling(self) -> None:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.get_running_loop().create_task(self._poll())

    async def _poll(self) -> None:
        loop = asyncio.get_running_loop()
        while self.playbin is not None:
            self.drain_bus()
            now = loop.time()
            if now - self._last_position_report >= self._position_interval:
                self._last_position_report = now
                self._report_position()
            await asyncio.sleep(self._bus_interval)

    def drain_bus(self) -> None:
        """Handle every message currently queued on the pipeline bus."""
        while self.playbin is not None:
            message = self._bus.pop()
            if message is None:
                return
            self._on_message(message)

    def _on_message(self, message) -> None:
        msg_type = message.type

        if msg_type == Gst.MessageType.ERROR:
            err, debug = message.parse_error()
            logger.error("Playback error: %s", err.message)
            if debug:
                logger.debug("GStreamer debug: %s", debug)
            self._log_codec_help(err.message, debug or "")
            self.playbin.set_state(Gst.State.NULL)
            self._playing = False
            self.emit(ERROR, PlaybackError(err.message))

        elif msg_type == Gst.MessageType.EOS:
            self._playing = False
            self.emit(ENDED)

        elif msg_type in (Gst.MessageType.DURATION_CHANGED, Gst.MessageType.ASYNC_DONE):
            self._report_duration()

    def _report_duration(self) -> None:
        success, duration = self.playbin.query_duration(Gst.Format.TIME)
        if not success or duration <= 0:
            return
        seconds = duration / Gst.SECOND
        if seconds != self._duration:
            self._duration = seconds
            self.emit(LOADEDMETADATA, seconds)

    def _report_position(self) -> None:
        if not self._playing or self.playbin is None:
            return
        success, position = self.playbin.query_position(Gst.Format.TIME)
        if success:
            self.emit(TIMEUPDATE, position / Gst.SECOND)

    def _log_codec_help(self, error: str, debug: str) -> None:
        """Log a hint when the failure looks like a missing decoder."""
        combined = (error + debug).lower()

        if 'flac' in combined:
            logger.warning("Missing FLAC support: install the GStreamer good plugins")
        elif 'mpeg' in combined or 'mp3' in combined:
            logger.warning("Missing MP3 support: install the GStreamer good/ugly plugins")
        elif 'missing' in combined or 'decoder' in combined:
            logger.warning("Missing codec: install gst-plugins-good and gst-plugins-bad")
