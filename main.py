#!/usr/bin/env python3
"""Shuffle - Main entry point.

Opens a music folder (the FOLDER argument, or the most recent one), lists
the tracks found and optionally plays one through GStreamer.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from shuffle.config import Config, get_config
from shuffle.events import EventBus
from shuffle.exceptions import PlaybackError
from shuffle.formatting import format_duration, format_time, volume_level
from shuffle.library import SORT_KEYS, MusicLibrary
from shuffle.logging import LinuxLogger, get_logger
from shuffle.playback_controller import PlaybackController, PlaybackState, PlayerStatus
from shuffle.recent_folders import RecentFolders
from shuffle.scanner import DirectoryScanner
from shuffle.storage import ConfigKeyValueStore
from shuffle.track import Track

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shuffle", description="Scan a music folder and play its tracks."
    )
    parser.add_argument("folder", nargs="?", help="music folder (default: most recent)")
    parser.add_argument("--play", type=int, metavar="N", help="play the N-th listed track")
    parser.add_argument("--volume", type=int, metavar="V", help="volume 0-100")
    parser.add_argument("--sort", choices=SORT_KEYS, help="sort the listing")
    parser.add_argument("--recent", action="store_true", help="list recent folders and exit")
    parser.add_argument("--clear-recent", action="store_true", help="forget recent folders")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    return parser


def print_tracks(tracks: List[Track]) -> None:
    if not tracks:
        print("No music files found")
        return
    width = len(str(len(tracks)))
    for index, track in enumerate(tracks, start=1):
        print(
            f"{index:>{width}}  {track.name}  [{track.artist} / {track.album}]"
            f"  {format_duration(track.duration)}"
        )


async def play_until_done(
    library: MusicLibrary, controller: PlaybackController, event_bus: EventBus, track: Track
) -> int:
    """Play ``track`` and wait for it to end or fail."""
    done = asyncio.Event()

    def on_state(data):
        if data["state"] == PlayerStatus.ENDED.value:
            done.set()

    def on_error(data):
        print(f"\nPlayback error: {data['error']}", file=sys.stderr)
        done.set()

    def on_progress(data):
        print(
            f"\r{format_time(data['position'])} / {format_duration(data['duration'])}",
            end="",
            flush=True,
        )

    event_bus.subscribe(EventBus.PLAYBACK_STATE_CHANGED, on_state)
    event_bus.subscribe(EventBus.PLAYBACK_ERROR, on_error)
    event_bus.subscribe(EventBus.PLAYBACK_PROGRESS, on_progress)
    try:
        async with controller:
            state = controller.state
            print(
                f"Playing: {track.name}"
                f"  (volume {state.volume:.0f}, {volume_level(state.volume, state.is_muted)})"
            )
            if await library.select(track):
                await done.wait()
    finally:
        event_bus.unsubscribe(EventBus.PLAYBACK_PROGRESS, on_progress)
        event_bus.unsubscribe(EventBus.PLAYBACK_ERROR, on_error)
        event_bus.unsubscribe(EventBus.PLAYBACK_STATE_CHANGED, on_state)
    print()
    return 1 if controller.last_error else 0


async def run(args: argparse.Namespace, config: Config) -> int:
    event_bus = EventBus()
    recent = RecentFolders(ConfigKeyValueStore(config), event_bus)

    if args.clear_recent:
        recent.clear()
        print("Recent folders cleared")
        return 0
    if args.recent:
        folders = recent.list()
        print("\n".join(folders) if folders else "No recent folders")
        return 0

    folder = args.folder or next(iter(recent.list()), None)
    if folder is None:
        print("No folder given and no recent folders", file=sys.stderr)
        return 1
    folder = os.path.abspath(folder)

    controller = None
    engine = None
    if args.play is not None:
        try:
            from shuffle.gst_engine import GstAudioEngine
            engine = GstAudioEngine()
        except (ImportError, ValueError, PlaybackError) as e:
            print(f"Audio engine unavailable: {e}", file=sys.stderr)
            return 1
        volume = args.volume if args.volume is not None else config.initial_volume
        controller = PlaybackController(
            engine, event_bus, PlaybackState(volume=max(0, min(100, volume)))
        )

    try:
        scanner = DirectoryScanner(
            extensions=config.supported_extensions,
            guard_cycles=config.guard_symlink_cycles,
        )
        library = MusicLibrary(scanner, event_bus, controller, recent)
        await library.open_folder(folder)
        tracks = library.sorted_tracks(args.sort) if args.sort else library.tracks

        print(folder)
        print_tracks(tracks)
        if controller is None:
            return 0
        if not 1 <= args.play <= len(tracks):
            print(f"No track number {args.play}", file=sys.stderr)
            return 1
        return await play_until_done(library, controller, event_bus, tracks[args.play - 1])
    finally:
        if engine is not None:
            await engine.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Initialize config (creates directories, loads settings)
    config = get_config()

    # Initialize logging (uses config for log directory)
    LinuxLogger(log_dir=config.log_dir)
    if args.debug:
        LinuxLogger.set_level(logging.DEBUG)

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        return 130


if __name__ == '__main__':
    sys.exit(main())
