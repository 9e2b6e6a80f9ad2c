"""Pytest configuration and fixtures."""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from shuffle.config import Config
from shuffle.engine import AudioEngine
from shuffle.events import EventBus
from shuffle.exceptions import PlaybackError
from shuffle.filesystem import DirectoryEntry, DirectoryLister
from shuffle.storage import MemoryKeyValueStore
from shuffle.track import Track


class FakeDirectoryLister(DirectoryLister):
    """Lists an in-memory tree.

    ``tree`` maps a directory path to its entry names (a trailing '/' marks
    a subdirectory) or to an exception to raise for that directory.
    """

    def __init__(self, tree: Dict[str, object]):
        self.tree = tree
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}

    async def list(self, path: str) -> List[DirectoryEntry]:
        self.calls.append(path)
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        if path not in self.tree:
            raise FileNotFoundError(path)
        value = self.tree[path]
        if isinstance(value, BaseException):
            raise value
        entries = []
        for name in value:
            if name.endswith('/'):
                entries.append(DirectoryEntry(name.rstrip('/'), True, False))
            else:
                entries.append(DirectoryEntry(name, False, True))
        return entries


class FakeAudioEngine(AudioEngine):
    """Records commands; commands named in ``fail_on`` raise PlaybackError."""

    def __init__(self):
        super().__init__()
        self.calls: List[tuple] = []
        self.fail_on: Set[str] = set()
        self.source: Optional[str] = None
        self.volume: Optional[float] = None
        self.load_gates: Dict[str, asyncio.Event] = {}

    def _command(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise PlaybackError(f"{name} rejected")

    def commands(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def set_source(self, uri: str) -> None:
        self.source = uri
        self._command("set_source", uri)

    async def load(self) -> None:
        gate = self.load_gates.get(self.source)
        self._command("load")
        if gate is not None:
            await gate.wait()

    async def play(self) -> None:
        self._command("play")

    async def pause(self) -> None:
        self._command("pause")

    async def set_current_time(self, seconds: float) -> None:
        self._command("set_current_time", seconds)

    def set_volume(self, level: float) -> None:
        self.volume = level
        self._command("set_volume", level)


class EventRecorder:
    """Collects everything published on an EventBus."""

    EVENTS = [
        value for name, value in vars(EventBus).items()
        if name.isupper() and isinstance(value, str)
    ]

    def __init__(self, event_bus: EventBus):
        self.events: List[tuple] = []
        for event in self.EVENTS:
            event_bus.subscribe(event, lambda data, event=event: self.events.append((event, data)))

    def of(self, event: str) -> list:
        return [data for name, data in self.events if name == event]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def config(monkeypatch, temp_dir):
    """Config singleton rooted in temporary XDG directories."""
    monkeypatch.setenv('XDG_CONFIG_HOME', str(temp_dir / 'config'))
    monkeypatch.setenv('XDG_CACHE_HOME', str(temp_dir / 'cache'))
    monkeypatch.setenv('XDG_DATA_HOME', str(temp_dir / 'data'))
    Config._instance = None
    yield Config.get_instance()
    Config._instance = None


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus)


@pytest.fixture
def engine():
    return FakeAudioEngine()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def music_tree():
    """The /music tree: two playable files and one text file."""
    return FakeDirectoryLister({
        '/music': ['a.mp3', 'sub/', 'c.txt'],
        '/music/sub': ['b.flac'],
    })


@pytest.fixture
def track():
    return Track(path='/music/a.mp3', name='a')


@pytest.fixture
def other_track():
    return Track(path='/music/sub/b.flac', name='b')


@pytest.fixture
def make_lister():
    """Factory for in-memory directory trees."""
    return FakeDirectoryLister
