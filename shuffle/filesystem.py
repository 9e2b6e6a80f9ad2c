"""Directory listing and path helpers used by the scanner and the engine.

The scanner only ever sees ``DirectoryEntry`` values coming from a
``DirectoryLister``; ``LocalDirectoryLister`` is the implementation over the
real file system.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
from shuffle.logging import get_logger

logger = get_logger(__name__)

SEPARATORS = ('/', '\\')


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a listed directory."""

    name: str
    is_directory: bool
    is_file: bool


class DirectoryLister:
    """Non-recursive directory listing. ``list`` raises OSError on failure."""

    async def list(self, path: str) -> List[DirectoryEntry]:
        raise NotImplementedError


class LocalDirectoryLister(DirectoryLister):
    """Lists directories with ``os.scandir`` off the event loop thread."""

    async def list(self, path: str) -> List[DirectoryEntry]:
        return await asyncio.to_thread(self._list_sync, path)

    @staticmethod
    def _list_sync(path: str) -> List[DirectoryEntry]:
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    is_directory = entry.is_dir()
                    is_file = entry.is_file()
                except OSError as e:
                    # Dangling symlink or entry removed mid-listing
                    logger.debug("Cannot stat %s: %s", entry.path, e)
                    continue
                entries.append(DirectoryEntry(entry.name, is_directory, is_file))
        return entries


def join_path(parent: str, name: str) -> str:
    """Join with exactly one separator, whether or not ``parent`` ends in one."""
    if parent.endswith(SEPARATORS):
        return parent + name
    return parent + '/' + name


def path_to_uri(path: str) -> str:
    """Resolve a file-system path to the URI handed to the audio engine."""
    return Path(os.path.abspath(path)).as_uri()
