"""Music folder scanning.

Walks a root directory depth-first and turns every supported audio file into
a ``Track``. Directory order is whatever the lister returns; sorting is left
to the presentation layer.
"""

import os
from typing import AbstractSet, Iterator, List, Optional, Set, Tuple

from shuffle.exceptions import ScanError, TrackProcessingError
from shuffle.filesystem import DirectoryEntry, DirectoryLister, LocalDirectoryLister, join_path
from shuffle.logging import get_logger
from shuffle.track import SUPPORTED_EXTENSIONS, Track, get_extension

logger = get_logger(__name__)


class DirectoryScanner:
    """Finds playable files below a root path.

    ``scan`` never raises: unreadable directories are logged and skipped, and
    the errors of the most recently finished scan are kept in ``errors``.
    """

    def __init__(
        self,
        lister: Optional[DirectoryLister] = None,
        extensions: AbstractSet[str] = SUPPORTED_EXTENSIONS,
        guard_cycles: bool = True,
    ):
        self._lister = lister or LocalDirectoryLister()
        self._extensions = frozenset(ext.lower() for ext in extensions)
        self._guard_cycles = guard_cycles
        self.errors: List[Exception] = []

    def is_supported(self, file_name: str) -> bool:
        """Check a file name against the supported extension set."""
        extension = get_extension(file_name)
        return bool(extension) and extension in self._extensions

    async def scan(self, root: str) -> List[Track]:
        """Scan ``root`` recursively and return its tracks in traversal order."""
        errors: List[Exception] = []
        tracks: List[Track] = []

        root_entries = await self._list(root, errors)
        if root_entries is None:
            self.errors = errors
            return tracks

        # Real paths of the directories on the stack; a directory is skipped
        # only when it is its own ancestor.
        ancestors: Set[str] = set()
        root_real = self._enter(root, ancestors)

        # Stack of (directory path, real path, remaining entries): same order
        # as recursing into each subdirectory the moment it is listed.
        stack: List[Tuple[str, Optional[str], Iterator[DirectoryEntry]]] = [
            (root, root_real, iter(root_entries))
        ]
        while stack:
            directory, real_path, entries = stack[-1]
            entry = next(entries, None)
            if entry is None:
                stack.pop()
                ancestors.discard(real_path)
                continue

            full_path = join_path(directory, entry.name)
            if entry.is_directory:
                if self._real_path(full_path) in ancestors:
                    logger.warning("Skipping symlink cycle at %s", full_path)
                    continue
                sub_entries = await self._list(full_path, errors)
                if sub_entries is not None:
                    sub_real = self._enter(full_path, ancestors)
                    stack.append((full_path, sub_real, iter(sub_entries)))
            elif entry.is_file and self.is_supported(entry.name):
                track = self._make_track(full_path, entry.name, errors)
                if track is not None:
                    tracks.append(track)

        self.errors = errors
        logger.info("Scanned %s: %d tracks, %d errors", root, len(tracks), len(errors))
        return tracks

    async def _list(self, path: str, errors: List[Exception]) -> Optional[List[DirectoryEntry]]:
        try:
            return list(await self._lister.list(path))
        except OSError as e:
            error = ScanError(path, e)
            errors.append(error)
            logger.warning("Skipping subtree: %s", error)
            return None

    def _real_path(self, path: str) -> Optional[str]:
        if not self._guard_cycles:
            return None
        return os.path.realpath(path)

    def _enter(self, path: str, ancestors: Set[str]) -> Optional[str]:
        """Push a directory onto the ancestor chain; returns its real path."""
        real_path = self._real_path(path)
        if real_path is not None:
            ancestors.add(real_path)
        return real_path

    def _make_track(self, path: str, file_name: str, errors: List[Exception]) -> Optional[Track]:
        try:
            return Track.from_file(path, file_name)
        except ValueError as e:
            error = TrackProcessingError(f"Cannot process {path}: {e}")
            errors.append(error)
            logger.warning("Skipping file: %s", error)
            return None
