"""Track records produced by the directory scanner."""

from dataclasses import dataclass

# Extensions without the dot, compared lowercase
SUPPORTED_EXTENSIONS = frozenset({'mp3', 'wav', 'flac', 'ogg'})

UNKNOWN = "Unknown"


def get_extension(file_name: str) -> str:
    """Return the lowercase text after the last dot, or '' if there is none."""
    stem, dot, extension = file_name.rpartition('.')
    if not dot:
        return ''
    return extension.lower()


def strip_extension(file_name: str) -> str:
    """Drop the last extension: 'song.live.mp3' -> 'song.live'."""
    stem, dot, _ = file_name.rpartition('.')
    if not dot:
        return file_name
    return stem


@dataclass(frozen=True)
class Track:
    """One playable audio file.

    ``path`` is the unique key. Titles fall back to the file name without its
    extension; artist, album and duration stay at their defaults until a
    metadata stage exists.
    """

    path: str
    name: str
    artist: str = UNKNOWN
    album: str = UNKNOWN
    duration: float = 0.0

    def __post_init__(self):
        if not self.path:
            raise ValueError("Track path must not be empty")
        if self.duration < 0:
            raise ValueError(f"Negative duration for {self.path}")

    @classmethod
    def from_file(cls, path: str, file_name: str) -> 'Track':
        """Build a Track with fallback metadata for a discovered file."""
        title = strip_extension(file_name) or file_name
        return cls(path=path, name=title)
