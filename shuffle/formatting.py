"""Display helpers for times and volume."""

import math

UNKNOWN_DURATION = "--:--"


def format_time(seconds: float) -> str:
    """Format seconds as m:ss (minutes are not padded)."""
    if not seconds or not math.isfinite(seconds) or seconds < 0:
        seconds = 0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def format_duration(seconds: float) -> str:
    """Like format_time, but a zero or unknown duration shows as --:--."""
    if not seconds or not math.isfinite(seconds) or seconds <= 0:
        return UNKNOWN_DURATION
    return format_time(seconds)


def volume_level(volume: float, muted: bool = False) -> str:
    """Speaker indicator level: muted, off, quiet, moderate or loud."""
    if muted:
        return "muted"
    if volume > 75:
        return "loud"
    if volume > 35:
        return "moderate"
    if volume > 0:
        return "quiet"
    return "off"
