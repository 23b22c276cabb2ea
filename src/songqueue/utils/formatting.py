"""Time formatting helpers for display."""

import math


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS. Zero, negative or missing values give 0:00."""
    if not seconds or math.isnan(seconds) or seconds < 0:
        return "0:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def format_millis(ms: int) -> str:
    """Format milliseconds as M:SS."""
    if not ms:
        return "0:00"
    return format_duration(ms / 1000)
