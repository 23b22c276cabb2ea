"""
Observable playback state.

PlaybackState is an immutable snapshot; the coordinator publishes a new
snapshot for every change and UI surfaces only ever read from it.
"""

from enum import Enum
from typing import NamedTuple, Optional

from ..catalog.models import Track


class RepeatMode(str, Enum):
    """Repeat behaviour applied when a track ends."""

    OFF = "off"  # Stop at the end of the queue
    ALL = "all"  # Wrap to the start of the queue
    ONE = "one"  # Loop the current track

    def cycle(self) -> "RepeatMode":
        """Next mode in the off -> all -> one -> off cycle."""
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]


class PlaybackPhase(str, Enum):
    """Derived state machine phase."""

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackState(NamedTuple):
    """Immutable playback state snapshot."""

    current_track: Optional[Track] = None
    cursor: int = -1
    is_playing: bool = False
    position_ms: int = 0
    duration_ms: int = 0
    is_busy_loading: bool = False
    shuffle: bool = False
    repeat_mode: RepeatMode = RepeatMode.OFF
    error: Optional[str] = None  # Last load failure, cleared on next successful load

    @property
    def phase(self) -> PlaybackPhase:
        if self.cursor == -1:
            return PlaybackPhase.IDLE
        if self.is_busy_loading:
            return PlaybackPhase.LOADING
        if self.is_playing:
            return PlaybackPhase.PLAYING
        return PlaybackPhase.PAUSED
