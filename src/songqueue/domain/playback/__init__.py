"""Playback domain: transport adapter, queue coordinator and persistence."""

from .backend import AudioBackend, AudioHandle, BackendStatus
from .coordinator import PlayerCoordinator
from .exceptions import (
    BackendError,
    LoadFailure,
    LoadInProgress,
    NoPlayableSource,
    PlaybackError,
    QueueIndexError,
)
from .state import PlaybackPhase, PlaybackState, RepeatMode
from .transport import Transport, TransportStatus

__all__ = [
    "AudioBackend",
    "AudioHandle",
    "BackendError",
    "BackendStatus",
    "LoadFailure",
    "LoadInProgress",
    "NoPlayableSource",
    "PlaybackError",
    "PlaybackPhase",
    "PlaybackState",
    "PlayerCoordinator",
    "QueueIndexError",
    "RepeatMode",
    "Transport",
    "TransportStatus",
]
