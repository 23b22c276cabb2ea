"""Playback-specific exceptions for error handling."""


class PlaybackError(Exception):
    """Base exception for playback operations."""

    pass


class NoPlayableSource(PlaybackError):
    """Raised when a track has no usable stream reference."""

    def __init__(self, track_id: str, message: str | None = None):
        self.track_id = track_id
        super().__init__(message or f"No playable stream for track {track_id}")


class LoadFailure(PlaybackError):
    """Raised when the transport cannot load or start a stream."""

    pass


class LoadInProgress(LoadFailure):
    """Raised when a load is requested while another one is still in flight."""

    pass


class QueueIndexError(PlaybackError, IndexError):
    """Raised when a queue edit references an index that does not exist."""

    def __init__(self, index: int, queue_length: int):
        self.index = index
        self.queue_length = queue_length
        super().__init__(f"Queue index {index} out of range (length {queue_length})")


class BackendError(PlaybackError):
    """Raised by audio backends when a command on a loaded handle fails."""

    pass


class BackendReplyError(BackendError):
    """Raised when the audio backend answers a command with an error reply."""

    def __init__(self, command: str, error: str):
        self.command = command
        self.error = error
        super().__init__(f"Command {command} returned {error}")
