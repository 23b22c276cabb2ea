"""
Audio backend contract.

The transport drives exactly one AudioHandle at a time. Backends are free to
implement the handle on top of any player; mpv is the shipped implementation
and tests use an in-memory fake.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class BackendStatus:
    """Raw status sample reported by a loaded handle."""

    is_playing: bool
    position_ms: int
    duration_ms: int
    reached_end: bool  # Level signal: True while the handle sits at end of media


class AudioHandle(Protocol):
    """One loaded stream. Invalid after unload()."""

    async def play(self) -> None: ...

    async def pause(self) -> None: ...

    async def seek(self, position_ms: int) -> None: ...

    async def status(self) -> BackendStatus: ...

    async def unload(self) -> None: ...


class AudioBackend(Protocol):
    """Factory for audio handles."""

    async def open(self, url: str) -> AudioHandle:
        """Load url and return a handle ready to play.

        Raises:
            LoadFailure: If the stream cannot be opened or decoded
        """
        ...
