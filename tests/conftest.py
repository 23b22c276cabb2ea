"""Shared fixtures: track factory and an in-memory audio backend."""

import asyncio
from typing import Callable, Optional

import pytest

from songqueue.domain.catalog.models import MediaVariant, Track
from songqueue.domain.playback.backend import BackendStatus
from songqueue.domain.playback.exceptions import BackendError, LoadFailure


@pytest.fixture
def anyio_backend() -> str:
    """Playback runs on asyncio only."""
    return "asyncio"


def make_track(track_id: str, streams: Optional[list[str]] = None, **kwargs) -> Track:
    """Build a Track with one 320kbps stream unless streams is given."""
    if streams is None:
        streams = [f"https://cdn.example/{track_id}_320.mp4"]
    return Track(
        id=track_id,
        name=kwargs.pop("name", f"Song {track_id}"),
        duration_seconds=kwargs.pop("duration_seconds", 180.0),
        stream_variants=tuple(MediaVariant("320kbps", url) for url in streams),
        **kwargs,
    )


@pytest.fixture
def track_factory() -> Callable[..., Track]:
    return make_track


class FakeHandle:
    """AudioHandle whose status is set directly by tests."""

    def __init__(self, url: str):
        self.url = url
        self.is_playing = False
        self.position_ms = 0
        self.duration_ms = 180_000
        self.reached_end = False
        self.unloaded = False
        self.calls: list[str] = []

    async def play(self) -> None:
        self.calls.append("play")
        self.is_playing = True

    async def pause(self) -> None:
        self.calls.append("pause")
        self.is_playing = False

    async def seek(self, position_ms: int) -> None:
        self.calls.append(f"seek:{position_ms}")
        self.position_ms = position_ms
        self.reached_end = False

    async def status(self) -> BackendStatus:
        if self.unloaded:
            raise BackendError("unloaded")
        return BackendStatus(
            is_playing=self.is_playing,
            position_ms=self.position_ms,
            duration_ms=self.duration_ms,
            reached_end=self.reached_end,
        )

    async def unload(self) -> None:
        self.calls.append("unload")
        self.unloaded = True

    def finish(self) -> None:
        """Simulate a natural end of media."""
        self.is_playing = False
        self.position_ms = self.duration_ms
        self.reached_end = True


class FakeBackend:
    """AudioBackend that hands out FakeHandles.

    URLs listed in failing_urls raise LoadFailure. When gate is set to an
    unset asyncio.Event, open() blocks until the event is set.
    """

    def __init__(self):
        self.opened: list[str] = []
        self.handles: list[FakeHandle] = []
        self.failing_urls: set[str] = set()
        self.gate: Optional[asyncio.Event] = None

    @property
    def current(self) -> Optional[FakeHandle]:
        return self.handles[-1] if self.handles else None

    async def open(self, url: str) -> FakeHandle:
        self.opened.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if url in self.failing_urls:
            raise LoadFailure(f"cannot decode {url}")
        handle = FakeHandle(url)
        self.handles.append(handle)
        return handle


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
