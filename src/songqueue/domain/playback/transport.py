"""
Transport adapter over a single audio handle.

Owns the one active handle, serializes loads, and publishes status samples
tagged with a generation number. Every load_and_play and stop bumps the
generation; samples from a released handle are never published.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ..catalog.models import Track
from ..catalog.normalize import PREFERRED_STREAM_QUALITY, best_stream_url
from .backend import AudioBackend, AudioHandle
from .exceptions import BackendError, LoadFailure, LoadInProgress, NoPlayableSource

DEFAULT_STATUS_INTERVAL = 0.5  # seconds


@dataclass(frozen=True)
class TransportStatus:
    """Status event delivered to the coordinator."""

    generation: int
    is_playing: bool
    position_ms: int
    duration_ms: int
    did_finish: bool  # Edge: True exactly once per natural end of track


class Transport:
    """Single-handle audio transport with a generation-tagged status feed."""

    def __init__(
        self,
        backend: AudioBackend,
        *,
        status_interval: float = DEFAULT_STATUS_INTERVAL,
        preferred_quality: str = PREFERRED_STREAM_QUALITY,
    ):
        self._backend = backend
        self._status_interval = min(status_interval, DEFAULT_STATUS_INTERVAL)
        self._preferred_quality = preferred_quality
        self._handle: Optional[AudioHandle] = None
        self._generation = 0
        self._loading = False
        self._poll_task: Optional[asyncio.Task] = None
        self._subscriber: Optional[asyncio.Queue] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None

    @property
    def is_loading(self) -> bool:
        return self._loading

    def subscribe(self) -> "asyncio.Queue[TransportStatus]":
        """Return the status channel. Only one subscriber is supported.

        Raises:
            RuntimeError: If a subscriber already exists
        """
        if self._subscriber is not None:
            raise RuntimeError("Transport status feed already has a subscriber")
        self._subscriber = asyncio.Queue()
        return self._subscriber

    async def load_and_play(self, track: Track) -> int:
        """Release the current handle, load track and start playing it.

        Returns:
            Generation number of the new handle

        Raises:
            LoadInProgress: If another load has not finished yet
            NoPlayableSource: If the track has no stream variants
            LoadFailure: If the backend cannot open or start the stream
        """
        if self._loading:
            raise LoadInProgress(f"Load already in progress, rejected {track.id}")

        self._loading = True
        try:
            await self._release()
            self._generation += 1
            generation = self._generation

            url = best_stream_url(track.stream_variants, self._preferred_quality)
            if not url:
                raise NoPlayableSource(track.id)

            logger.info(f"Loading track {track.id} ({track.name}) gen={generation}")
            try:
                handle = await self._backend.open(url)
            except OSError as e:
                raise LoadFailure(f"Failed to open stream for {track.id}: {e}") from e

            try:
                await handle.play()
            except BackendError as e:
                await self._unload(handle)
                raise LoadFailure(f"Failed to start {track.id}: {e}") from e

            self._handle = handle
            self._poll_task = asyncio.create_task(self._poll(generation, handle))
            return generation
        finally:
            self._loading = False

    async def pause(self) -> None:
        if self._handle is None:
            return
        await self._handle.pause()

    async def resume(self) -> None:
        if self._handle is None:
            return
        await self._handle.play()

    async def seek(self, position_ms: int) -> None:
        if self._handle is None:
            return
        await self._handle.seek(max(0, int(position_ms)))

    async def stop(self) -> None:
        """Halt and release the current handle. Safe to call repeatedly."""
        had_handle = self._handle is not None
        await self._release()
        self._generation += 1
        if had_handle:
            logger.debug(f"Transport stopped, gen={self._generation}")

    async def _release(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        handle, self._handle = self._handle, None
        if handle is not None:
            await self._unload(handle)

    async def _unload(self, handle: AudioHandle) -> None:
        try:
            await handle.unload()
        except (BackendError, OSError) as e:
            logger.warning(f"Failed to unload audio handle: {e}")

    async def _poll(self, generation: int, handle: AudioHandle) -> None:
        """Sample the handle until it is released."""
        finish_emitted = False
        while True:
            try:
                sample = await handle.status()
            except (BackendError, OSError) as e:
                logger.debug(f"Status poll failed (gen={generation}): {e}")
            else:
                if generation != self._generation:
                    return

                did_finish = sample.reached_end and not finish_emitted
                # Re-arm once the handle leaves the end (repeat-one seeks back to 0)
                finish_emitted = sample.reached_end

                self._publish(
                    TransportStatus(
                        generation=generation,
                        is_playing=sample.is_playing and not sample.reached_end,
                        position_ms=sample.position_ms,
                        duration_ms=sample.duration_ms,
                        did_finish=did_finish,
                    )
                )
            await asyncio.sleep(self._status_interval)

    def _publish(self, status: TransportStatus) -> None:
        if self._subscriber is not None:
            self._subscriber.put_nowait(status)
