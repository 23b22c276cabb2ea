"""
Queue/transport coordinator.

Owns the queue, the cursor and the shuffle/repeat modes, turns user intents
into transport commands, applies transport status and auto-advances when a
track finishes. Every intent and every status event runs under one lock, so
state is consistent at every await point.
"""

import asyncio
import random
from typing import Callable, Optional, Sequence

from loguru import logger

from songqueue.core.storage import KeyValueStore

from ..catalog.models import Track
from . import queue as queue_ops
from .exceptions import PlaybackError
from .persistence import PersistenceWriter, load_persisted
from .state import PlaybackState, RepeatMode
from .transport import Transport, TransportStatus

# play_previous restarts the current track instead of skipping back past this
RESTART_THRESHOLD_MS = 3000

StateListener = Callable[[PlaybackState], None]


class PlayerCoordinator:
    """The single owner of queue and playback state."""

    def __init__(
        self,
        transport: Transport,
        store: KeyValueStore,
        *,
        rng: Optional[random.Random] = None,
        restart_threshold_ms: int = RESTART_THRESHOLD_MS,
    ):
        self._transport = transport
        self._store = store
        self._writer = PersistenceWriter(store)
        self._rng = rng or random.Random()
        self._restart_threshold_ms = restart_threshold_ms

        self._state = PlaybackState()
        self._queue: list[Track] = []
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []
        self._pump_task: Optional[asyncio.Task] = None
        self._ended = False  # Stopped at end of queue with repeat off

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def queue(self) -> tuple[Track, ...]:
        return tuple(self._queue)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with every new state snapshot.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes) -> None:
        self._state = self._state._replace(**changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception(f"State listener {listener!r} failed")

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Start consuming the transport status feed."""
        if self._pump_task is not None:
            return
        feed = self._transport.subscribe()
        self._pump_task = asyncio.create_task(self._pump(feed))

    async def close(self) -> None:
        """Stop the pump and the transport, then flush pending writes."""
        if self._pump_task is not None:
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
            self._pump_task = None
        async with self._lock:
            await self._transport.stop()
            self._update(is_playing=False)
        await self._writer.flush()

    async def flush(self) -> None:
        """Wait for detached persistence writes to finish."""
        await self._writer.flush()

    async def _pump(self, feed: "asyncio.Queue[TransportStatus]") -> None:
        while True:
            status = await feed.get()
            try:
                await self.on_transport_status(status)
            except PlaybackError as e:
                logger.error(f"Auto-advance failed: {e}")
            except Exception:
                logger.exception("Transport status handling failed")

    # -- restore -----------------------------------------------------------

    async def load_persisted_data(self) -> None:
        """Restore the saved queue and last track without loading audio."""
        queue, last_track = await asyncio.to_thread(load_persisted, self._store)

        async with self._lock:
            self._queue = queue
            if last_track is None or not queue:
                self._update(current_track=None, cursor=-1, is_playing=False)
                logger.info(f"Restored queue with {len(queue)} tracks")
                return

            cursor = queue_ops.find_track_index(queue, last_track.id)
            current = last_track
            if cursor == -1:
                cursor = 0
                current = queue[0]

            self._update(
                current_track=current,
                cursor=cursor,
                is_playing=False,
                position_ms=0,
                duration_ms=int(current.duration_seconds * 1000),
            )
            logger.info(
                f"Restored queue with {len(queue)} tracks, current: {current.name}"
            )

    # -- transport intents -------------------------------------------------

    async def play_track(
        self, track: Track, new_queue: Optional[Sequence[Track]] = None
    ) -> None:
        """Make track current and start playing it.

        With new_queue the queue is replaced first; otherwise the current
        queue is reused and track is appended if it is not queued yet.

        Raises:
            NoPlayableSource: If the track has no stream
            LoadFailure: If the transport cannot load it
        """
        async with self._lock:
            queue = list(new_queue) if new_queue is not None else list(self._queue)
            index = queue_ops.find_track_index(queue, track.id)
            if index == -1:
                queue.append(track)
                index = len(queue) - 1
            self._queue = queue
            await self._load_at(index, track)

    async def _load_at(self, index: int, track: Optional[Track] = None) -> None:
        """Commit the cursor to index and load the track there.

        The cursor change is kept even if loading fails.
        """
        track = track or self._queue[index]
        self._ended = False
        self._update(
            current_track=track,
            cursor=index,
            is_playing=False,
            position_ms=0,
            duration_ms=int(track.duration_seconds * 1000),
            is_busy_loading=True,
            error=None,
        )
        self._writer.save_queue(self._queue)
        self._writer.save_last_track(track)

        try:
            await self._transport.load_and_play(track)
        except PlaybackError as e:
            logger.warning(f"Failed to play {track.id} ({track.name}): {e}")
            self._update(is_busy_loading=False, is_playing=False, error=str(e))
            raise

        self._update(is_busy_loading=False, is_playing=True, position_ms=0)

    async def toggle_play_pause(self) -> None:
        """Pause while playing, resume while paused. No-op when idle."""
        async with self._lock:
            state = self._state
            if state.cursor == -1 or state.is_busy_loading:
                return

            if state.is_playing:
                await self._transport.pause()
                self._update(is_playing=False)
                return

            if not self._transport.is_loaded:
                # Restored from storage, or stopped: load the current track
                await self._load_at(state.cursor, state.current_track)
                return

            if self._ended:
                self._ended = False
                await self._transport.seek(0)
                self._update(position_ms=0)
            await self._transport.resume()
            self._update(is_playing=True)

    async def seek_to(self, position_ms: int) -> None:
        """Seek within the loaded track. No-op when nothing is loaded."""
        async with self._lock:
            if self._state.cursor == -1 or not self._transport.is_loaded:
                return
            position_ms = max(0, int(position_ms))
            await self._transport.seek(position_ms)
            self._ended = False
            self._update(position_ms=position_ms)

    async def stop(self) -> None:
        """Halt the transport, keeping queue and cursor."""
        async with self._lock:
            await self._transport.stop()
            self._update(is_playing=False, position_ms=0)

    async def play_next(self) -> None:
        """Skip forward using the same rules as auto-advance."""
        async with self._lock:
            await self._advance()

    async def play_previous(self) -> None:
        """Restart the current track if past the threshold, else go back one."""
        async with self._lock:
            if not self._queue:
                return
            if (
                self._state.position_ms > self._restart_threshold_ms
                and self._transport.is_loaded
            ):
                await self._transport.seek(0)
                self._update(position_ms=0)
                return

            index = queue_ops.previous_index(len(self._queue), self._state.cursor)
            if index is not None:
                await self._load_at(index)

    async def on_transport_status(self, status: TransportStatus) -> None:
        """Apply a status event; advance when the track finished."""
        async with self._lock:
            if status.generation != self._transport.generation:
                logger.debug(f"Dropping stale status (gen={status.generation})")
                return
            if self._state.cursor == -1 or self._state.is_busy_loading:
                return

            self._update(
                is_playing=status.is_playing,
                position_ms=status.position_ms,
                duration_ms=status.duration_ms or self._state.duration_ms,
            )
            if status.did_finish:
                logger.debug(f"Track finished: {self._state.current_track.name}")
                await self._advance()

    async def _advance(self) -> None:
        if not self._queue:
            return

        cursor = self._state.cursor
        if self._state.repeat_mode == RepeatMode.ONE and cursor != -1:
            if not self._transport.is_loaded:
                await self._load_at(cursor)
                return
            await self._transport.seek(0)
            await self._transport.resume()
            self._ended = False
            self._update(position_ms=0, is_playing=True)
            return

        index = queue_ops.next_index(
            len(self._queue),
            cursor,
            self._state.shuffle,
            self._state.repeat_mode,
            self._rng,
        )
        if index is None:
            logger.info("Reached end of queue")
            self._ended = True
            self._update(is_playing=False)
            return

        await self._load_at(index)

    # -- modes -------------------------------------------------------------

    def toggle_shuffle(self) -> bool:
        """Flip shuffle. The queue order is left as is."""
        self._update(shuffle=not self._state.shuffle)
        return self._state.shuffle

    def toggle_repeat(self) -> RepeatMode:
        """Cycle repeat off -> all -> one -> off."""
        self._update(repeat_mode=self._state.repeat_mode.cycle())
        return self._state.repeat_mode

    # -- queue edits -------------------------------------------------------

    async def add_to_queue(self, track: Track) -> bool:
        """Append track if absent. Returns True if it was added."""
        async with self._lock:
            self._queue, added = queue_ops.append_if_absent(self._queue, track)
            if added:
                self._writer.save_queue(self._queue)
            return added

    async def enqueue_next(self, track: Track) -> bool:
        """Insert track right after the current one if absent."""
        async with self._lock:
            self._queue, inserted = queue_ops.insert_after_cursor(
                self._queue, self._state.cursor, track
            )
            if inserted:
                self._writer.save_queue(self._queue)
            return inserted

    async def remove_from_queue(self, index: int) -> Track:
        """Remove the entry at index and return it.

        Removing the current track stops playback; the track that moves
        under the cursor becomes current, paused.

        Raises:
            QueueIndexError: If index is out of range
        """
        async with self._lock:
            old_queue, old_cursor = self._queue, self._state.cursor
            self._queue, cursor = queue_ops.remove_at(old_queue, old_cursor, index)
            removed = old_queue[index]
            self._writer.save_queue(self._queue)

            if index != old_cursor:
                self._update(cursor=cursor)
                return removed

            await self._transport.stop()
            self._ended = False
            if cursor == -1:
                self._update(
                    current_track=None,
                    cursor=-1,
                    is_playing=False,
                    position_ms=0,
                    duration_ms=0,
                )
                return removed

            current = self._queue[cursor]
            self._writer.save_last_track(current)
            self._update(
                current_track=current,
                cursor=cursor,
                is_playing=False,
                position_ms=0,
                duration_ms=int(current.duration_seconds * 1000),
            )
            return removed

    async def reorder_queue(self, from_index: int, to_index: int) -> None:
        """Move an entry; the cursor follows the current track.

        Raises:
            QueueIndexError: If either index is out of range
        """
        async with self._lock:
            self._queue, cursor = queue_ops.move(
                self._queue, self._state.cursor, from_index, to_index
            )
            self._writer.save_queue(self._queue)
            self._update(cursor=cursor)
