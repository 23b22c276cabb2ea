"""
Queue and last-track persistence.

Writes are detached from playback: the coordinator submits the latest value
for a key and a single background task drains the buffer through a worker
thread. Only the most recent value per key is kept, so bursts of queue edits
collapse into one write. Failures are logged and never reach playback.
"""

import asyncio
import json
from typing import Optional, Sequence

from loguru import logger

from songqueue.core.storage import KeyValueStore, PersistenceFailure

from ..catalog.models import Track

QUEUE_KEY = "songqueue:queue"
LAST_TRACK_KEY = "songqueue:last_track"

FORMAT_VERSION = 1


def encode_queue(queue: Sequence[Track]) -> str:
    return json.dumps(
        {"version": FORMAT_VERSION, "tracks": [t.to_dict() for t in queue]}
    )


def encode_track(track: Track) -> str:
    return json.dumps({"version": FORMAT_VERSION, "track": track.to_dict()})


def decode_queue(blob: str) -> list[Track]:
    """Decode a stored queue. Accepts v1 and the legacy bare list.

    Raises:
        ValueError: If the blob is not a recognised queue encoding
    """
    data = json.loads(blob)
    if isinstance(data, dict):
        if data.get("version") != FORMAT_VERSION:
            raise ValueError(f"Unsupported queue format version: {data.get('version')}")
        data = data.get("tracks")
    if not isinstance(data, list):
        raise ValueError("Stored queue is not a list")
    try:
        return [Track.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed track in stored queue: {e}") from e


def decode_track(blob: str) -> Track:
    """Decode a stored track. Accepts v1 and the legacy bare object.

    Raises:
        ValueError: If the blob is not a recognised track encoding
    """
    data = json.loads(blob)
    if not isinstance(data, dict):
        raise ValueError("Stored track is not an object")
    if "version" in data:
        if data["version"] != FORMAT_VERSION:
            raise ValueError(f"Unsupported track format version: {data['version']}")
        data = data.get("track")
    try:
        return Track.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed stored track: {e}") from e


def _read(store: KeyValueStore, key: str) -> Optional[str]:
    try:
        return store.get(key)
    except PersistenceFailure as e:
        logger.warning(f"Could not read persisted state: {e}")
        return None


def load_persisted(store: KeyValueStore) -> tuple[list[Track], Optional[Track]]:
    """Read the saved queue and last played track.

    Missing, unreadable or corrupt values are treated as absent.

    Returns:
        (queue, last_track)
    """
    queue: list[Track] = []
    last_track: Optional[Track] = None

    blob = _read(store, QUEUE_KEY)
    if blob:
        try:
            queue = decode_queue(blob)
        except ValueError as e:  # JSONDecodeError is a ValueError
            logger.warning(f"Ignoring corrupt persisted queue: {e}")

    blob = _read(store, LAST_TRACK_KEY)
    if blob:
        try:
            last_track = decode_track(blob)
        except ValueError as e:
            logger.warning(f"Ignoring corrupt persisted track: {e}")

    return queue, last_track


class PersistenceWriter:
    """Single background writer with a latest-value-per-key buffer."""

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._pending: dict[str, str] = {}
        self._task: Optional[asyncio.Task] = None

    def save_queue(self, queue: Sequence[Track]) -> None:
        self.submit(QUEUE_KEY, encode_queue(queue))

    def save_last_track(self, track: Track) -> None:
        self.submit(LAST_TRACK_KEY, encode_track(track))

    def submit(self, key: str, value: str) -> None:
        """Buffer value for key and make sure the drain task is running."""
        self._pending[key] = value
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            key = next(iter(self._pending))
            value = self._pending.pop(key)
            try:
                await asyncio.to_thread(self._store.set, key, value)
            except (PersistenceFailure, OSError) as e:
                logger.error(f"Persisting {key} failed: {e}")

    async def flush(self) -> None:
        """Wait until every buffered write has been attempted."""
        while self._task is not None and not self._task.done():
            await self._task

