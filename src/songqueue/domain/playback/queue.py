"""Pure functional queue editing and next-track selection.

Every function takes the current queue (and cursor) and returns new values
without touching shared state, so the coordinator can apply the results
atomically and the cursor rules can be tested in isolation.

Cursor convention: an index into the queue, or -1 for "no current track".
"""

import random
from typing import Optional, Sequence

from ..catalog.models import Track
from .exceptions import QueueIndexError
from .state import RepeatMode

Queue = list[Track]


def find_track_index(queue: Sequence[Track], track_id: str) -> int:
    """Return the index of the track with track_id, or -1 if absent."""
    for i, track in enumerate(queue):
        if track.id == track_id:
            return i
    return -1


def _check_index(queue: Sequence[Track], index: int) -> None:
    if not 0 <= index < len(queue):
        raise QueueIndexError(index, len(queue))


def append_if_absent(queue: Sequence[Track], track: Track) -> tuple[Queue, bool]:
    """Append track unless its id is already queued.

    Returns:
        (new_queue, added)
    """
    if find_track_index(queue, track.id) != -1:
        return list(queue), False
    return [*queue, track], True


def insert_after_cursor(
    queue: Sequence[Track], cursor: int, track: Track
) -> tuple[Queue, bool]:
    """Insert track immediately after the cursor (at the front when idle).

    No-op if the id is already anywhere in the queue. The cursor never moves
    because the insert position is always after it.

    Returns:
        (new_queue, inserted)
    """
    if find_track_index(queue, track.id) != -1:
        return list(queue), False
    new_queue = list(queue)
    new_queue.insert(cursor + 1, track)
    return new_queue, True


def remove_at(queue: Sequence[Track], cursor: int, index: int) -> tuple[Queue, int]:
    """Remove the entry at index and recompute the cursor.

    Removing an entry before the cursor shifts it back by one. Removing the
    entry under the cursor keeps the cursor on the same slot (clamped to the
    new end), or -1 once the queue is empty.

    Raises:
        QueueIndexError: If index is out of range

    Returns:
        (new_queue, new_cursor)
    """
    _check_index(queue, index)
    new_queue = [t for i, t in enumerate(queue) if i != index]

    if not new_queue:
        return new_queue, -1
    if index < cursor:
        return new_queue, cursor - 1
    if index == cursor:
        return new_queue, min(cursor, len(new_queue) - 1)
    return new_queue, cursor


def move(
    queue: Sequence[Track], cursor: int, from_index: int, to_index: int
) -> tuple[Queue, int]:
    """Move the entry at from_index so it ends up at to_index.

    The cursor follows the track it pointed at.

    Raises:
        QueueIndexError: If either index is out of range

    Returns:
        (new_queue, new_cursor)
    """
    _check_index(queue, from_index)
    _check_index(queue, to_index)

    new_queue = list(queue)
    moved = new_queue.pop(from_index)
    new_queue.insert(to_index, moved)

    if cursor == from_index:
        new_cursor = to_index
    elif from_index < cursor <= to_index:
        new_cursor = cursor - 1
    elif to_index <= cursor < from_index:
        new_cursor = cursor + 1
    else:
        new_cursor = cursor
    return new_queue, new_cursor


def next_index(
    queue_length: int,
    cursor: int,
    shuffle: bool,
    repeat_mode: RepeatMode,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Select the index to advance to.

    Repeat-one is not handled here: it restarts the current track instead
    of selecting an index.

    Returns:
        Next index, or None when playback should stop (empty queue, or end
        of queue with repeat off)
    """
    if queue_length == 0:
        return None

    if shuffle:
        pick = (rng or random).randrange(queue_length)
        if queue_length > 1 and pick == cursor:
            pick = (pick + 1) % queue_length
        return pick

    candidate = cursor + 1
    if candidate >= queue_length:
        if repeat_mode == RepeatMode.ALL:
            return 0
        return None
    return candidate


def previous_index(queue_length: int, cursor: int) -> Optional[int]:
    """Index before the cursor, wrapping to the last entry from index 0."""
    if queue_length == 0:
        return None
    return cursor - 1 if cursor > 0 else queue_length - 1
