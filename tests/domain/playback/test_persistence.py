"""Tests for queue persistence encoding and the background writer."""

import json

import pytest

from songqueue.core.storage import MemoryKeyValueStore, PersistenceFailure
from songqueue.domain.playback.persistence import (
    LAST_TRACK_KEY,
    QUEUE_KEY,
    PersistenceWriter,
    decode_queue,
    decode_track,
    encode_queue,
    encode_track,
    load_persisted,
)


class FailingStore:
    """Store whose writes always fail."""

    def __init__(self):
        self.attempts = 0

    def get(self, key):
        raise PersistenceFailure(key, "disk gone")

    def set(self, key, value):
        self.attempts += 1
        raise PersistenceFailure(key, "disk gone")


class TestEncoding:
    def test_queue_blob_is_versioned(self, track_factory) -> None:
        blob = json.loads(encode_queue([track_factory("A")]))
        assert blob["version"] == 1
        assert blob["tracks"][0]["id"] == "A"

    def test_queue_round_trip_keeps_variants(self, track_factory) -> None:
        queue = [track_factory("A"), track_factory("B", streams=["x", "y"])]
        assert decode_queue(encode_queue(queue)) == queue

    def test_legacy_bare_list_accepted(self) -> None:
        legacy = json.dumps([{"id": "1", "name": "Old"}])
        queue = decode_queue(legacy)
        assert queue[0].id == "1"
        assert queue[0].artist_display_name == "Unknown Artist"

    def test_legacy_bare_track_accepted(self) -> None:
        assert decode_track(json.dumps({"id": "1", "name": "Old"})).name == "Old"

    def test_track_round_trip(self, track_factory) -> None:
        track = track_factory("A")
        assert decode_track(encode_track(track)) == track

    @pytest.mark.parametrize(
        "blob",
        ['{"version": 2, "tracks": []}', '"text"', '[{"name": "no id"}]'],
    )
    def test_bad_queue_blobs_raise_value_error(self, blob) -> None:
        with pytest.raises(ValueError):
            decode_queue(blob)


class TestLoadPersisted:
    def test_empty_store(self) -> None:
        assert load_persisted(MemoryKeyValueStore()) == ([], None)

    def test_reads_both_keys(self, track_factory) -> None:
        a, b = track_factory("A"), track_factory("B")
        store = MemoryKeyValueStore(
            {QUEUE_KEY: encode_queue([a, b]), LAST_TRACK_KEY: encode_track(b)}
        )
        assert load_persisted(store) == ([a, b], b)

    def test_corrupt_values_are_absent(self) -> None:
        store = MemoryKeyValueStore({QUEUE_KEY: "[{", LAST_TRACK_KEY: "[]"})
        assert load_persisted(store) == ([], None)

    def test_unreadable_store_is_absent(self) -> None:
        assert load_persisted(FailingStore()) == ([], None)


class TestPersistenceWriter:
    @pytest.mark.anyio
    async def test_latest_value_wins(self, track_factory) -> None:
        store = MemoryKeyValueStore()
        writer = PersistenceWriter(store)

        writer.save_queue([track_factory("A")])
        writer.save_queue([track_factory("A"), track_factory("B")])
        writer.save_last_track(track_factory("B"))
        await writer.flush()

        assert len(decode_queue(store.get(QUEUE_KEY))) == 2
        assert decode_track(store.get(LAST_TRACK_KEY)).id == "B"

    @pytest.mark.anyio
    async def test_failures_are_swallowed(self, track_factory) -> None:
        store = FailingStore()
        writer = PersistenceWriter(store)

        writer.save_queue([track_factory("A")])
        writer.save_last_track(track_factory("A"))
        await writer.flush()

        assert store.attempts == 2

    @pytest.mark.anyio
    async def test_flush_without_writes(self) -> None:
        await PersistenceWriter(MemoryKeyValueStore()).flush()
