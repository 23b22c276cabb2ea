"""Tests for catalog response normalization."""

import pytest

from songqueue.domain.catalog.exceptions import CatalogResponseError
from songqueue.domain.catalog.models import MediaVariant
from songqueue.domain.catalog.normalize import (
    best_image_url,
    best_stream_url,
    normalize_album,
    normalize_artist,
    normalize_artist_name,
    normalize_song,
    normalize_songs,
    normalize_variants,
    pick_best_variant,
)


@pytest.fixture
def raw_song() -> dict:
    """Song record in the shape the search endpoint returns."""
    return {
        "id": "abc123",
        "name": "Kesariya",
        "duration": "268",
        "artists": {"primary": [{"name": "Arijit Singh"}, {"name": "Pritam"}]},
        "image": [
            {"quality": "50x50", "url": "https://img/50.jpg"},
            {"quality": "150x150", "url": "https://img/150.jpg"},
            {"quality": "500x500", "url": "https://img/500.jpg"},
        ],
        "downloadUrl": [
            {"quality": "96kbps", "url": "https://aac/96.mp4"},
            {"quality": "160kbps", "url": "https://aac/160.mp4"},
            {"quality": "320kbps", "url": "https://aac/320.mp4"},
        ],
    }


class TestArtistName:
    """Display artist resolution order."""

    def test_primary_artists_string_wins(self) -> None:
        raw = {"primaryArtists": "A. R. Rahman", "artists": {"primary": [{"name": "X"}]}}
        assert normalize_artist_name(raw) == "A. R. Rahman"

    def test_primary_artists_list(self) -> None:
        raw = {"primaryArtists": [{"name": "A"}, {"name": "B"}]}
        assert normalize_artist_name(raw) == "A, B"

    def test_nested_primary_names_joined(self, raw_song) -> None:
        assert normalize_artist_name(raw_song) == "Arijit Singh, Pritam"

    @pytest.mark.parametrize(
        "raw", [{}, {"primaryArtists": ""}, {"artists": {"primary": []}}]
    )
    def test_unknown_artist_fallback(self, raw) -> None:
        assert normalize_artist_name(raw) == "Unknown Artist"


class TestVariants:
    """Image and stream reference shapes."""

    def test_bare_string(self) -> None:
        assert normalize_variants("https://img/x.jpg") == (
            MediaVariant("", "https://img/x.jpg"),
        )

    def test_legacy_link_key(self) -> None:
        variants = normalize_variants([{"quality": "500x500", "link": "https://img/l.jpg"}])
        assert variants == (MediaVariant("500x500", "https://img/l.jpg"),)

    def test_missing_and_junk_entries(self) -> None:
        assert normalize_variants(None) == ()
        assert normalize_variants([{"quality": "x"}, 5, ""]) == ()

    def test_preferred_quality_picked(self, raw_song) -> None:
        variants = normalize_variants(raw_song["downloadUrl"])
        assert pick_best_variant(variants, "160kbps").url == "https://aac/160.mp4"

    def test_falls_back_to_last(self) -> None:
        variants = (MediaVariant("96kbps", "low"), MediaVariant("160kbps", "mid"))
        assert best_stream_url(variants) == "mid"

    def test_empty_gives_empty_string(self) -> None:
        assert pick_best_variant((), "320kbps") is None
        assert best_image_url(()) == ""
        assert best_stream_url(()) == ""


class TestNormalizeSong:
    def test_full_record(self, raw_song) -> None:
        track = normalize_song(raw_song)

        assert track.id == "abc123"
        assert track.name == "Kesariya"
        assert track.duration_seconds == 268.0
        assert track.artist_display_name == "Arijit Singh, Pritam"
        assert best_image_url(track.artwork_variants) == "https://img/500.jpg"
        assert best_stream_url(track.stream_variants) == "https://aac/320.mp4"

    def test_minimal_record(self) -> None:
        track = normalize_song({"id": 7, "title": "Untitled", "duration": None})

        assert track.id == "7"
        assert track.name == "Untitled"
        assert track.duration_seconds == 0.0
        assert track.artwork_variants == ()
        assert track.stream_variants == ()

    def test_missing_id_raises(self) -> None:
        with pytest.raises(CatalogResponseError):
            normalize_song({"name": "No id"})

    def test_normalize_songs_skips_bad_records(self, raw_song) -> None:
        tracks = normalize_songs([raw_song, {"name": "broken"}, None])
        assert [t.id for t in tracks] == ["abc123"]


def test_normalize_artist_with_top_songs(raw_song) -> None:
    artist = normalize_artist(
        {"id": "459320", "name": "Arijit Singh", "role": "singer", "topSongs": [raw_song]}
    )
    assert artist.name == "Arijit Singh"
    assert artist.role == "singer"
    assert [t.id for t in artist.top_tracks] == ["abc123"]


def test_normalize_album(raw_song) -> None:
    album = normalize_album(
        {"id": "1", "name": "Brahmastra", "year": "2022", "primaryArtists": "Pritam",
         "songs": [raw_song]}
    )
    assert album.year == 2022
    assert album.artist_display_name == "Pritam"
    assert len(album.tracks) == 1
