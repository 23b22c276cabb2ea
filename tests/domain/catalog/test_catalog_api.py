"""Tests for catalog API calls with requests mocked out."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from songqueue.core.config import CatalogConfig
from songqueue.domain.catalog.api import (
    CatalogClient,
    get_album_details,
    get_artist_songs,
    get_song_by_id,
    search_artists,
    search_songs,
)
from songqueue.domain.catalog.exceptions import CatalogRequestError, CatalogResponseError
from songqueue.domain.catalog.models import MediaVariant, Track

GET = "songqueue.domain.catalog.api.requests.get"


def response(body, status_code: int = 200) -> MagicMock:
    """Build a fake requests.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


SONG = {"id": "s1", "name": "Tum Hi Ho", "primaryArtists": "Arijit Singh"}


class TestSearchSongs:
    def test_request_and_paging(self) -> None:
        body = {"success": True, "data": {"total": 41, "start": 20, "results": [SONG]}}
        with patch(GET, return_value=response(body)) as mock_get:
            page = search_songs("tum hi ho", page=2)

        mock_get.assert_called_once_with(
            "https://saavn.sumit.co/api/search/songs",
            params={"query": "tum hi ho", "page": 2, "limit": 20},
            timeout=30.0,
        )
        assert page.total == 41
        assert page.start == 20
        assert page.items[0].artist_display_name == "Arijit Singh"

    def test_malformed_results_skipped(self) -> None:
        body = {"success": True, "data": {"results": [SONG, {"name": "no id"}]}}
        with patch(GET, return_value=response(body)):
            page = search_songs("x")
        assert [t.id for t in page.items] == ["s1"]

    def test_http_error(self) -> None:
        with patch(GET, return_value=response({}, status_code=503)):
            with pytest.raises(CatalogRequestError) as exc_info:
                search_songs("x")
        assert exc_info.value.status_code == 503

    def test_network_error(self) -> None:
        with patch(GET, side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(CatalogRequestError) as exc_info:
                search_songs("x")
        assert exc_info.value.status_code is None

    def test_success_false(self) -> None:
        with patch(GET, return_value=response({"success": False, "message": "nope"})):
            with pytest.raises(CatalogResponseError):
                search_songs("x")

    def test_invalid_json(self) -> None:
        resp = response(None)
        resp.json.side_effect = ValueError("not json")
        with patch(GET, return_value=resp):
            with pytest.raises(CatalogResponseError):
                search_songs("x")


def test_search_artists() -> None:
    body = {"success": True, "data": {"results": [{"id": "a1", "name": "Pritam"}]}}
    with patch(GET, return_value=response(body)) as mock_get:
        page = search_artists("pritam")
    assert mock_get.call_args[0][0].endswith("/api/search/artists")
    assert page.items[0].name == "Pritam"


def test_get_song_by_id() -> None:
    with patch(GET, return_value=response({"success": True, "data": [SONG]})) as mock_get:
        track = get_song_by_id("s1")
    assert mock_get.call_args[0][0].endswith("/api/songs/s1")
    assert track.name == "Tum Hi Ho"


def test_get_song_by_id_missing() -> None:
    with patch(GET, return_value=response({"success": True, "data": []})):
        assert get_song_by_id("nope") is None
    with patch(GET, return_value=response({"success": False})):
        assert get_song_by_id("nope") is None


def test_get_artist_songs() -> None:
    body = {"success": True, "data": {"total": 1, "songs": [SONG]}}
    with patch(GET, return_value=response(body)) as mock_get:
        page = get_artist_songs("a1", page=3)
    assert mock_get.call_args.kwargs["params"] == {"page": 3}
    assert page.total == 1
    assert page.items[0].id == "s1"


def test_get_album_details() -> None:
    body = {"success": True, "data": {"id": "al1", "name": "Aashiqui 2", "songs": [SONG]}}
    with patch(GET, return_value=response(body)) as mock_get:
        album = get_album_details("al1")
    assert mock_get.call_args.kwargs["params"] == {"id": "al1"}
    assert album.tracks[0].id == "s1"


def test_client_uses_config() -> None:
    client = CatalogClient(
        CatalogConfig(base_url="http://localhost:3000", page_size=5, timeout_seconds=2.0)
    )
    body = {"success": True, "data": {"results": []}}
    with patch(GET, return_value=response(body)) as mock_get:
        client.search_albums("x")

    mock_get.assert_called_once_with(
        "http://localhost:3000/api/search/albums",
        params={"query": "x", "page": 1, "limit": 5},
        timeout=2.0,
    )


def test_client_artwork_url_uses_preferred_quality() -> None:
    track = Track(
        id="s1",
        name="Tum Hi Ho",
        artwork_variants=(
            MediaVariant("50x50", "small"),
            MediaVariant("150x150", "medium"),
            MediaVariant("500x500", "large"),
        ),
    )

    assert CatalogClient(CatalogConfig()).artwork_url(track) == "large"
    medium = CatalogClient(CatalogConfig(preferred_image_quality="150x150"))
    assert medium.artwork_url(track) == "medium"
    assert medium.artwork_url(Track(id="s2", name="No art")) == ""
