"""
Catalog API operations.

Handles song/artist/album search and detail lookups. Every response is
normalized into canonical models before it leaves this module.
"""

from typing import Any, Callable, Optional

import requests
from loguru import logger
from requests.exceptions import HTTPError, RequestException

from songqueue.core.config import CatalogConfig

from .exceptions import CatalogError, CatalogRequestError, CatalogResponseError
from .models import Album, Artist, SearchPage, Track
from .normalize import (
    best_image_url,
    normalize_album,
    normalize_artist,
    normalize_song,
    normalize_songs,
)

API_BASE_URL = "https://saavn.sumit.co"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 20


def _get_json(
    path: str,
    params: Optional[dict[str, Any]] = None,
    base_url: str = API_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET an endpoint and unwrap the ``{success, data}`` envelope.

    Returns:
        The ``data`` member of the response body

    Raises:
        CatalogRequestError: Network failure or non-2xx status
        CatalogResponseError: Body is not JSON or reports success=false
    """
    url = f"{base_url}{path}"
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
    except HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        logger.warning(f"Catalog request failed: GET {path} -> {status}")
        raise CatalogRequestError(f"Request failed: {status}", status_code=status) from e
    except RequestException as e:
        logger.warning(f"Catalog request error: GET {path}: {e}")
        raise CatalogRequestError(f"Request failed: {e}") from e

    try:
        body = response.json()
    except ValueError as e:
        raise CatalogResponseError(f"Invalid JSON from {path}") from e

    if not isinstance(body, dict) or not body.get("success"):
        raise CatalogResponseError(f"Catalog API returned failure for {path}")

    return body.get("data")


def _search(
    kind: str,
    query: str,
    page: int,
    limit: int,
    normalize: Callable[[dict[str, Any]], Any],
    **request_kwargs: Any,
) -> SearchPage:
    data = _get_json(
        f"/api/search/{kind}",
        params={"query": query, "page": page, "limit": limit},
        **request_kwargs,
    ) or {}

    items = []
    for raw in data.get("results") or []:
        try:
            items.append(normalize(raw))
        except CatalogError:
            logger.debug(f"Skipping malformed {kind} record in search results")

    logger.debug(f"Search {kind} '{query}' page={page}: {len(items)} results")
    return SearchPage(
        items=items,
        total=int(data.get("total") or 0),
        start=int(data.get("start") or 0),
    )


def search_songs(
    query: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE, **request_kwargs: Any
) -> SearchPage:
    """Search songs. Items are Track."""
    return _search("songs", query, page, limit, normalize_song, **request_kwargs)


def search_artists(
    query: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE, **request_kwargs: Any
) -> SearchPage:
    """Search artists. Items are Artist."""
    return _search("artists", query, page, limit, normalize_artist, **request_kwargs)


def search_albums(
    query: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE, **request_kwargs: Any
) -> SearchPage:
    """Search albums. Items are Album (without tracks)."""
    return _search("albums", query, page, limit, normalize_album, **request_kwargs)


def get_song_by_id(song_id: str, **request_kwargs: Any) -> Optional[Track]:
    """Fetch one song.

    Returns:
        Track, or None if the API reports no such song
    """
    try:
        data = _get_json(f"/api/songs/{song_id}", **request_kwargs)
    except CatalogResponseError:
        return None
    if not data:
        return None
    return normalize_song(data[0])


def get_artist_details(artist_id: str, **request_kwargs: Any) -> Artist:
    """Fetch an artist, including top tracks when the API provides them."""
    data = _get_json(f"/api/artists/{artist_id}", **request_kwargs)
    return normalize_artist(data or {})


def get_artist_songs(
    artist_id: str, page: int = 1, **request_kwargs: Any
) -> SearchPage:
    """Fetch one page of an artist's songs. Items are Track."""
    data = _get_json(
        f"/api/artists/{artist_id}/songs", params={"page": page}, **request_kwargs
    ) or {}
    tracks = normalize_songs(data.get("songs") or data.get("results"))
    return SearchPage(items=tracks, total=int(data.get("total") or 0), start=0)


def get_album_details(album_id: str, **request_kwargs: Any) -> Album:
    """Fetch an album with its track list."""
    data = _get_json("/api/albums", params={"id": album_id}, **request_kwargs)
    return normalize_album(data or {})


class CatalogClient:
    """Thin wrapper binding the API functions to a configured endpoint."""

    def __init__(self, config: Optional[CatalogConfig] = None):
        self.config = config or CatalogConfig()

    @property
    def _request_kwargs(self) -> dict[str, Any]:
        return {"base_url": self.config.base_url, "timeout": self.config.timeout_seconds}

    def search_songs(self, query: str, page: int = 1) -> SearchPage:
        return search_songs(query, page, self.config.page_size, **self._request_kwargs)

    def search_artists(self, query: str, page: int = 1) -> SearchPage:
        return search_artists(query, page, self.config.page_size, **self._request_kwargs)

    def search_albums(self, query: str, page: int = 1) -> SearchPage:
        return search_albums(query, page, self.config.page_size, **self._request_kwargs)

    def get_song_by_id(self, song_id: str) -> Optional[Track]:
        return get_song_by_id(song_id, **self._request_kwargs)

    def get_artist_details(self, artist_id: str) -> Artist:
        return get_artist_details(artist_id, **self._request_kwargs)

    def get_artist_songs(self, artist_id: str, page: int = 1) -> SearchPage:
        return get_artist_songs(artist_id, page, **self._request_kwargs)

    def get_album_details(self, album_id: str) -> Album:
        return get_album_details(album_id, **self._request_kwargs)

    def artwork_url(self, item: Track | Artist | Album) -> str:
        """Artwork URL in the configured quality; empty when there is none."""
        return best_image_url(item.artwork_variants, self.config.preferred_image_quality)
