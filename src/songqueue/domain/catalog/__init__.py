"""Catalog domain - remote search/detail API and response normalization.

This domain handles:
- Song, artist and album search with paging
- Detail lookups (song, artist, artist songs, album)
- Normalizing heterogeneous response shapes into canonical Track records
"""

from .api import (
    CatalogClient,
    get_album_details,
    get_artist_details,
    get_artist_songs,
    get_song_by_id,
    search_albums,
    search_artists,
    search_songs,
)
from .exceptions import CatalogError, CatalogRequestError, CatalogResponseError
from .models import Album, Artist, MediaVariant, SearchPage, Track
from .normalize import (
    best_image_url,
    best_stream_url,
    normalize_artist_name,
    normalize_song,
    normalize_variants,
    pick_best_variant,
)

__all__ = [
    # API
    "CatalogClient",
    "get_album_details",
    "get_artist_details",
    "get_artist_songs",
    "get_song_by_id",
    "search_albums",
    "search_artists",
    "search_songs",
    # Errors
    "CatalogError",
    "CatalogRequestError",
    "CatalogResponseError",
    # Models
    "Album",
    "Artist",
    "MediaVariant",
    "SearchPage",
    "Track",
    # Normalization
    "best_image_url",
    "best_stream_url",
    "normalize_artist_name",
    "normalize_song",
    "normalize_variants",
    "pick_best_variant",
]
