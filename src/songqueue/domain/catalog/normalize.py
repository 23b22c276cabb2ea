"""
Normalization of heterogeneous catalog responses into canonical models.

The catalog returns the same concepts in several shapes depending on the
endpoint: artist names as a plain string or as a list of ``{name}`` objects,
artwork and stream references as a bare URL string or as an ordered list of
``{quality, url}`` entries (older responses use ``link`` instead of ``url``).
This module is the only place that knows about those shapes.
"""

from typing import Any, Iterable, Optional

from .exceptions import CatalogResponseError
from .models import Album, Artist, MediaVariant, Track

PREFERRED_IMAGE_QUALITY = "500x500"
PREFERRED_STREAM_QUALITY = "320kbps"
UNKNOWN_ARTIST = "Unknown Artist"


def normalize_variants(raw: Any) -> tuple[MediaVariant, ...]:
    """Convert an image/stream field to an ordered tuple of MediaVariant.

    Args:
        raw: None, a bare URL string, or a list of dicts/strings

    Returns:
        Variants in source order (ascending quality by API convention)
    """
    if not raw:
        return ()

    if isinstance(raw, str):
        return (MediaVariant("", raw),)

    variants = []
    for entry in raw:
        if isinstance(entry, str):
            if entry:
                variants.append(MediaVariant("", entry))
            continue
        if not isinstance(entry, dict):
            continue
        url = entry.get("url") or entry.get("link")
        if url:
            variants.append(MediaVariant(str(entry.get("quality") or ""), url))
    return tuple(variants)


def pick_best_variant(
    variants: Iterable[MediaVariant], preferred_quality: str
) -> Optional[MediaVariant]:
    """Pick the preferred quality, else the last (best available) variant.

    Returns:
        Selected variant, or None for an empty sequence
    """
    variants = tuple(variants)
    if not variants:
        return None
    for variant in variants:
        if variant.quality == preferred_quality:
            return variant
    return variants[-1]


def best_image_url(
    variants: Iterable[MediaVariant], preferred_quality: str = PREFERRED_IMAGE_QUALITY
) -> str:
    """Artwork URL to display; empty string when there is no artwork."""
    best = pick_best_variant(variants, preferred_quality)
    return best.url if best else ""


def best_stream_url(
    variants: Iterable[MediaVariant], preferred_quality: str = PREFERRED_STREAM_QUALITY
) -> str:
    """Stream URL to play; empty string when the track has no stream.

    Callers that need a playable source treat the empty string as
    NoPlayableSource.
    """
    best = pick_best_variant(variants, preferred_quality)
    return best.url if best else ""


def _names(entries: Any) -> list[str]:
    if not isinstance(entries, list):
        return []
    names = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name"):
            names.append(str(entry["name"]))
        elif isinstance(entry, str) and entry:
            names.append(entry)
    return names


def normalize_artist_name(raw: dict[str, Any]) -> str:
    """Resolve the display artist for a song or album record.

    Order: ``primaryArtists`` (string or list of {name}), then
    ``artists.primary[*].name``, then ``"Unknown Artist"``.
    """
    primary = raw.get("primaryArtists")
    if isinstance(primary, str) and primary.strip():
        return primary.strip()
    names = _names(primary)
    if names:
        return ", ".join(names)

    artists = raw.get("artists")
    if isinstance(artists, dict):
        names = _names(artists.get("primary"))
        if names:
            return ", ".join(names)

    return UNKNOWN_ARTIST


def _to_seconds(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _to_year(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _require_id(raw: Any, kind: str) -> str:
    if not isinstance(raw, dict) or raw.get("id") in (None, ""):
        raise CatalogResponseError(f"{kind} record without id: {raw!r}")
    return str(raw["id"])


def normalize_song(raw: dict[str, Any]) -> Track:
    """Convert a song record from any endpoint into a Track.

    Raises:
        CatalogResponseError: If the record has no id
    """
    track_id = _require_id(raw, "song")
    return Track(
        id=track_id,
        name=str(raw.get("name") or raw.get("title") or ""),
        duration_seconds=_to_seconds(raw.get("duration")),
        artist_display_name=normalize_artist_name(raw),
        artwork_variants=normalize_variants(raw.get("image")),
        stream_variants=normalize_variants(raw.get("downloadUrl")),
    )


def normalize_songs(raw_songs: Any) -> list[Track]:
    """Normalize a list of song records, skipping records without an id."""
    tracks = []
    for raw in raw_songs or []:
        try:
            tracks.append(normalize_song(raw))
        except CatalogResponseError:
            continue
    return tracks


def normalize_artist(raw: dict[str, Any]) -> Artist:
    """Convert an artist search/detail record into an Artist."""
    return Artist(
        id=_require_id(raw, "artist"),
        name=str(raw.get("name") or raw.get("title") or ""),
        role=str(raw.get("role") or ""),
        artwork_variants=normalize_variants(raw.get("image")),
        url=raw.get("url"),
        top_tracks=tuple(normalize_songs(raw.get("topSongs"))),
    )


def normalize_album(raw: dict[str, Any]) -> Album:
    """Convert an album search/detail record into an Album."""
    return Album(
        id=_require_id(raw, "album"),
        name=str(raw.get("name") or raw.get("title") or ""),
        year=_to_year(raw.get("year")),
        artist_display_name=normalize_artist_name(raw),
        artwork_variants=normalize_variants(raw.get("image")),
        tracks=tuple(normalize_songs(raw.get("songs"))),
    )
