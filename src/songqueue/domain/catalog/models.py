"""
Catalog domain models.

Canonical shapes produced by normalization at the API boundary. Everything
downstream (queue, transport, persistence) works on these types only.
"""

from typing import Any, NamedTuple, Optional


class MediaVariant(NamedTuple):
    """One artwork or stream reference, e.g. ("320kbps", "https://...")."""

    quality: str
    url: str


class Track(NamedTuple):
    """A playable song.

    Identity is ``id`` alone: two Track values with the same id are the same
    queue entry even if other fields differ between API endpoints.
    Variant tuples are ordered by ascending quality, as the API returns them.
    """

    id: str
    name: str
    duration_seconds: float = 0.0
    artist_display_name: str = "Unknown Artist"
    artwork_variants: tuple[MediaVariant, ...] = ()
    stream_variants: tuple[MediaVariant, ...] = ()

    def same_as(self, other: Optional["Track"]) -> bool:
        """Return True if other refers to the same queue entry."""
        return other is not None and other.id == self.id

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "id": self.id,
            "name": self.name,
            "duration_seconds": self.duration_seconds,
            "artist_display_name": self.artist_display_name,
            "artwork_variants": [v._asdict() for v in self.artwork_variants],
            "stream_variants": [v._asdict() for v in self.stream_variants],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Inverse of to_dict.

        Raises:
            KeyError: If id or name is missing
        """
        return cls(
            id=str(data["id"]),
            name=data["name"],
            duration_seconds=float(data.get("duration_seconds") or 0.0),
            artist_display_name=data.get("artist_display_name") or "Unknown Artist",
            artwork_variants=tuple(
                MediaVariant(v["quality"], v["url"])
                for v in data.get("artwork_variants", [])
            ),
            stream_variants=tuple(
                MediaVariant(v["quality"], v["url"])
                for v in data.get("stream_variants", [])
            ),
        )


class Artist(NamedTuple):
    """Artist record from search or detail endpoints."""

    id: str
    name: str
    role: str = ""
    artwork_variants: tuple[MediaVariant, ...] = ()
    url: Optional[str] = None
    top_tracks: tuple[Track, ...] = ()  # Only populated by detail lookups


class Album(NamedTuple):
    """Album record; tracks are only populated by detail lookups."""

    id: str
    name: str
    year: Optional[int] = None
    artist_display_name: str = "Unknown Artist"
    artwork_variants: tuple[MediaVariant, ...] = ()
    tracks: tuple[Track, ...] = ()


class SearchPage(NamedTuple):
    """One page of search results."""

    items: list
    total: int = 0
    start: int = 0
