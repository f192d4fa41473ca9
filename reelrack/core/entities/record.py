"""
Catalog record entity.

The single entity of the catalog: one movie or series, its metadata and
the durable URLs of its poster image and trailer video.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class MediaKind(Enum):
    """Kind of catalog entry.

    Values:
        MOVIE: Feature film
        SERIES: TV show (stored as "tv" on the wire)
    """

    MOVIE = "movie"
    SERIES = "series"

    @classmethod
    def parse(cls, value: "str | MediaKind") -> "MediaKind":
        """
        Parse a kind from user or wire input.

        Accepts "movie", "series" and the legacy "tv" alias, case-insensitive.

        Raises:
            ValueError: If the value is not a known kind
        """
        if isinstance(value, MediaKind):
            return value
        normalized = str(value).strip().lower()
        if normalized == "tv":
            return cls.SERIES
        return cls(normalized)


@dataclass(frozen=True)
class CatalogRecord:
    """
    A catalog entry (movie or series).

    Frozen so that snapshots handed out by the mirror can be shared
    between consumers without copies.

    Attributes:
        id: Stable store identifier, None for a draft never persisted
        title: Display title (non-empty)
        kind: Movie or series
        year: Release year
        genres: Genre tags from the controlled vocabulary, insertion order
        cast_summary: Free text list of lead actors
        description: Short synopsis
        poster_url: Durable poster URL, "" means placeholder
        trailer_url: Durable trailer URL, "" means no trailer
        created_by: uid of the creator, written once
        created_at: Server creation timestamp, immutable
        updated_at: Server timestamp of the last write
    """

    id: Optional[str] = None
    title: str = ""
    kind: MediaKind = MediaKind.MOVIE
    year: int = 0
    genres: tuple[str, ...] = ()
    cast_summary: str = ""
    description: str = ""
    poster_url: str = ""
    trailer_url: str = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_poster(self) -> bool:
        return bool(self.poster_url)

    @property
    def has_trailer(self) -> bool:
        return bool(self.trailer_url)
