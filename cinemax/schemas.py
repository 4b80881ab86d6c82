"""Pydantic models shared across the cache, the remote sources and the API.

Split into: domain records, remote pages, and final API response.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from cinemax.lists import ContentType, MediaType
from cinemax.presentation.formatting import format_date, round_to_one_decimal


# ═══════════════ DOMAIN RECORDS ═══════════════

class MediaItem(BaseModel):
    """A movie or TV show as delivered by a remote page or read from the cache."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    media_type: MediaType = MediaType.MOVIE
    title: str = ""
    overview: str = ""
    poster_path: str | None = None
    backdrop_path: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0
    release_date: date | None = None
    genre_ids: list[int] = Field(default_factory=list)
    original_language: str = ""


class RemoteKeyRecord(BaseModel):
    """Cursor for the page the item `id` was fetched in."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    previous_page: int | None = None
    next_page: int | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ═══════════════ REMOTE PAGES ═══════════════

class RemotePage(BaseModel):
    """One page of a remote list, with the tokens of its neighbours."""
    items: list[MediaItem] = Field(default_factory=list)
    page: int = 1
    previous_page: int | None = None
    next_page: int | None = None
    total_pages: int = 0


# ═══════════════ FINAL API RESPONSE ═══════════════

class MediaCard(BaseModel):
    """Single list entry in the shape the client renders."""
    id: int
    media_type: MediaType
    title: str = ""
    overview: str = ""
    poster_path: str | None = None
    backdrop_path: str | None = None
    rating: float = 0.0
    release_date: str = ""
    release_year: str = ""

    @classmethod
    def from_item(cls, item: MediaItem) -> MediaCard:
        return cls(
            id=item.id,
            media_type=item.media_type,
            title=item.title,
            overview=item.overview,
            poster_path=item.poster_path,
            backdrop_path=item.backdrop_path,
            rating=round_to_one_decimal(item.vote_average),
            release_date=format_date(item.release_date, "%d %b %Y") if item.release_date else "",
            release_year=format_date(item.release_date, "%Y") if item.release_date else "",
        )


class ErrorMessageOut(BaseModel):
    message_key: str
    is_offline: bool = False


class ListPageResponse(BaseModel):
    content_type: ContentType
    offset: int = 0
    items: list[MediaCard] = Field(default_factory=list)
    end_reached: bool = False
    is_retry: bool = False
    error: ErrorMessageOut | None = None


class SearchPageResponse(BaseModel):
    query: str = ""
    is_searching: bool = False
    offset: int = 0
    movies: list[MediaCard] = Field(default_factory=list)
    tv_shows: list[MediaCard] = Field(default_factory=list)
    error: ErrorMessageOut | None = None
