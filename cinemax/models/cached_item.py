"""CachedItem model — materialized page contents of a paged list."""

from datetime import date, datetime, timezone

from sqlalchemy import JSON, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cinemax.models.base import Base


class CachedItem(Base):
    """One movie or TV show as it appeared in a remote list page."""

    __tablename__ = "cached_items"

    list_type: Mapped[str] = mapped_column(String(50), primary_key=True)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    media_type: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    overview: Mapped[str] = mapped_column(Text, nullable=False, default="")
    poster_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    backdrop_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vote_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    genre_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    original_language: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    cached_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
