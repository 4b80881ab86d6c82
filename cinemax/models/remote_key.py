"""RemoteKey model — pagination cursor stored alongside each cached item."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cinemax.models.base import Base


class RemoteKey(Base):
    """Adjacent page numbers for the page a cached item was fetched in.

    Keyed by the item id within its list, so the last loaded item tells the
    pager which page to request next.
    """

    __tablename__ = "remote_keys"

    list_type: Mapped[str] = mapped_column(String(50), primary_key=True)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    previous_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    next_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
