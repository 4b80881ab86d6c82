"""SQLAlchemy ORM models."""

from cinemax.models.base import Base
from cinemax.models.cached_item import CachedItem
from cinemax.models.remote_key import RemoteKey

__all__ = ["Base", "CachedItem", "RemoteKey"]
