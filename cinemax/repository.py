"""MediaRepository — builds stores and pagers over one database and one remote source.

Owns the per-list lock registry, so every pager it hands out for a list
shares that list's lock.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinemax.config import settings
from cinemax.integrations.base import RemoteSource
from cinemax.lists import ContentType, MediaType
from cinemax.paging.mediator import ListLockRegistry, RemoteMediator
from cinemax.paging.pager import CachedPager, SearchPager
from cinemax.paging.store import PagedCacheStore

logger = logging.getLogger(__name__)


def default_remote_source() -> RemoteSource:
    """TMDB when an API key is configured, demo data otherwise."""
    if settings.is_demo_mode:
        logger.info("Demo mode active — serving generated lists")
        from cinemax.integrations.demo import DemoRemoteSource
        return DemoRemoteSource()

    from cinemax.integrations.tmdb import TmdbClient
    return TmdbClient()


class MediaRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        remote: RemoteSource | None = None,
        locks: ListLockRegistry | None = None,
        page_size: int | None = None,
    ):
        if session_factory is None:
            from cinemax.database import async_session_factory
            session_factory = async_session_factory
        self.session_factory = session_factory
        self.remote = remote or default_remote_source()
        self.locks = locks or ListLockRegistry()
        self.page_size = page_size or settings.page_size

    def store(self, content_type: ContentType) -> PagedCacheStore:
        return PagedCacheStore(self.session_factory, content_type)

    def mediator(self, content_type: ContentType) -> RemoteMediator:
        return RemoteMediator(self.store(content_type), self.remote, self.locks)

    def cached_pager(self, content_type: ContentType) -> CachedPager:
        mediator = self.mediator(content_type)
        return CachedPager(mediator.store, mediator, self.page_size)

    def search_pager(self, media_type: MediaType, query: str) -> SearchPager:
        return SearchPager(self.remote, media_type, query, self.page_size)
