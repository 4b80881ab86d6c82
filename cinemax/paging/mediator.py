"""RemoteMediator — fills a PagedCacheStore from a RemoteSource, page by page.

Load protocol for one list:
  - REFRESH: fetch page 1, then clear cursors and items and write the page
    (items + one cursor per item) in a single transaction.
  - APPEND: look up the cursor of the last cached item; fetch its next page
    unless there is none, then write that page in a single transaction.
  - PREPEND: lists only grow at the tail, so there is never anything to do.

Remote and cache failures leave the cache exactly as it was and come back
as an error result the caller can retry. Loads of the same list never
overlap; loads of different lists run independently.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError

from cinemax.config import settings
from cinemax.errors import CinemaxError, NetworkError, NotFoundError, ServerError
from cinemax.integrations.base import RemoteSource
from cinemax.paging.store import PagedCacheStore
from cinemax.schemas import RemoteKeyRecord

logger = logging.getLogger(__name__)


class LoadType(str, Enum):
    REFRESH = "refresh"
    PREPEND = "prepend"
    APPEND = "append"


class InitializeAction(str, Enum):
    LAUNCH_INITIAL_REFRESH = "launch_initial_refresh"
    SKIP_INITIAL_REFRESH = "skip_initial_refresh"


class MediatorResult(BaseModel):
    """Outcome of one load: success (possibly at the end of the list) or a retryable error."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    end_of_pagination_reached: bool = False
    error: Exception | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ListLockRegistry:
    """One asyncio.Lock per list type, created on first use."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def for_list(self, list_type: str) -> asyncio.Lock:
        lock = self._locks.get(list_type)
        if lock is None:
            lock = self._locks[list_type] = asyncio.Lock()
        return lock


class RemoteMediator:
    """Runs refresh/append loads for one list type."""

    def __init__(
        self,
        store: PagedCacheStore,
        remote: RemoteSource,
        locks: ListLockRegistry,
        cache_timeout_seconds: int | None = None,
    ):
        self.store = store
        self.remote = remote
        self._lock = locks.for_list(store.list_type.value)
        self.cache_timeout = timedelta(
            seconds=cache_timeout_seconds if cache_timeout_seconds is not None else settings.cache_timeout_seconds
        )

    async def initialize(self) -> InitializeAction:
        """Refresh on open when the list was never cached, has gone stale, or cannot be read."""
        try:
            last_updated = await self.store.last_updated()
        except SQLAlchemyError as e:
            # the refresh that follows reports the failure through the load states
            logger.warning("Cache unreadable | list=%s | %s", self.store.list_type.value, str(e)[:200])
            return InitializeAction.LAUNCH_INITIAL_REFRESH
        if last_updated is None:
            return InitializeAction.LAUNCH_INITIAL_REFRESH
        if datetime.now(timezone.utc) - last_updated > self.cache_timeout:
            logger.info("Cache stale | list=%s | updated=%s", self.store.list_type.value, last_updated.isoformat())
            return InitializeAction.LAUNCH_INITIAL_REFRESH
        return InitializeAction.SKIP_INITIAL_REFRESH

    async def load(self, load_type: LoadType, boundary_item_id: int | None = None) -> MediatorResult:
        """Run one load.

        For APPEND, `boundary_item_id` is the last loaded item. When omitted,
        the tail of the cached list is read after the list lock is taken, so
        concurrent appends each continue from the previous one's page.
        """
        list_name = self.store.list_type.value
        if load_type is LoadType.PREPEND:
            return MediatorResult(end_of_pagination_reached=True)

        async with self._lock:
            try:
                return await self._load_locked(load_type, boundary_item_id)
            except (NetworkError, ServerError) as e:
                logger.warning("Load failed | list=%s | type=%s | %s", list_name, load_type.value, e)
                return MediatorResult(error=e)
            except (SQLAlchemyError, CinemaxError) as e:
                logger.error("Cache failed | list=%s | type=%s | %s", list_name, load_type.value, str(e)[:200])
                return MediatorResult(error=e)

    async def _load_locked(self, load_type: LoadType, boundary_item_id: int | None) -> MediatorResult:
        list_name = self.store.list_type.value
        if load_type is LoadType.REFRESH:
            page = 1
        else:
            page = await self._next_page(boundary_item_id)
            if page is None:
                logger.debug("End of list | list=%s | boundary=%s", list_name, boundary_item_id)
                return MediatorResult(end_of_pagination_reached=True)

        remote_page = await self.remote.fetch_page(self.store.list_type, page)

        created_at = datetime.now(timezone.utc)
        records = [
            RemoteKeyRecord(
                id=item.id,
                previous_page=remote_page.previous_page,
                next_page=remote_page.next_page,
                created_at=created_at,
            )
            for item in remote_page.items
        ]
        async with self.store.transaction() as tx:
            if load_type is LoadType.REFRESH:
                await tx.clear_all_keys()
                await tx.clear_all_items()
            await tx.replace_all_keys(records)
            await tx.replace_all_items(remote_page.items)
            await tx.check_integrity()

        end_reached = not remote_page.items or remote_page.next_page is None
        logger.info(
            "Load OK | list=%s | type=%s | page=%d | items=%d | end=%s",
            list_name, load_type.value, page, len(remote_page.items), end_reached,
        )
        return MediatorResult(end_of_pagination_reached=end_reached)

    async def _next_page(self, boundary_item_id: int | None) -> int | None:
        if boundary_item_id is None:
            boundary = await self.store.last_item()
            if boundary is None:
                return None
            boundary_item_id = boundary.id
        try:
            key = await self.store.get_key(boundary_item_id)
        except NotFoundError:
            return None
        return key.next_page
