"""Pagers — lazy, restartable item sequences with observable load states.

A pager is what a screen holds on to. Iterating it (``async for``) or asking
for a window (``load_window``) reads what is already loaded and pulls further
pages on demand. Load failures never raise into the consumer: iteration just
stops, and the failure is published to load-state listeners so the view model
can show it.
"""

import logging
from collections.abc import AsyncIterator, Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError

from cinemax.config import settings
from cinemax.errors import NetworkError, ServerError
from cinemax.integrations.base import RemoteSource
from cinemax.lists import MediaType
from cinemax.paging.mediator import InitializeAction, LoadType, MediatorResult, RemoteMediator
from cinemax.paging.store import PagedCacheStore
from cinemax.schemas import MediaItem

logger = logging.getLogger(__name__)


class LoadState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    status: Literal["not_loading", "loading", "error"] = "not_loading"
    end_of_pagination_reached: bool = False
    error: Exception | None = None

    @classmethod
    def from_result(cls, result: MediatorResult) -> "LoadState":
        if result.is_error:
            return cls(status="error", error=result.error)
        return cls(end_of_pagination_reached=result.end_of_pagination_reached)


LOADING = LoadState(status="loading")


class LoadStates(BaseModel):
    model_config = ConfigDict(frozen=True)

    refresh: LoadState = LoadState()
    prepend: LoadState = LoadState(end_of_pagination_reached=True)
    append: LoadState = LoadState()

    @property
    def failed(self) -> LoadState | None:
        """First failed state among refresh and append, refresh first."""
        for state in (self.refresh, self.append):
            if state.error is not None:
                return state
        return None

    def new_failure(self, previous: "LoadStates") -> LoadState | None:
        """Failed state that was not already published in `previous`."""
        if self.refresh.error is not None and self.refresh is not previous.refresh:
            return self.refresh
        if self.append.error is not None and self.append is not previous.append:
            return self.append
        return None

    @property
    def error(self) -> Exception | None:
        failed = self.failed
        return failed.error if failed is not None else None

    @property
    def is_loading(self) -> bool:
        return self.refresh.status == "loading" or self.append.status == "loading"


LoadStateListener = Callable[[LoadStates], None]


class BasePager:
    """Shared windowing, iteration and load-state bookkeeping."""

    def __init__(self, page_size: int | None = None):
        self.page_size = page_size or settings.page_size
        self.load_states = LoadStates()
        self._listeners: list[LoadStateListener] = []
        self._initialized = False
        self._last_failed: LoadType | None = None

    # ─── listeners ───

    def add_load_state_listener(self, listener: LoadStateListener) -> None:
        self._listeners.append(listener)

    def remove_load_state_listener(self, listener: LoadStateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, **changes: LoadState) -> None:
        self.load_states = self.load_states.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self.load_states)

    # ─── loading ───

    async def refresh(self) -> MediatorResult:
        self._initialized = True
        self._publish(refresh=LOADING)
        result = await self._load(LoadType.REFRESH)
        self._record(LoadType.REFRESH, result)
        state = LoadState.from_result(result)
        if result.is_error:
            self._publish(refresh=state)
        else:
            self._publish(refresh=state, append=state)
        return result

    async def append(self) -> MediatorResult:
        if self.load_states.append.end_of_pagination_reached:
            return MediatorResult(end_of_pagination_reached=True)
        self._publish(append=LOADING)
        result = await self._load(LoadType.APPEND)
        self._record(LoadType.APPEND, result)
        self._publish(append=LoadState.from_result(result))
        return result

    async def retry(self) -> MediatorResult | None:
        """Re-run the last failed load, if any."""
        failed, self._last_failed = self._last_failed, None
        if failed is LoadType.REFRESH:
            return await self.refresh()
        if failed is LoadType.APPEND:
            return await self.append()
        return None

    def _record(self, load_type: LoadType, result: MediatorResult) -> None:
        if result.is_error:
            # a pending refresh retry covers any append after it
            if self._last_failed is not LoadType.REFRESH:
                self._last_failed = load_type
        elif self._last_failed is load_type:
            self._last_failed = None

    async def ensure_initialized(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        if await self._initial_action() is InitializeAction.LAUNCH_INITIAL_REFRESH:
            await self.refresh()

    # ─── reading ───

    async def load_window(self, offset: int, limit: int) -> list[MediaItem]:
        """Items [offset, offset + limit), appending remote pages until the window fills."""
        await self.ensure_initialized()
        items = await self._read(offset, limit)
        while len(items) < limit and not self.load_states.append.end_of_pagination_reached:
            result = await self.append()
            if result.is_error:
                break
            more = await self._read(offset + len(items), limit - len(items))
            if not more and result.end_of_pagination_reached:
                break
            items.extend(more)
        return items

    async def snapshot(self) -> list[MediaItem]:
        """Everything loaded so far, without triggering any load."""
        items: list[MediaItem] = []
        while True:
            chunk = await self._read(len(items), self.page_size)
            items.extend(chunk)
            if len(chunk) < self.page_size:
                return items

    async def __aiter__(self) -> AsyncIterator[MediaItem]:
        await self.ensure_initialized()
        offset = 0
        while True:
            chunk = await self.load_window(offset, self.page_size)
            for item in chunk:
                yield item
            offset += len(chunk)
            if len(chunk) < self.page_size:
                return

    # ─── hooks ───

    async def _initial_action(self) -> InitializeAction:
        return InitializeAction.LAUNCH_INITIAL_REFRESH

    async def _load(self, load_type: LoadType) -> MediatorResult:
        raise NotImplementedError

    async def _read(self, offset: int, limit: int) -> list[MediaItem]:
        raise NotImplementedError


class CachedPager(BasePager):
    """Pager over a persisted list, extended through its RemoteMediator.

    Reads go through the store's cached-item sequence. A read the database
    cannot serve comes back empty and is published as a failed refresh, so
    ``retry()`` reloads the list.
    """

    def __init__(self, store: PagedCacheStore, mediator: RemoteMediator, page_size: int | None = None):
        super().__init__(page_size)
        self.store = store
        self.mediator = mediator
        self._cached = store.get_cached_items(self.page_size)

    async def _initial_action(self) -> InitializeAction:
        return await self.mediator.initialize()

    async def _load(self, load_type: LoadType) -> MediatorResult:
        # the mediator resolves the append boundary under the list lock
        return await self.mediator.load(load_type)

    async def _read(self, offset: int, limit: int) -> list[MediaItem]:
        try:
            return await self._cached.load(offset, limit)
        except SQLAlchemyError as e:
            self._read_failed(e)
            return []

    async def snapshot(self) -> list[MediaItem]:
        try:
            return [item async for item in self._cached]
        except SQLAlchemyError as e:
            self._read_failed(e)
            return []

    def _read_failed(self, error: Exception) -> None:
        logger.error("Cache read failed | list=%s | %s", self.store.list_type.value, str(error)[:200])
        self._last_failed = LoadType.REFRESH
        if self.load_states.refresh.error is None:
            self._publish(refresh=LoadState(status="error", error=error))


class SearchPager(BasePager):
    """Network-only pager for one search query; pages live for this pager only."""

    def __init__(self, remote: RemoteSource, media_type: MediaType, query: str, page_size: int | None = None):
        super().__init__(page_size)
        self.remote = remote
        self.media_type = MediaType(media_type)
        self.query = query.strip()
        self._items: list[MediaItem] = []
        self._seen: set[int] = set()
        self._next_page: int | None = 1

    async def _initial_action(self) -> InitializeAction:
        if not self.query:
            self._publish(append=LoadState(end_of_pagination_reached=True))
            return InitializeAction.SKIP_INITIAL_REFRESH
        return InitializeAction.LAUNCH_INITIAL_REFRESH

    async def _load(self, load_type: LoadType) -> MediatorResult:
        if not self.query:
            return MediatorResult(end_of_pagination_reached=True)

        page = 1 if load_type is LoadType.REFRESH else self._next_page
        if load_type is LoadType.PREPEND or page is None:
            return MediatorResult(end_of_pagination_reached=True)

        try:
            remote_page = await self.remote.search(self.media_type, self.query, page)
        except (NetworkError, ServerError) as e:
            logger.warning("Search failed | media=%s | page=%d | %s", self.media_type.value, page, e)
            return MediatorResult(error=e)

        if load_type is LoadType.REFRESH:
            self._items, self._seen = [], set()
        for item in remote_page.items:
            if item.id not in self._seen:
                self._seen.add(item.id)
                self._items.append(item)
        self._next_page = remote_page.next_page
        return MediatorResult(end_of_pagination_reached=not remote_page.items or remote_page.next_page is None)

    async def _read(self, offset: int, limit: int) -> list[MediaItem]:
        return self._items[offset:offset + limit]
