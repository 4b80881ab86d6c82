"""Tests for RemoteMediator — refresh/append protocol, failures, concurrency."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from sqlalchemy.exc import SQLAlchemyError

from cinemax.errors import CacheIntegrityError, NetworkError, NetworkErrorKind, ServerError
from cinemax.lists import ContentType
from cinemax.paging.mediator import InitializeAction, ListLockRegistry, LoadType, RemoteMediator
from cinemax.paging.store import PagedCacheStore, StoreTransaction
from cinemax.schemas import RemoteKeyRecord

from conftest import make_page

UPCOMING = ContentType.UPCOMING_MOVIES
TOP_RATED = ContentType.TOP_RATED_MOVIES

A, B, C, D, E = 1, 2, 3, 4, 5


@pytest.fixture
def locks():
    return ListLockRegistry()


@pytest.fixture
def mediator(session_factory, fake_remote, locks):
    return RemoteMediator(PagedCacheStore(session_factory, UPCOMING), fake_remote, locks)


async def _cached_ids(mediator: RemoteMediator) -> list[int]:
    return [item.id async for item in mediator.store.get_cached_items()]


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_caches_exactly_page_one(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))

        result = await mediator.load(LoadType.REFRESH)

        assert not result.is_error
        assert result.end_of_pagination_reached is False
        assert await _cached_ids(mediator) == [A, B, C]
        last_key = await mediator.store.get_key(C)
        assert last_key.previous_page is None
        assert last_key.next_page == 2
        assert fake_remote.calls == [(UPCOMING, 1)]

    @pytest.mark.asyncio
    async def test_refresh_discards_previous_session(self, mediator, fake_remote):
        await mediator.store.replace_all_items([make_page([90, 91]).items[0]])
        await mediator.store.replace_all_keys([RemoteKeyRecord(id=90, previous_page=3, next_page=5)])
        fake_remote.add_page(UPCOMING, make_page([A, B], page=1, next_page=None))

        result = await mediator.load(LoadType.REFRESH)

        assert result.end_of_pagination_reached is True
        assert await _cached_ids(mediator) == [A, B]
        assert await mediator.store.count() == 2

    @pytest.mark.asyncio
    async def test_empty_first_page_ends_pagination(self, mediator, fake_remote):
        result = await mediator.load(LoadType.REFRESH)
        assert result.end_of_pagination_reached is True
        assert await _cached_ids(mediator) == []


class TestAppend:
    @pytest.mark.asyncio
    async def test_two_page_scenario(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        fake_remote.add_page(UPCOMING, make_page([D, E], page=2, next_page=None))

        await mediator.load(LoadType.REFRESH)
        result = await mediator.load(LoadType.APPEND, boundary_item_id=C)

        assert result.end_of_pagination_reached is True
        assert await _cached_ids(mediator) == [A, B, C, D, E]
        assert (await mediator.store.get_key(E)).previous_page == 1
        assert fake_remote.calls == [(UPCOMING, 1), (UPCOMING, 2)]

        again = await mediator.load(LoadType.APPEND, boundary_item_id=E)
        assert again.end_of_pagination_reached is True
        assert fake_remote.calls == [(UPCOMING, 1), (UPCOMING, 2)]
        assert await _cached_ids(mediator) == [A, B, C, D, E]

    @pytest.mark.asyncio
    async def test_unknown_boundary_is_end_of_list(self, mediator, fake_remote):
        result = await mediator.load(LoadType.APPEND, boundary_item_id=12345)
        assert result.end_of_pagination_reached is True
        assert not result.is_error
        assert fake_remote.calls == []

    @pytest.mark.asyncio
    async def test_missing_boundary_is_end_of_list(self, mediator, fake_remote):
        result = await mediator.load(LoadType.APPEND)
        assert result.end_of_pagination_reached is True
        assert fake_remote.calls == []

    @pytest.mark.asyncio
    async def test_append_without_boundary_continues_from_tail(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        fake_remote.add_page(UPCOMING, make_page([D, E], page=2, next_page=None))
        await mediator.load(LoadType.REFRESH)

        result = await mediator.load(LoadType.APPEND)

        assert result.end_of_pagination_reached is True
        assert await _cached_ids(mediator) == [A, B, C, D, E]
        assert fake_remote.calls == [(UPCOMING, 1), (UPCOMING, 2)]

    @pytest.mark.asyncio
    async def test_prepend_never_fetches(self, mediator, fake_remote):
        result = await mediator.load(LoadType.PREPEND)
        assert result.end_of_pagination_reached is True
        assert fake_remote.calls == []


class TestFailures:
    @pytest.mark.asyncio
    async def test_offline_refresh_keeps_cache(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        await mediator.load(LoadType.REFRESH)
        fake_remote.fail_next(UPCOMING, NetworkError("no route", NetworkErrorKind.OFFLINE))

        result = await mediator.load(LoadType.REFRESH)

        assert result.is_error
        assert isinstance(result.error, NetworkError)
        assert result.error.is_offline
        assert await _cached_ids(mediator) == [A, B, C]
        assert (await mediator.store.get_key(A)).next_page == 2

    @pytest.mark.asyncio
    async def test_server_error_on_append_keeps_cursors(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        await mediator.load(LoadType.REFRESH)
        fake_remote.fail_next(UPCOMING, ServerError("boom", 503))

        result = await mediator.load(LoadType.APPEND, boundary_item_id=C)

        assert isinstance(result.error, ServerError)
        assert await _cached_ids(mediator) == [A, B, C]
        assert (await mediator.store.get_key(C)).next_page == 2

    @pytest.mark.asyncio
    async def test_crash_mid_write_rolls_back(self, mediator, fake_remote, monkeypatch):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        await mediator.load(LoadType.REFRESH)
        fake_remote.add_page(UPCOMING, make_page([D, E], page=1, next_page=2))

        async def crash(self, items):
            raise RuntimeError("process died")

        monkeypatch.setattr(StoreTransaction, "replace_all_items", crash)

        with pytest.raises(RuntimeError):
            await mediator.load(LoadType.REFRESH)

        assert await _cached_ids(mediator) == [A, B, C]
        assert (await mediator.store.get_key(A)).next_page == 2

    @pytest.mark.asyncio
    async def test_integrity_failure_is_error_result(self, mediator, fake_remote, monkeypatch):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        await mediator.load(LoadType.REFRESH)
        fake_remote.add_page(UPCOMING, make_page([D, E], page=1, next_page=2))

        async def mismatch(self):
            raise CacheIntegrityError("2 items but 3 cursors")

        monkeypatch.setattr(StoreTransaction, "check_integrity", mismatch)

        result = await mediator.load(LoadType.REFRESH)

        assert isinstance(result.error, CacheIntegrityError)
        assert await _cached_ids(mediator) == [A, B, C]
        assert (await mediator.store.get_key(A)).next_page == 2

    @pytest.mark.asyncio
    async def test_missing_tables_are_error_results(self, bare_session_factory, fake_remote, locks):
        mediator = RemoteMediator(PagedCacheStore(bare_session_factory, UPCOMING), fake_remote, locks)
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))

        refresh = await mediator.load(LoadType.REFRESH)
        append = await mediator.load(LoadType.APPEND)

        assert isinstance(refresh.error, SQLAlchemyError)
        assert isinstance(append.error, SQLAlchemyError)
        assert fake_remote.calls == [(UPCOMING, 1)]

    @pytest.mark.asyncio
    async def test_cancelled_refresh_changes_nothing(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        await mediator.load(LoadType.REFRESH)

        fake_remote.add_page(UPCOMING, make_page([D, E], page=1, next_page=None))
        fake_remote.gate = asyncio.Event()
        task = asyncio.create_task(mediator.load(LoadType.REFRESH))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await _cached_ids(mediator) == [A, B, C]
        assert (await mediator.store.get_key(C)).next_page == 2


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_lists_refresh_concurrently_and_independently(self, session_factory, fake_remote, locks):
        upcoming = RemoteMediator(PagedCacheStore(session_factory, UPCOMING), fake_remote, locks)
        top_rated = RemoteMediator(PagedCacheStore(session_factory, TOP_RATED), fake_remote, locks)
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))
        fake_remote.add_page(TOP_RATED, make_page([C, D, E], page=1, next_page=None))

        results = await asyncio.gather(
            upcoming.load(LoadType.REFRESH),
            top_rated.load(LoadType.REFRESH),
        )

        assert not any(r.is_error for r in results)
        assert await _cached_ids(upcoming) == [A, B, C]
        assert await _cached_ids(top_rated) == [C, D, E]
        assert (await upcoming.store.get_key(C)).next_page == 2
        assert (await top_rated.store.get_key(C)).next_page is None

    @pytest.mark.asyncio
    async def test_same_list_loads_are_serialized(self, session_factory, fake_remote, locks):
        first = RemoteMediator(PagedCacheStore(session_factory, UPCOMING), fake_remote, locks)
        second = RemoteMediator(PagedCacheStore(session_factory, UPCOMING), fake_remote, locks)
        fake_remote.add_page(UPCOMING, make_page([A, B, C], page=1, next_page=2))

        await asyncio.gather(first.load(LoadType.REFRESH), second.load(LoadType.REFRESH))

        assert fake_remote.max_in_flight[UPCOMING] == 1
        assert await _cached_ids(first) == [A, B, C]

    @pytest.mark.asyncio
    async def test_different_lists_overlap(self, session_factory, fake_remote, locks):
        upcoming = RemoteMediator(PagedCacheStore(session_factory, UPCOMING), fake_remote, locks)
        top_rated = RemoteMediator(PagedCacheStore(session_factory, TOP_RATED), fake_remote, locks)
        fake_remote.gate = asyncio.Event()

        tasks = [
            asyncio.create_task(upcoming.load(LoadType.REFRESH)),
            asyncio.create_task(top_rated.load(LoadType.REFRESH)),
        ]
        await asyncio.sleep(0.01)
        # both fetches are in flight at once: neither list waited on the other
        assert fake_remote.in_flight == {UPCOMING: 1, TOP_RATED: 1}
        fake_remote.gate.set()
        await asyncio.gather(*tasks)


class TestInitialize:
    @pytest.mark.asyncio
    async def test_empty_cache_launches_refresh(self, mediator):
        assert await mediator.initialize() is InitializeAction.LAUNCH_INITIAL_REFRESH

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_refresh(self, mediator, fake_remote):
        fake_remote.add_page(UPCOMING, make_page([A], page=1, next_page=None))
        await mediator.load(LoadType.REFRESH)
        assert await mediator.initialize() is InitializeAction.SKIP_INITIAL_REFRESH

    @pytest.mark.asyncio
    async def test_stale_cache_launches_refresh(self, mediator):
        old = datetime.now(timezone.utc) - mediator.cache_timeout - timedelta(minutes=1)
        await mediator.store.replace_all_keys([RemoteKeyRecord(id=A, next_page=2, created_at=old)])
        assert await mediator.initialize() is InitializeAction.LAUNCH_INITIAL_REFRESH

    @pytest.mark.asyncio
    async def test_unreadable_cache_launches_refresh(self, bare_session_factory, fake_remote, locks):
        mediator = RemoteMediator(PagedCacheStore(bare_session_factory, UPCOMING), fake_remote, locks)
        assert await mediator.initialize() is InitializeAction.LAUNCH_INITIAL_REFRESH
