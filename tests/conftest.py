"""Shared test fixtures and configuration."""

import asyncio
import os

import pytest

# Demo mode during tests (no real API key)
os.environ.setdefault("TMDB_API_KEY", "")

from cinemax.database import create_tables, make_engine, make_session_factory  # noqa: E402
from cinemax.lists import ContentType, MediaType  # noqa: E402
from cinemax.paging.mediator import ListLockRegistry  # noqa: E402
from cinemax.repository import MediaRepository  # noqa: E402
from cinemax.schemas import MediaItem, RemotePage  # noqa: E402


class FakeRemoteSource:
    """Scripted RemoteSource.

    Pages are registered per list; ``fail_next`` queues an exception for the
    next fetch of a list. Every fetch is logged in ``calls`` and the peak
    number of concurrent fetches per list is kept in ``max_in_flight``.
    """

    def __init__(self):
        self.pages: dict[ContentType, dict[int, RemotePage]] = {}
        self.search_pages: dict[tuple[MediaType, str], dict[int, RemotePage]] = {}
        self.failures: dict[object, list[Exception]] = {}
        self.calls: list[tuple] = []
        self.in_flight: dict[ContentType, int] = {}
        self.max_in_flight: dict[ContentType, int] = {}
        self.gate: asyncio.Event | None = None

    def add_page(self, list_type: ContentType, page: RemotePage) -> None:
        self.pages.setdefault(list_type, {})[page.page] = page

    def add_search_page(self, media_type: MediaType, query: str, page: RemotePage) -> None:
        self.search_pages.setdefault((media_type, query), {})[page.page] = page

    def fail_next(self, key, error: Exception) -> None:
        self.failures.setdefault(key, []).append(error)

    async def fetch_page(self, list_type: ContentType, page: int) -> RemotePage:
        self.calls.append((list_type, page))
        self.in_flight[list_type] = self.in_flight.get(list_type, 0) + 1
        self.max_in_flight[list_type] = max(self.max_in_flight.get(list_type, 0), self.in_flight[list_type])
        try:
            if self.gate is not None:
                await self.gate.wait()
            # let other tasks run while this fetch is "on the wire"
            await asyncio.sleep(0.01)
            if self.failures.get(list_type):
                raise self.failures[list_type].pop(0)
            return self.pages.get(list_type, {}).get(page, RemotePage(page=page))
        finally:
            self.in_flight[list_type] -= 1

    async def search(self, media_type: MediaType, query: str, page: int) -> RemotePage:
        self.calls.append(("search", media_type, query, page))
        await asyncio.sleep(0)
        if self.failures.get(media_type):
            raise self.failures[media_type].pop(0)
        return self.search_pages.get((media_type, query), {}).get(page, RemotePage(page=page))


def make_item(id: int, title: str | None = None, media_type: MediaType = MediaType.MOVIE) -> MediaItem:
    return MediaItem(id=id, media_type=media_type, title=title or f"Item {id}", vote_average=7.25)


def make_page(ids: list[int], page: int = 1, next_page: int | None = None, media_type: MediaType = MediaType.MOVIE) -> RemotePage:
    return RemotePage(
        items=[make_item(i, media_type=media_type) for i in ids],
        page=page,
        previous_page=page - 1 if page > 1 else None,
        next_page=next_page,
        total_pages=next_page or page,
    )


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite file with all tables created."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'cinemax.db'}")
    await create_tables(engine)
    yield make_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def bare_session_factory(tmp_path):
    """Session factory over a SQLite file whose tables were never created."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'bare.db'}")
    yield make_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def fake_remote():
    return FakeRemoteSource()


@pytest.fixture
def repository(session_factory, fake_remote):
    return MediaRepository(session_factory, fake_remote, ListLockRegistry(), page_size=3)


@pytest.fixture
def sample_movie_page():
    """Sample TMDB /movie/upcoming response."""
    return {
        "page": 1,
        "total_pages": 42,
        "total_results": 830,
        "results": [
            {
                "id": 693134,
                "title": "Dune: Part Two",
                "original_title": "Dune: Part Two",
                "overview": "Follow the mythic journey of Paul Atreides.",
                "poster_path": "/1pdfLvkbY9ohJlCjQH2CZjjYVvJ.jpg",
                "backdrop_path": "/xOMo8BRK7PfcJv9JCnx7s5hj0PX.jpg",
                "vote_average": 8.25,
                "vote_count": 4210,
                "release_date": "2024-02-27",
                "genre_ids": [878, 12],
                "original_language": "en",
            },
            {
                "id": 929590,
                "title": "Civil War",
                "overview": "",
                "poster_path": None,
                "backdrop_path": None,
                "vote_average": 7.0,
                "vote_count": 1500,
                "release_date": "",
                "genre_ids": [10752],
                "original_language": "en",
            },
        ],
    }


@pytest.fixture
def sample_tv_page():
    """Sample TMDB /tv/top_rated response."""
    return {
        "page": 3,
        "total_pages": 3,
        "results": [
            {
                "id": 1396,
                "name": "Breaking Bad",
                "original_name": "Breaking Bad",
                "overview": "A chemistry teacher diagnosed with cancer.",
                "poster_path": "/ggFHVNu6YYI5L9pCfOacjizRGt.jpg",
                "vote_average": 8.9,
                "vote_count": 13000,
                "first_air_date": "2008-01-20",
                "genre_ids": [18, 80],
                "original_language": "en",
            },
        ],
    }
