"""Cinemax backend — FastAPI application entry point.

Serves cached movie/TV lists and search results as windows of the screens'
UI state.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from cinemax.config import settings
from cinemax.lists import ContentType
from cinemax.presentation.errors import ErrorMessage
from cinemax.presentation.events import ChangeQuery, Refresh
from cinemax.presentation.list import ListViewModel
from cinemax.presentation.search import SearchViewModel
from cinemax.repository import MediaRepository
from cinemax.schemas import ErrorMessageOut, ListPageResponse, MediaCard, SearchPageResponse

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("cinemax")

_repository: MediaRepository | None = None


def get_repository() -> MediaRepository:
    """FastAPI dependency — the process-wide repository (shares list locks)."""
    global _repository
    if _repository is None:
        _repository = MediaRepository()
    return _repository


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Cinemax backend starting | demo_mode=%s", settings.is_demo_mode)

    from cinemax.database import close_db, init_db
    db_ok = await init_db()
    logger.info("Database: %s", "ready" if db_ok else "unavailable")

    yield

    await close_db()
    logger.info("Cinemax backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Cinemax API",
    description="Cached, paginated movie and TV-show lists",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _error_out(error: ErrorMessage | None) -> ErrorMessageOut | None:
    if error is None:
        return None
    return ErrorMessageOut(message_key=error.message_key, is_offline=error.is_offline)


async def _list_window(vm: ListViewModel, offset: int, limit: int) -> ListPageResponse:
    pager = vm.ui_state.movies
    items = await pager.load_window(offset, limit)
    state = vm.ui_state
    return ListPageResponse(
        content_type=state.content_type,
        offset=offset,
        items=[MediaCard.from_item(item) for item in items],
        end_reached=len(items) < limit and pager.load_states.append.end_of_pagination_reached,
        is_retry=state.is_retry,
        error=_error_out(state.error),
    )


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "demo_mode": settings.is_demo_mode,
        "has_tmdb_key": settings.has_tmdb_key,
    }


@app.get("/api/lists")
async def list_content_types():
    return {"content_types": [c.value for c in ContentType]}


@app.get("/api/lists/{content_type}", response_model=ListPageResponse)
async def get_list(
    content_type: ContentType,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    repository: MediaRepository = Depends(get_repository),
):
    """Window of a cached list; pages missing from the cache are fetched on the way."""
    vm = ListViewModel(content_type, repository)
    response = await _list_window(vm, offset, limit)
    logger.info(
        "List served | list=%s | offset=%d | items=%d | error=%s",
        content_type.value, offset, len(response.items), response.error.message_key if response.error else "-",
    )
    return response


@app.post("/api/lists/{content_type}/refresh", response_model=ListPageResponse)
async def refresh_list(
    content_type: ContentType,
    limit: int = Query(20, ge=1, le=100),
    repository: MediaRepository = Depends(get_repository),
):
    """Pull-to-refresh: reload page 1 and return the first window."""
    vm = ListViewModel(content_type, repository)
    await vm.on_event(Refresh())
    return await _list_window(vm, 0, limit)


@app.get("/api/search", response_model=SearchPageResponse)
async def search(
    query: str = Query("", max_length=200),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    repository: MediaRepository = Depends(get_repository),
):
    """Search movies and TV shows; an empty query returns the discover feed."""
    vm = SearchViewModel(repository)
    await vm.on_event(ChangeQuery(query=query))
    state = vm.ui_state

    if state.is_searching:
        movies = await state.search_movies.load_window(offset, limit)
        tv_shows = await state.search_tv_shows.load_window(offset, limit)
    else:
        movies = await state.movies.load_window(offset, limit)
        tv_shows = await state.tv_shows.load_window(offset, limit)

    state = vm.ui_state
    return SearchPageResponse(
        query=state.query,
        is_searching=state.is_searching,
        offset=offset,
        movies=[MediaCard.from_item(item) for item in movies],
        tv_shows=[MediaCard.from_item(item) for item in tv_shows],
        error=_error_out(state.error),
    )
