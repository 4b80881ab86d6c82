"""Per-screen UI state. Pure data: nothing here performs I/O."""

from pydantic import BaseModel, ConfigDict

from cinemax.lists import ContentType
from cinemax.paging.pager import CachedPager, SearchPager
from cinemax.presentation.errors import ErrorMessage


class ListUiState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    content_type: ContentType
    movies: CachedPager
    is_retry: bool = False
    error: ErrorMessage | None = None


class SearchUiState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    query: str = ""
    search_movies: SearchPager
    search_tv_shows: SearchPager
    movies: CachedPager
    tv_shows: CachedPager
    is_loading: bool = False
    is_retry: bool = False
    error: ErrorMessage | None = None

    @property
    def is_searching(self) -> bool:
        return bool(self.query.strip())

    @property
    def is_error(self) -> bool:
        return self.error is not None
