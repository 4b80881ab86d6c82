"""SearchViewModel — search screen with a discover feed shown while not searching."""

import asyncio
import logging

from cinemax.lists import ContentType, MediaType
from cinemax.paging.pager import BasePager, LoadStates
from cinemax.presentation.errors import ErrorClassifier
from cinemax.presentation.events import ChangeQuery, ClearError, Refresh, Retry, SearchEvent
from cinemax.presentation.state import SearchUiState
from cinemax.repository import MediaRepository

logger = logging.getLogger(__name__)


class SearchViewModel:
    def __init__(self, repository: MediaRepository, classifier: ErrorClassifier | None = None):
        self._repository = repository
        self._classifier = classifier or ErrorClassifier()
        self.ui_state = SearchUiState(
            search_movies=self._subscribe(repository.search_pager(MediaType.MOVIE, "")),
            search_tv_shows=self._subscribe(repository.search_pager(MediaType.TV, "")),
            movies=self._subscribe(repository.cached_pager(ContentType.DISCOVER_MOVIES)),
            tv_shows=self._subscribe(repository.cached_pager(ContentType.DISCOVER_TV_SHOWS)),
        )

    async def on_event(self, event: SearchEvent) -> None:
        if isinstance(event, Refresh):
            await self._on_refresh()
        elif isinstance(event, Retry):
            await self._on_retry()
        elif isinstance(event, ClearError):
            self._on_clear_error()
        elif isinstance(event, ChangeQuery):
            self._on_change_query(event.query)
        else:
            raise ValueError(f"Unsupported search event: {type(event).__name__}")

    def _visible_pagers(self) -> list[BasePager]:
        state = self.ui_state
        if state.is_searching:
            return [state.search_movies, state.search_tv_shows]
        return [state.movies, state.tv_shows]

    async def _on_refresh(self) -> None:
        self._update(is_loading=True, error=None)
        try:
            await asyncio.gather(*(pager.refresh() for pager in self._visible_pagers()))
        finally:
            self._update(is_loading=False)

    async def _on_retry(self) -> None:
        self._update(is_retry=True, error=None)
        try:
            await asyncio.gather(*(pager.retry() for pager in self._visible_pagers()))
        finally:
            self._update(is_retry=False)

    def _on_clear_error(self) -> None:
        self._update(error=None)

    def _on_change_query(self, query: str) -> None:
        if query == self.ui_state.query:
            return
        repo = self._repository
        self._update(
            query=query,
            error=None,
            search_movies=self._subscribe(repo.search_pager(MediaType.MOVIE, query)),
            search_tv_shows=self._subscribe(repo.search_pager(MediaType.TV, query)),
        )

    def _subscribe(self, pager: BasePager) -> BasePager:
        seen = LoadStates()

        def on_load_states(states: LoadStates) -> None:
            nonlocal seen
            failed = states.new_failure(seen)
            seen = states
            if failed is None:
                return
            # results of a query the user has already replaced are not shown
            if pager not in self._visible_pagers():
                return
            logger.info("Search load error | query=%s | %s", self.ui_state.query[:80], failed.error)
            self._update(error=self._classifier.to_error_message(failed.error))

        pager.add_load_state_listener(on_load_states)
        return pager

    def _update(self, **changes) -> None:
        self.ui_state = self.ui_state.model_copy(update=changes)
