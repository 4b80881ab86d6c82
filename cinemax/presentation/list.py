"""ListViewModel — one cached list screen (e.g. "see all upcoming movies")."""

import logging

from cinemax.lists import ContentType
from cinemax.paging.pager import CachedPager, LoadStates
from cinemax.presentation.errors import ErrorClassifier
from cinemax.presentation.events import ClearError, ListEvent, Refresh, Retry
from cinemax.presentation.state import ListUiState
from cinemax.repository import MediaRepository

logger = logging.getLogger(__name__)


class ListViewModel:
    def __init__(
        self,
        content_type: ContentType,
        repository: MediaRepository,
        classifier: ErrorClassifier | None = None,
    ):
        self._repository = repository
        self._classifier = classifier or ErrorClassifier()
        self._seen = LoadStates()
        self.ui_state = ListUiState(
            content_type=ContentType(content_type),
            movies=self._subscribe(repository.cached_pager(content_type)),
        )

    async def on_event(self, event: ListEvent) -> None:
        if isinstance(event, Refresh):
            await self._on_refresh()
        elif isinstance(event, Retry):
            await self._on_retry()
        elif isinstance(event, ClearError):
            self._on_clear_error()
        else:
            raise ValueError(f"Unsupported list event: {type(event).__name__}")

    async def _on_refresh(self) -> None:
        self._update(error=None)
        await self.ui_state.movies.refresh()

    async def _on_retry(self) -> None:
        self._update(is_retry=True, error=None)
        try:
            await self.ui_state.movies.retry()
        finally:
            self._update(is_retry=False)

    def _on_clear_error(self) -> None:
        self._update(error=None)

    def _subscribe(self, pager: CachedPager) -> CachedPager:
        pager.add_load_state_listener(self._on_load_states)
        return pager

    def _on_load_states(self, states: LoadStates) -> None:
        # a failed state stays published until its load reruns; surface each one once
        failed = states.new_failure(self._seen)
        self._seen = states
        if failed is not None:
            logger.info("List load error | list=%s | %s", self.ui_state.content_type.value, failed.error)
            self._update(error=self._classifier.to_error_message(failed.error))

    def _update(self, **changes) -> None:
        self.ui_state = self.ui_state.model_copy(update=changes)
