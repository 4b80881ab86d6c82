"""Contract every remote list source satisfies."""

from typing import Protocol

from cinemax.lists import ContentType, MediaType
from cinemax.schemas import RemotePage


class RemoteSource(Protocol):
    """Paginated remote lists.

    Implementations raise NetworkError (offline or other) when the service
    cannot be reached and ServerError when it answers with an unusable page.
    """

    async def fetch_page(self, list_type: ContentType, page: int) -> RemotePage: ...

    async def search(self, media_type: MediaType, query: str, page: int) -> RemotePage: ...
