"""Demo data served when no TMDB API key is configured."""

from datetime import date, timedelta

from cinemax.lists import LIST_ENDPOINTS, ContentType, MediaType, media_type_for
from cinemax.schemas import MediaItem, RemotePage

DEMO_PAGES = 3
DEMO_PAGE_SIZE = 20

_TITLE_WORDS = [
    "Midnight", "Harbor", "Echoes", "Paper", "Crown", "Silent", "Orbit", "Garden",
    "Winter", "Signal", "Velvet", "Frontier", "Ashes", "Lantern", "Tide", "Cipher",
]


class DemoRemoteSource:
    """Deterministic offline stand-in for TmdbClient."""

    def __init__(self, pages: int = DEMO_PAGES, page_size: int = DEMO_PAGE_SIZE):
        self.pages = pages
        self.page_size = page_size

    async def fetch_page(self, list_type: ContentType, page: int) -> RemotePage:
        list_type = ContentType(list_type)
        if page < 1 or page > self.pages:
            return RemotePage(page=page, total_pages=self.pages)

        index = list(LIST_ENDPOINTS).index(list_type)
        media_type = media_type_for(list_type)
        items = [
            _demo_item(index, page, i, media_type)
            for i in range(self.page_size)
        ]
        return _page(items, page, self.pages)

    async def search(self, media_type: MediaType, query: str, page: int) -> RemotePage:
        media_type = MediaType(media_type)
        needle = query.strip().lower()
        matches: dict[int, MediaItem] = {}
        if needle:
            for content_type in LIST_ENDPOINTS:
                if media_type_for(content_type) is not media_type:
                    continue
                for p in range(1, self.pages + 1):
                    for item in (await self.fetch_page(content_type, p)).items:
                        if needle in item.title.lower():
                            matches.setdefault(item.id, item)

        found = list(matches.values())
        total_pages = -(-len(found) // self.page_size)
        start = (page - 1) * self.page_size
        return _page(found[start:start + self.page_size], page, total_pages)


def _demo_item(list_index: int, page: int, i: int, media_type: MediaType) -> MediaItem:
    n = (page - 1) * DEMO_PAGE_SIZE + i
    first = _TITLE_WORDS[(list_index + n) % len(_TITLE_WORDS)]
    second = _TITLE_WORDS[(list_index * 3 + n * 7) % len(_TITLE_WORDS)]
    kind = "Show" if media_type is MediaType.TV else "Story"
    return MediaItem(
        id=(list_index + 1) * 10_000 + n,
        media_type=media_type,
        title=f"{first} {second} {kind} {n + 1}",
        overview="Demo entry. Configure TMDB_API_KEY for real listings.",
        vote_average=round(5.0 + (n * 37 % 50) / 10, 1),
        vote_count=100 + n,
        release_date=date(2020, 1, 1) + timedelta(days=list_index * 40 + n * 9),
    )


def _page(items: list[MediaItem], page: int, total_pages: int) -> RemotePage:
    return RemotePage(
        items=items,
        page=page,
        previous_page=page - 1 if page > 1 else None,
        next_page=page + 1 if items and page < total_pages else None,
        total_pages=total_pages,
    )
