"""TMDB REST API v3 integration.

Docs: https://developer.themoviedb.org/reference/intro/getting-started
"""

import logging
import time
from datetime import date
from typing import Any

import httpx
from pydantic import ValidationError

from cinemax.config import settings
from cinemax.errors import NetworkError, NetworkErrorKind, ServerError
from cinemax.lists import SEARCH_ENDPOINTS, ContentType, MediaType, endpoint_for, media_type_for
from cinemax.schemas import MediaItem, RemotePage
from cinemax.services.cache import ResponseCache

logger = logging.getLogger(__name__)

# TMDB refuses page numbers above this, whatever total_pages says
MAX_PAGE = 500


class TmdbClient:
    """Async client for TMDB paginated list and search endpoints."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        search_cache: ResponseCache | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.tmdb_api_key
        self.base_url = (base_url or settings.tmdb_base_url).rstrip("/")
        self.timeout = timeout or settings.tmdb_timeout_seconds
        self.search_cache = search_cache or ResponseCache()

    async def fetch_page(self, list_type: ContentType, page: int) -> RemotePage:
        """Fetch one page of a cached list."""
        path = endpoint_for(list_type)
        data = await self._get(path, {"page": page})
        return self._parse_page(data, page, media_type_for(list_type))

    async def search(self, media_type: MediaType, query: str, page: int) -> RemotePage:
        """Search movies or TV shows by title. Responses are memoised briefly."""
        path = SEARCH_ENDPOINTS[MediaType(media_type)]
        params = {"query": query, "page": page, "include_adult": "false"}

        key = self.search_cache.make_key(path, params)
        data = self.search_cache.get(key)
        if data is not None:
            return self._parse_page(data, page, MediaType(media_type))

        data = await self._get(path, params)
        result = self._parse_page(data, page, MediaType(media_type))
        self.search_cache.set(key, data)
        return result

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a TMDB endpoint and decode it, raising typed errors on failure."""
        query = {"api_key": self.api_key, "language": settings.tmdb_language, **params}
        url = f"{self.base_url}{path}"

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params=query)
        except httpx.TimeoutException as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("TMDB timeout | path=%s | %dms", path, elapsed_ms)
            raise NetworkError(f"TMDB timeout: {path}", NetworkErrorKind.OTHER) from e
        except httpx.NetworkError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("TMDB unreachable | path=%s | %dms | %s", path, elapsed_ms, str(e)[:200])
            raise NetworkError(f"TMDB unreachable: {path}", NetworkErrorKind.OFFLINE) from e
        except httpx.TransportError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("TMDB transport error | path=%s | %dms | %s", path, elapsed_ms, str(e)[:200])
            raise NetworkError(f"TMDB transport error: {path}", NetworkErrorKind.OTHER) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if resp.status_code != 200:
            logger.warning("TMDB | status=%d | path=%s | %dms", resp.status_code, path, elapsed_ms)
            raise ServerError(f"TMDB returned {resp.status_code} for {path}", resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("TMDB decode error | path=%s | %s", path, str(e)[:200])
            raise ServerError(f"TMDB returned an undecodable body for {path}", resp.status_code) from e

        if not isinstance(data, dict):
            logger.error("TMDB decode error | path=%s | body is %s, not an object", path, type(data).__name__)
            raise ServerError(f"TMDB returned an unexpected body for {path}", resp.status_code)

        logger.info(
            "TMDB OK | path=%s | page=%s | items=%d | %dms",
            path, params.get("page"), len(data.get("results") or []), elapsed_ms,
        )
        return data

    def _parse_page(self, data: dict[str, Any], requested_page: int, media_type: MediaType) -> RemotePage:
        """Build a RemotePage, deriving the neighbour page tokens."""
        page = data.get("page")
        if not isinstance(page, int) or page < 1:
            page = requested_page
        total_pages = data.get("total_pages")
        if not isinstance(total_pages, int):
            total_pages = 0
        results = [r for r in data.get("results") or [] if isinstance(r, dict) and r.get("id") is not None]

        try:
            items = [
                self._parse_tv_show(r) if media_type is MediaType.TV else self._parse_movie(r)
                for r in results
            ]
        except ValidationError as e:
            logger.error("TMDB malformed result | media=%s | page=%s | %s", media_type.value, page, str(e)[:200])
            raise ServerError(f"TMDB returned a malformed {media_type.value} page {page}") from e
        last_page = min(total_pages, MAX_PAGE)
        return RemotePage(
            items=items,
            page=page,
            previous_page=page - 1 if page > 1 else None,
            next_page=page + 1 if items and page < last_page else None,
            total_pages=total_pages,
        )

    def _parse_movie(self, r: dict) -> MediaItem:
        return MediaItem(
            id=r["id"],
            media_type=MediaType.MOVIE,
            title=r.get("title") or r.get("original_title") or "",
            overview=r.get("overview") or "",
            poster_path=r.get("poster_path"),
            backdrop_path=r.get("backdrop_path"),
            vote_average=r.get("vote_average") or 0.0,
            vote_count=r.get("vote_count") or 0,
            release_date=_parse_date(r.get("release_date")),
            genre_ids=r.get("genre_ids") or [],
            original_language=r.get("original_language") or "",
        )

    def _parse_tv_show(self, r: dict) -> MediaItem:
        return MediaItem(
            id=r["id"],
            media_type=MediaType.TV,
            title=r.get("name") or r.get("original_name") or "",
            overview=r.get("overview") or "",
            poster_path=r.get("poster_path"),
            backdrop_path=r.get("backdrop_path"),
            vote_average=r.get("vote_average") or 0.0,
            vote_count=r.get("vote_count") or 0,
            release_date=_parse_date(r.get("first_air_date")),
            genre_ids=r.get("genre_ids") or [],
            original_language=r.get("original_language") or "",
        )


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
