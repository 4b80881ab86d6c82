"""In-memory memo for search responses.

Search pages are not persisted (a query is a throwaway list), but retyping
the same query within a few minutes should not hit TMDB again. Cached list
pages never go through here: a refresh must always reach the network.
"""

import hashlib
import json
import logging

from cachetools import TTLCache

from cinemax.config import settings

logger = logging.getLogger(__name__)


class ResponseCache:
    """TTL-bounded memo of decoded JSON responses."""

    def __init__(self, maxsize: int | None = None, ttl: int | None = None):
        self._entries = TTLCache(
            maxsize=maxsize or settings.search_cache_size,
            ttl=ttl or settings.search_cache_ttl,
        )

    def make_key(self, path: str, params: dict) -> str:
        """Generate a deterministic cache key from the endpoint path and its params."""
        normalized = json.dumps(params, sort_keys=True, ensure_ascii=False)
        content = f"{path}:{normalized}"
        return f"cx:{hashlib.sha256(content.encode()).hexdigest()[:32]}"

    def get(self, key: str) -> dict | None:
        """Read from cache. Returns None on miss."""
        data = self._entries.get(key)
        if data is not None:
            logger.debug("Cache HIT | key=%s", key[:20])
        return data

    def set(self, key: str, data: dict) -> None:
        self._entries[key] = data

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
