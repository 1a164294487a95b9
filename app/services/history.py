"""Fetch the IMDb ids a Trakt user has already watched."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ..cache import TTLCache
from ..catalogs import trakt_item_key
from .trakt import TraktClient

logger = logging.getLogger(__name__)

WatchHistory = tuple[str, ...]


def extract_watched_ids(entries: Iterable[Any], *, item_key: str) -> WatchHistory:
    """Return IMDb ids from history entries, most recent first, without repeats."""

    watched: list[str] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        media = entry.get(item_key)
        if not isinstance(media, dict):
            continue
        ids = media.get("ids")
        imdb = ids.get("imdb") if isinstance(ids, dict) else None
        if not isinstance(imdb, str) or not imdb or imdb in seen:
            continue
        seen.add(imdb)
        watched.append(imdb)
    return tuple(watched)


class WatchHistoryFetcher:
    """Reads and caches a user's recent Trakt history."""

    def __init__(
        self,
        trakt_client: TraktClient,
        cache: TTLCache,
        *,
        ttl_seconds: float = 900,
        limit: int = 200,
    ) -> None:
        self._trakt = trakt_client
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._limit = limit

    @staticmethod
    def cache_key(kind: str, username: str) -> str:
        return f"watched:{kind}:{username}"

    async def fetch_watched(
        self,
        kind: str,
        username: str,
        client_id: str,
        limit: int | None = None,
    ) -> WatchHistory:
        """Return watched ids for ``kind``; Trakt failures propagate."""

        cache_key = self.cache_key(kind, username)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        entries = await self._trakt.fetch_history(
            kind, username, client_id, limit=limit or self._limit
        )
        item_key = trakt_item_key(kind)
        watched = extract_watched_ids(entries, item_key=item_key)
        logger.info("Loaded %s watched %s for %s", len(watched), kind, username)

        self._cache.put(cache_key, watched, self._ttl_seconds)
        return watched
