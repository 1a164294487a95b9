"""Assemble the candidate pool from Trakt's public listings."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from pydantic import ValidationError

from ..cache import TTLCache
from ..catalogs import trakt_item_key
from ..models import CandidateItem
from .trakt import TraktClient

logger = logging.getLogger(__name__)

# Order matters: earlier sources win when the same title shows up twice.
POOL_SOURCES: tuple[str, ...] = ("trending", "popular", "anticipated", "played/weekly")

CandidatePool = tuple[CandidateItem, ...]


@dataclass(slots=True)
class SourceOutcome:
    """Result of querying a single listing endpoint."""

    source: str
    items: list[CandidateItem] = field(default_factory=list)
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_candidates(entries: Iterable[Any], *, item_key: str) -> list[CandidateItem]:
    """Convert raw Trakt list entries into candidate items.

    Entries may wrap the media object under ``item_key`` (``movie``/``show``)
    or be the media object itself. Anything without an IMDb id is dropped.
    """

    candidates: list[CandidateItem] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        media = entry.get(item_key)
        if not isinstance(media, dict):
            media = entry
        ids = media.get("ids")
        if not isinstance(ids, dict):
            continue
        imdb = ids.get("imdb")
        if not isinstance(imdb, str) or not imdb.strip():
            continue
        slug = ids.get("slug")
        year = media.get("year")
        title = media.get("title")
        try:
            candidates.append(
                CandidateItem(
                    title=title if isinstance(title, str) else None,
                    year=year if isinstance(year, int) else None,
                    external_id=imdb.strip(),
                    group_slug=slug if isinstance(slug, str) and slug else None,
                )
            )
        except ValidationError:
            continue
    return candidates


def merge_sources(outcomes: Iterable[SourceOutcome]) -> CandidatePool:
    """Concatenate source items in order, keeping the first of each id."""

    seen: set[str] = set()
    pool: list[CandidateItem] = []
    for outcome in outcomes:
        for item in outcome.items:
            if item.external_id in seen:
                continue
            seen.add(item.external_id)
            pool.append(item)
    return tuple(pool)


class CandidatePoolBuilder:
    """Builds and caches the recommendable universe per Trakt kind."""

    def __init__(
        self,
        trakt_client: TraktClient,
        cache: TTLCache,
        *,
        ttl_seconds: float = 7_200,
        source_limit: int = 60,
    ) -> None:
        self._trakt = trakt_client
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._source_limit = source_limit

    @staticmethod
    def cache_key(kind: str) -> str:
        return f"pool:{kind}"

    async def build_pool(self, kind: str, client_id: str) -> CandidatePool:
        """Return the candidate pool for ``movies`` or ``shows``."""

        cache_key = self.cache_key(kind)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        outcomes = await self._query_sources(kind, client_id)
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Trakt %s listing for %s unavailable: %s",
                    outcome.source,
                    kind,
                    outcome.error,
                )

        pool = merge_sources(outcomes)
        if pool:
            self._cache.put(cache_key, pool, self._ttl_seconds)
        else:
            logger.warning("Every Trakt listing failed for %s; pool is empty", kind)
        return pool

    async def _query_sources(self, kind: str, client_id: str) -> list[SourceOutcome]:
        """Query every listing concurrently and record each branch's outcome."""

        results = await asyncio.gather(
            *(
                self._trakt.fetch_list(kind, source, client_id, limit=self._source_limit)
                for source in POOL_SOURCES
            ),
            return_exceptions=True,
        )

        item_key = trakt_item_key(kind)
        outcomes: list[SourceOutcome] = []
        for source, result in zip(POOL_SOURCES, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                outcomes.append(SourceOutcome(source=source, error=result))
                continue
            outcomes.append(
                SourceOutcome(
                    source=source,
                    items=normalize_candidates(result, item_key=item_key),
                )
            )
        return outcomes
