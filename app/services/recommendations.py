"""High level orchestration for recommendation catalogs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..catalogs import find_catalog
from ..config import Settings
from ..models import CatalogConfig, CatalogMeta
from .finalizer import finalize_metas
from .gemini import GeminiRanker
from .history import WatchHistoryFetcher
from .pool import CandidatePoolBuilder
from .trakt import TraktError

logger = logging.getLogger(__name__)


class RecommendationService:
    """Coordinates Trakt ingestion with Gemini ranking for one catalog request."""

    def __init__(
        self,
        settings: Settings,
        pool_builder: CandidatePoolBuilder,
        history_fetcher: WatchHistoryFetcher,
        ranker: GeminiRanker,
    ):
        self._settings = settings
        self._pool_builder = pool_builder
        self._history = history_fetcher
        self._ranker = ranker

    async def get_catalog(
        self,
        content_type: str,
        catalog_id: str,
        config: CatalogConfig,
    ) -> list[CatalogMeta]:
        """Return the recommendations for a catalog; never raises."""

        definition = find_catalog(content_type, catalog_id)
        if definition is None:
            logger.info("Unsupported catalog requested: %s/%s", content_type, catalog_id)
            return []

        credentials = config.resolve(self._settings)
        if not credentials.complete:
            logger.info("Catalog %s requested without complete configuration", catalog_id)
            return []

        try:
            pool, watched = await asyncio.gather(
                self._pool_builder.build_pool(
                    definition.trakt_kind, credentials.trakt_client_id
                ),
                self._history.fetch_watched(
                    definition.trakt_kind,
                    credentials.trakt_username,
                    credentials.trakt_client_id,
                ),
            )

            result = await self._ranker.rank(
                definition.label,
                watched,
                pool,
                credentials.locale,
                api_key=credentials.ranking_api_key,
            )
            if not result.ok:
                logger.info(
                    "Ranking unavailable for %s (%s); serving unranked pool",
                    catalog_id,
                    result.failure.value,
                )
            ranked = result.entries if result.ok else ()
            return finalize_metas(definition, ranked, pool, watched)
        except TraktError as exc:
            logger.warning("Catalog error for %s: %s", catalog_id, exc)
            return []
        except Exception:
            logger.exception("Unexpected catalog error for %s", catalog_id)
            return []

    async def get_catalog_payload(
        self,
        content_type: str,
        catalog_id: str,
        config: CatalogConfig,
    ) -> dict[str, Any]:
        """Return the Stremio catalog response body."""

        metas = await self.get_catalog(content_type, catalog_id, config)
        return {"metas": [meta.to_stremio() for meta in metas]}
