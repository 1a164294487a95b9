"""End-to-end behaviour of the recommendation pipeline."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from app.cache import TTLCache
from app.config import Settings
from app.models import CatalogConfig
from app.services.gemini import GeminiRanker
from app.services.history import WatchHistoryFetcher
from app.services.pool import CandidatePoolBuilder
from app.services.recommendations import RecommendationService
from app.services.trakt import TraktClient

CONFIG = CatalogConfig.from_request(
    {"geminiKey": "gemini-key", "traktClientId": "client-id", "traktUser": "alice"}
)

TRENDING = [
    {"watchers": 9, "movie": {"title": "Seen It", "year": 2020, "ids": {"imdb": "tt1", "slug": "seen-it"}}},
    {"watchers": 7, "movie": {"title": "Fresh", "year": 2021, "ids": {"imdb": "tt2", "slug": "fresh"}}},
    {"watchers": 5, "movie": {"title": "Newer", "year": 2022, "ids": {"imdb": "tt3", "slug": "newer"}}},
]
HISTORY = [{"id": 1, "movie": {"title": "Seen It", "ids": {"imdb": "tt1"}}}]


class FakeUpstreams:
    """Serves Trakt and Gemini responses and records every request."""

    def __init__(
        self,
        *,
        gemini_status: int = 200,
        gemini_payload: dict[str, Any] | None = None,
        history_status: int = 200,
    ) -> None:
        self.trakt_requests: list[httpx.Request] = []
        self.gemini_requests: list[httpx.Request] = []
        self._gemini_status = gemini_status
        self._gemini_payload = gemini_payload or {"recommendations": []}
        self._history_status = history_status

    def trakt(self, request: httpx.Request) -> httpx.Response:
        self.trakt_requests.append(request)
        if request.url.path == "/movies/trending":
            return httpx.Response(200, json=TRENDING)
        if request.url.path.startswith("/users/"):
            if self._history_status != 200:
                return httpx.Response(self._history_status, json={})
            return httpx.Response(200, json=HISTORY)
        return httpx.Response(200, json=[])

    def gemini(self, request: httpx.Request) -> httpx.Response:
        self.gemini_requests.append(request)
        if self._gemini_status != 200:
            return httpx.Response(self._gemini_status, json={})
        text = json.dumps(self._gemini_payload)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


async def _run(
    upstreams: FakeUpstreams,
    content_type: str = "movie",
    catalog_id: str = "ai_recs_movies",
    config: CatalogConfig = CONFIG,
    settings: Settings | None = None,
) -> list[dict[str, object]]:
    resolved_settings = settings or Settings(_env_file=None)
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(upstreams.trakt), base_url="https://trakt.example.com"
    ) as trakt_http, httpx.AsyncClient(
        transport=httpx.MockTransport(upstreams.gemini), base_url="https://gemini.example.com/v1beta/"
    ) as gemini_http:
        cache = TTLCache()
        trakt = TraktClient(resolved_settings, trakt_http)
        service = RecommendationService(
            resolved_settings,
            CandidatePoolBuilder(trakt, cache),
            WatchHistoryFetcher(trakt, cache),
            GeminiRanker(resolved_settings, gemini_http),
        )
        payload = await service.get_catalog_payload(content_type, catalog_id, config)
    return payload["metas"]


@pytest.mark.anyio("asyncio")
async def test_ranked_catalog_excludes_watched_titles() -> None:
    upstreams = FakeUpstreams(
        gemini_payload={
            "recommendations": [
                {"externalId": "tt1", "score": 0.99},
                {"externalId": "tt3", "score": 0.9, "reason": "Newest pick"},
                {"externalId": "tt2", "score": 0.5},
            ]
        }
    )

    metas = await _run(upstreams)

    assert [meta["id"] for meta in metas] == ["tt3", "tt2"]
    assert metas[0]["description"] == "Newest pick"
    assert len(upstreams.gemini_requests) == 1
    prompt = json.loads(upstreams.gemini_requests[0].content)["contents"][0]["parts"][0]["text"]
    assert '"recentlyWatched": ["tt1"]' in prompt


@pytest.mark.anyio("asyncio")
async def test_ranking_failure_serves_unranked_pool() -> None:
    upstreams = FakeUpstreams(gemini_status=500)

    metas = await _run(upstreams)

    assert [meta["id"] for meta in metas] == ["tt2", "tt3"]
    assert all(meta["type"] == "movie" for meta in metas)


@pytest.mark.anyio("asyncio")
async def test_history_failure_yields_empty_catalog() -> None:
    upstreams = FakeUpstreams(history_status=404)

    metas = await _run(upstreams)

    assert metas == []
    assert upstreams.gemini_requests == []


@pytest.mark.anyio("asyncio")
async def test_missing_ranking_key_makes_no_upstream_calls() -> None:
    upstreams = FakeUpstreams()
    config = CatalogConfig.from_request({"traktClientId": "client-id", "traktUser": "alice"})

    metas = await _run(upstreams, config=config)

    assert metas == []
    assert upstreams.trakt_requests == []
    assert upstreams.gemini_requests == []


@pytest.mark.anyio("asyncio")
async def test_unsupported_catalog_returns_nothing() -> None:
    upstreams = FakeUpstreams()

    assert await _run(upstreams, content_type="series", catalog_id="ai_recs_movies") == []
    assert await _run(upstreams, content_type="movie", catalog_id="popular") == []
    assert upstreams.trakt_requests == []


@pytest.mark.anyio("asyncio")
async def test_environment_credentials_take_precedence() -> None:
    upstreams = FakeUpstreams()
    settings = Settings(
        _env_file=None,
        GEMINI_API_KEY="env-key",
        TRAKT_CLIENT_ID="env-client",
        TRAKT_USERNAME="env-user",
        PREFERRED_LOCALE="US",
    )

    await _run(upstreams, config=CatalogConfig(), settings=settings)

    assert all(request.headers["trakt-api-key"] == "env-client" for request in upstreams.trakt_requests)
    history_paths = [r.url.path for r in upstreams.trakt_requests if r.url.path.startswith("/users/")]
    assert history_paths == ["/users/env-user/history/movies"]
    gemini_request = upstreams.gemini_requests[0]
    assert gemini_request.headers["x-goog-api-key"] == "env-key"
    assert '"locale": "US"' in json.loads(gemini_request.content)["contents"][0]["parts"][0]["text"]
