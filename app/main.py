"""Entry point for the FastAPI-powered Stremio addon."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Mapping

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError

from .cache import TTLCache
from .catalogs import build_manifest
from .config import settings
from .models import CatalogConfig
from .services.gemini import GeminiRanker
from .services.history import WatchHistoryFetcher
from .services.pool import CandidatePoolBuilder
from .services.recommendations import RecommendationService
from .services.trakt import TraktClient
from .utils import decode_config_segment
from .web import render_config_page

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    trakt_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.trakt_api_url),
            timeout=httpx.Timeout(settings.trakt_timeout_seconds, connect=5.0),
        )
    )
    gemini_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.gemini_api_url),
            timeout=httpx.Timeout(settings.gemini_timeout_seconds, connect=5.0),
        )
    )

    cache = TTLCache(settings.cache_max_entries)
    trakt = TraktClient(settings, trakt_http_client)
    fastapi_app.state.recommendation_service = RecommendationService(
        settings,
        CandidatePoolBuilder(
            trakt,
            cache,
            ttl_seconds=settings.pool_cache_seconds,
            source_limit=settings.pool_source_limit,
        ),
        WatchHistoryFetcher(
            trakt,
            cache,
            ttl_seconds=settings.watched_cache_seconds,
            limit=settings.history_limit,
        ),
        GeminiRanker(settings, gemini_http_client),
    )
    logger.info(
        "%s listening on http://localhost:%s/manifest.json",
        settings.app_name,
        settings.server_port,
    )

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Personalized Stremio catalogs ranked by Gemini from Trakt history",
        version="1.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_recommendation_service(app: FastAPI) -> RecommendationService:
    service = getattr(app.state, "recommendation_service", None)
    if not isinstance(service, RecommendationService):
        raise RuntimeError("Recommendation service not initialised")
    return service


def _parse_config(
    query_params: Mapping[str, str], segment: str | None = None
) -> CatalogConfig:
    """Build the request configuration; unreadable input means no configuration."""

    try:
        overrides = decode_config_segment(segment) if segment else None
        return CatalogConfig.from_request(query_params, overrides=overrides)
    except (ValueError, ValidationError) as exc:
        logger.info("Ignoring unreadable catalog configuration: %s", exc)
        return CatalogConfig()


def register_routes(fastapi_app: FastAPI) -> None:
    async def _catalog_endpoint(
        request: Request,
        content_type: str,
        catalog_id: str,
        *,
        config_segment: str | None = None,
    ) -> JSONResponse:
        service = get_recommendation_service(fastapi_app)
        config = _parse_config(request.query_params, config_segment)
        payload = await service.get_catalog_payload(content_type, catalog_id, config)
        return JSONResponse(payload)

    @fastapi_app.get("/health", response_class=PlainTextResponse)
    async def healthcheck() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @fastapi_app.get("/manifest.json")
    async def manifest() -> dict[str, Any]:
        return build_manifest(settings)

    @fastapi_app.get("/configure", response_class=HTMLResponse)
    async def configure() -> HTMLResponse:
        return HTMLResponse(render_config_page(settings))

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}.json")
    async def catalog(
        request: Request, content_type: str, catalog_id: str
    ) -> JSONResponse:
        return await _catalog_endpoint(request, content_type, catalog_id)

    @fastapi_app.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
    async def catalog_with_extra(
        request: Request, content_type: str, catalog_id: str, extra: str
    ) -> JSONResponse:
        return await _catalog_endpoint(request, content_type, catalog_id)

    @fastapi_app.get("/{config}/manifest.json")
    async def manifest_with_config(config: str) -> dict[str, Any]:
        return build_manifest(settings)

    @fastapi_app.get("/{config}/configure", response_class=HTMLResponse)
    async def configure_with_config(config: str) -> HTMLResponse:
        try:
            current = decode_config_segment(config)
        except ValueError:
            current = {}
        return HTMLResponse(render_config_page(settings, current=current))

    @fastapi_app.get("/{config}/catalog/{content_type}/{catalog_id}.json")
    async def catalog_with_config(
        request: Request, config: str, content_type: str, catalog_id: str
    ) -> JSONResponse:
        return await _catalog_endpoint(
            request, content_type, catalog_id, config_segment=config
        )

    @fastapi_app.get("/{config}/catalog/{content_type}/{catalog_id}/{extra}.json")
    async def catalog_with_config_and_extra(
        request: Request, config: str, content_type: str, catalog_id: str, extra: str
    ) -> JSONResponse:
        return await _catalog_endpoint(
            request, content_type, catalog_id, config_segment=config
        )


app = create_app()
