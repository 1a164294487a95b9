from __future__ import annotations

from urllib.parse import quote

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import register_routes
from app.models import CatalogConfig, CatalogMeta
from app.services.recommendations import RecommendationService


class DummyRecommendationService(RecommendationService):
    """Minimal RecommendationService stub for route testing."""

    def __init__(self) -> None:  # pragma: no cover - nothing to initialise
        # Deliberately skip super().__init__ to avoid touching external systems.
        self.calls: list[tuple[str, str, CatalogConfig]] = []

    async def get_catalog(  # type: ignore[override]
        self, content_type: str, catalog_id: str, config: CatalogConfig
    ) -> list[CatalogMeta]:
        self.calls.append((content_type, catalog_id, config))
        if content_type != "movie":
            return []
        return [CatalogMeta(id="tt0113277", media_type="movie", display_name="Heat")]


def _client() -> tuple[TestClient, DummyRecommendationService]:
    app = FastAPI()
    register_routes(app)
    service = DummyRecommendationService()
    app.state.recommendation_service = service
    return TestClient(app), service


def test_manifest_advertises_both_catalogs_and_config() -> None:
    client, _ = _client()

    with client:
        response = client.get("/manifest.json")

    assert response.status_code == 200
    payload = response.json()
    assert payload["resources"] == ["catalog"]
    assert payload["idPrefixes"] == ["tt"]
    assert [(c["type"], c["id"]) for c in payload["catalogs"]] == [
        ("movie", "ai_recs_movies"),
        ("series", "ai_recs_series"),
    ]
    assert payload["behaviorHints"]["configurable"] is True
    config_keys = {entry["key"]: entry for entry in payload["config"]}
    assert config_keys["geminiKey"]["secret"] is True
    assert config_keys["locale"]["default"] == "IN"


def test_configured_manifest_path_is_served() -> None:
    client, _ = _client()
    segment = quote('{"traktUser":"alice"}', safe="")

    with client:
        response = client.get(f"/{segment}/manifest.json")

    assert response.status_code == 200
    assert response.json()["id"] == "org.yourname.ai.gemini.recs"


def test_catalog_returns_metas_payload() -> None:
    client, service = _client()

    with client:
        response = client.get(
            "/catalog/movie/ai_recs_movies.json",
            params={"geminiKey": "key", "traktClientId": "client", "traktUser": "alice"},
        )

    assert response.status_code == 200
    assert response.json() == {
        "metas": [{"id": "tt0113277", "type": "movie", "name": "Heat", "posterShape": "regular"}]
    }
    _, _, config = service.calls[0]
    assert config.trakt_username == "alice"


def test_catalog_reads_config_from_path_segment() -> None:
    client, service = _client()
    segment = quote('{"geminiKey":"key","traktClientId":"client","traktUser":"path-user"}', safe="")

    with client:
        response = client.get(
            f"/{segment}/catalog/movie/ai_recs_movies.json", params={"traktUser": "query-user"}
        )

    assert response.status_code == 200
    _, catalog_id, config = service.calls[0]
    assert catalog_id == "ai_recs_movies"
    assert config.trakt_username == "path-user"
    assert config.ranking_api_key == "key"


def test_catalog_with_extra_segment_is_routed() -> None:
    client, service = _client()

    with client:
        response = client.get("/catalog/movie/ai_recs_movies/skip=0.json")

    assert response.status_code == 200
    assert service.calls[0][1] == "ai_recs_movies"


def test_unknown_catalog_and_bad_config_still_answer_ok() -> None:
    client, service = _client()

    with client:
        unknown = client.get("/catalog/channel/whatever.json")
        garbled = client.get("/not-json/catalog/movie/ai_recs_movies.json")

    assert unknown.status_code == 200
    assert unknown.json() == {"metas": []}
    assert garbled.status_code == 200
    assert service.calls[-1][2] == CatalogConfig()


def test_health_and_configure_pages() -> None:
    client, _ = _client()

    with client:
        health = client.get("/health")
        configure = client.get("/configure")

    assert health.status_code == 200
    assert health.text == "ok"
    assert configure.status_code == 200
    assert "Trakt Username" in configure.text


def test_config_segment_is_decoded_exactly_once() -> None:
    client, service = _client()
    segment = quote('{"traktUser":"100%25 fan"}', safe="")

    with client:
        response = client.get(f"/{segment}/catalog/movie/ai_recs_movies.json")

    assert response.status_code == 200
    assert service.calls[0][2].trakt_username == "100%25 fan"
