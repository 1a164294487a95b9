"""Catalog definitions and the manifest advertised to Stremio."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from .config import DEFAULT_LOCALE, Settings


ContentType = Literal["movie", "series"]
TraktKind = Literal["movies", "shows"]

MANIFEST_ID = "org.yourname.ai.gemini.recs"
MANIFEST_VERSION = "1.1.0"


@dataclass(frozen=True)
class CatalogDefinition:
    """Describes one recommendation catalog shown in Stremio."""

    id: str
    name: str
    content_type: ContentType
    trakt_kind: TraktKind
    label: str


CATALOGS: tuple[CatalogDefinition, ...] = (
    CatalogDefinition(
        id="ai_recs_movies",
        name="🎯 For You — Movies",
        content_type="movie",
        trakt_kind="movies",
        label="movies",
    ),
    CatalogDefinition(
        id="ai_recs_series",
        name="🎯 For You — Series",
        content_type="series",
        trakt_kind="shows",
        label="series",
    ),
)


def trakt_item_key(kind: str) -> str:
    """Key under which Trakt wraps a media object for a listing kind."""

    return "movie" if kind == "movies" else "show"


def find_catalog(content_type: str, catalog_id: str) -> CatalogDefinition | None:
    """Return the definition matching the requested type/id pair."""

    for definition in CATALOGS:
        if definition.content_type == content_type and definition.id == catalog_id:
            return definition
    return None


def build_manifest(settings: Settings) -> dict[str, Any]:
    """Return the addon manifest, including its configuration descriptor."""

    return {
        "id": MANIFEST_ID,
        "version": MANIFEST_VERSION,
        "name": settings.app_name,
        "description": (
            "Personalized movie & series picks via Gemini, using your Trakt history."
        ),
        "logo": "https://stremio.com/asset-src/img/icon.png",
        "resources": ["catalog"],
        "types": ["movie", "series"],
        "catalogs": [
            {"type": definition.content_type, "id": definition.id, "name": definition.name}
            for definition in CATALOGS
        ],
        "idPrefixes": ["tt"],
        "behaviorHints": {
            "configurable": True,
            "configurationRequired": not settings.fully_configured,
        },
        "config": [
            {"key": "geminiKey", "type": "text", "title": "Gemini API Key", "secret": True},
            {"key": "traktClientId", "type": "text", "title": "Trakt Client ID"},
            {"key": "traktUser", "type": "text", "title": "Trakt Username"},
            {
                "key": "locale",
                "type": "text",
                "title": "Preferred country (e.g. IN, US)",
                "default": DEFAULT_LOCALE,
            },
        ],
    }
