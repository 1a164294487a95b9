"""Pydantic models describing candidates, rankings and catalog payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .catalogs import ContentType
from .config import DEFAULT_LOCALE, Settings


class CandidateItem(BaseModel):
    """A recommendable title drawn from one of the Trakt listings."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str | None = None
    year: int | None = None
    external_id: str = Field(alias="externalId", min_length=1)
    group_slug: str | None = Field(default=None, alias="groupSlug")

    def to_prompt_payload(self) -> dict[str, object]:
        """Return the compact representation sent to the ranking model."""

        return self.model_dump(by_alias=True, exclude_none=True)


class RankedEntry(BaseModel):
    """A single scored pick returned by the ranking model."""

    model_config = ConfigDict(populate_by_name=True)

    external_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("externalId", "imdb", "imdb_id"),
    )
    score: float | None = Field(default=None, allow_inf_nan=False)
    reason: str | None = None

    @field_validator("external_id", "reason", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value


class RankingPayload(BaseModel):
    """Structured output the ranking model is constrained to produce."""

    recommendations: list[RankedEntry]


class RankingFailure(str, Enum):
    """Reasons a ranking attempt produced no usable picks."""

    NOT_CONFIGURED = "not_configured"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class RankingResult:
    """Outcome of a ranking request; entries are empty whenever it failed."""

    entries: tuple[RankedEntry, ...] = ()
    failure: RankingFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def failed(cls, failure: RankingFailure) -> "RankingResult":
        return cls(entries=(), failure=failure)


class CatalogMeta(BaseModel):
    """Represents a single media entry returned to Stremio."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    media_type: ContentType = Field(serialization_alias="type")
    display_name: str = Field(serialization_alias="name")
    shape_hint: str = Field(default="regular", serialization_alias="posterShape")
    description: str | None = None
    release_info: str | None = Field(default=None, serialization_alias="releaseInfo")

    def to_stremio(self) -> dict[str, object]:
        """Return a Stremio-compatible meta preview object."""

        return self.model_dump(by_alias=True, exclude_none=True)


class CatalogConfig(BaseModel):
    """Normalized view of the per-request configuration bag."""

    ranking_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("geminiKey", "rankingApiKey"),
    )
    trakt_client_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("traktClientId", "providerClientId"),
    )
    trakt_username: str | None = Field(
        default=None,
        validation_alias=AliasChoices("traktUser", "traktUsername", "providerUsername"),
    )
    locale: str | None = None

    @classmethod
    def from_request(
        cls,
        params: Mapping[str, object],
        *,
        overrides: Mapping[str, object] | None = None,
    ) -> "CatalogConfig":
        payload = dict(params)
        if overrides:
            payload.update(overrides)
        return cls.model_validate(payload)

    @field_validator(
        "ranking_api_key",
        "trakt_client_id",
        "trakt_username",
        "locale",
        mode="before",
    )
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    def resolve(self, settings: Settings) -> "Credentials":
        """Merge with environment settings, which take precedence."""

        return Credentials(
            ranking_api_key=settings.gemini_api_key or self.ranking_api_key,
            trakt_client_id=settings.trakt_client_id or self.trakt_client_id,
            trakt_username=settings.trakt_username or self.trakt_username,
            locale=settings.preferred_locale or self.locale or DEFAULT_LOCALE,
        )


@dataclass(frozen=True, slots=True)
class Credentials:
    """Effective credentials used to serve one catalog request."""

    ranking_api_key: str | None
    trakt_client_id: str | None
    trakt_username: str | None
    locale: str = DEFAULT_LOCALE

    @property
    def complete(self) -> bool:
        return bool(self.ranking_api_key and self.trakt_client_id and self.trakt_username)
