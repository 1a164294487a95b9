"""Rank candidate titles with Gemini's structured-output generation API."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import httpx
from pydantic import ValidationError

from ..config import DEFAULT_LOCALE, Settings
from ..models import CandidateItem, RankingFailure, RankingPayload, RankingResult
from ..utils import extract_json_object

logger = logging.getLogger(__name__)

MAX_WATCHED_IN_PROMPT = 250
MAX_POOL_IN_PROMPT = 150
MAX_RECOMMENDATIONS = 30

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "externalId": {"type": "string"},
                    "score": {"type": "number"},
                    "reason": {"type": "string"},
                },
                "required": ["externalId", "score"],
            },
        }
    },
    "required": ["recommendations"],
}

RANKING_PROMPT_TEMPLATE = """You are a recommender system for {kind_label}.
- Prefer high quality, discovery-friendly picks from the candidate pool.
- STRICTLY exclude anything in recentlyWatched.
- Encourage variety: avoid the same franchise/director back-to-back if possible.
- Return up to {max_results} results as JSON (schema provided), using each candidate's externalId.

DATA:
{data}"""


class GeminiRanker:
    """Client responsible for asking Gemini to rank the candidate pool."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def build_request(
        self,
        kind_label: str,
        watched: Sequence[str],
        pool: Sequence[CandidateItem],
        locale: str,
    ) -> dict[str, Any]:
        """Return the ``generateContent`` body for one ranking call."""

        profile = {
            "locale": locale or DEFAULT_LOCALE,
            "recentlyWatched": list(watched[:MAX_WATCHED_IN_PROMPT]),
            "pool": [item.to_prompt_payload() for item in pool[:MAX_POOL_IN_PROMPT]],
        }
        prompt = RANKING_PROMPT_TEMPLATE.format(
            kind_label=kind_label,
            max_results=MAX_RECOMMENDATIONS,
            data=json.dumps(profile, ensure_ascii=False),
        )
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
                "temperature": 0.4,
                "topP": 0.8,
            },
        }

    async def rank(
        self,
        kind_label: str,
        watched: Sequence[str],
        pool: Sequence[CandidateItem],
        locale: str,
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> RankingResult:
        """Score the pool against the watch history.

        Never raises: transport problems, error statuses and payloads that do
        not match the response schema all come back as a failed result.
        """

        resolved_key = api_key or self._settings.gemini_api_key
        if not resolved_key:
            return RankingResult.failed(RankingFailure.NOT_CONFIGURED)

        resolved_model = model or self._settings.gemini_model
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": resolved_key,
        }
        body = self.build_request(kind_label, watched, pool, locale)

        try:
            response = await self._client.post(
                f"/models/{resolved_model}:generateContent", json=body, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.warning("Gemini ranking request failed: %s", exc.__class__.__name__)
            return RankingResult.failed(RankingFailure.UNAVAILABLE)

        if not response.is_success:
            logger.warning(
                "Gemini ranking returned %s: %s", response.status_code, response.text[:200]
            )
            return RankingResult.failed(RankingFailure.UNAVAILABLE)

        return self.parse_response(response)

    def parse_response(self, response: httpx.Response) -> RankingResult:
        """Turn a successful HTTP response into ranked entries."""

        try:
            data = response.json()
        except ValueError:
            logger.warning("Gemini ranking response was not JSON")
            return RankingResult.failed(RankingFailure.MALFORMED)

        text = self._extract_text(data)
        if not text:
            logger.warning("Gemini ranking response missing text payload")
            return RankingResult.failed(RankingFailure.MALFORMED)

        try:
            parsed = extract_json_object(text)
            payload = RankingPayload.model_validate(parsed)
        except (ValueError, ValidationError) as exc:
            logger.warning("Gemini ranking payload rejected: %s", exc)
            return RankingResult.failed(RankingFailure.MALFORMED)

        return RankingResult(entries=tuple(payload.recommendations))

    @staticmethod
    def _extract_text(data: Any) -> str | None:
        if not isinstance(data, dict):
            return None
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts:
            return None
        part = parts[0]
        text = part.get("text") if isinstance(part, dict) else None
        if not isinstance(text, str) or not text.strip():
            return None
        return text
