"""Utilities for communicating with the Trakt API."""

from __future__ import annotations

import logging
from typing import Any, Literal
from urllib.parse import quote

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)

TraktFailureReason = Literal["status", "parse", "transport"]


class TraktError(RuntimeError):
    """Raised when a Trakt request cannot produce a JSON payload."""

    def __init__(
        self,
        path: str,
        *,
        reason: TraktFailureReason,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        self.status_code = status_code
        message = f"Trakt {path} -> {status_code if status_code is not None else reason}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TraktClient:
    """Thin wrapper around the Trakt HTTP API.

    Every call is a single attempt; callers decide how to degrade.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self, client_id: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "trakt-api-version": "2",
            "trakt-api-key": client_id,
            "User-Agent": f"{self._settings.app_name} (airecs)",
        }

    async def fetch_json(
        self,
        path: str,
        client_id: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Return the decoded JSON body for ``path`` relative to the API root."""

        url = "/" + path.lstrip("/")
        try:
            response = await self._client.get(
                url, headers=self._headers(client_id), params=params
            )
        except httpx.HTTPError as exc:
            raise TraktError(
                path, reason="transport", detail=exc.__class__.__name__
            ) from exc

        if not response.is_success:
            raise TraktError(path, reason="status", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise TraktError(
                path, reason="parse", status_code=response.status_code
            ) from exc

    async def fetch_list(
        self,
        kind: str,
        list_type: str,
        client_id: str,
        *,
        limit: int,
    ) -> list[Any]:
        """Fetch a public listing such as ``trending`` or ``played/weekly``."""

        data = await self.fetch_json(
            f"{kind}/{list_type}", client_id, params={"limit": limit}
        )
        if not isinstance(data, list):
            logger.warning("Unexpected Trakt %s structure for %s", list_type, kind)
            return []
        return data

    async def fetch_history(
        self,
        kind: str,
        username: str,
        client_id: str,
        *,
        limit: int,
    ) -> list[Any]:
        """Fetch the most recent history entries of a public Trakt profile."""

        path = f"users/{quote(username, safe='')}/history/{kind}"
        data = await self.fetch_json(path, client_id, params={"limit": limit})
        if not isinstance(data, list):
            logger.warning("Unexpected Trakt history structure for %s", username)
            return []
        return data
