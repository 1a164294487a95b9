"""Utility helpers for the AI Recs service."""

from __future__ import annotations

import json
import re
from typing import Any


JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
BARE_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(content: str) -> Any:
    """Parse the JSON object carried by a model response.

    Structured-output responses are plain JSON; fenced or prefixed payloads
    are unwrapped before parsing.
    """

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    match = JSON_BLOCK_RE.search(content)
    if match:
        payload = match.group(1)
    else:
        match = BARE_JSON_RE.search(content)
        if not match:
            raise ValueError("No JSON object found in response")
        payload = match.group(0)

    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid JSON payload produced by the model") from exc


def decode_config_segment(segment: str) -> dict[str, Any]:
    """Parse the JSON configuration Stremio places in the path.

    The router hands over the segment already percent-decoded.
    """

    decoded = (segment or "").strip()
    if not decoded:
        return {}
    try:
        payload = json.loads(decoded)
    except json.JSONDecodeError as exc:
        raise ValueError("Configuration segment is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ValueError("Configuration segment must be a JSON object")
    return payload
