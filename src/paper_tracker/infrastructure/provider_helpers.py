"""Helpers shared by the provider adapters: request headers and safe JSON parsing."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from paper_tracker.domain.exceptions import InvalidResponseError
from paper_tracker.infrastructure.http_fetcher import USER_AGENT

logger = logging.getLogger(__name__)


def build_github_headers(token: str | None = None, *, raw: bool = False) -> dict[str, str]:
    """Headers for api.github.com (or, with *raw*, raw.githubusercontent.com)."""
    headers = {"User-Agent": USER_AGENT}
    if not raw:
        headers["Accept"] = "application/vnd.github.v3+json"
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_gitlab_headers(token: str | None = None) -> dict[str, str]:
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["PRIVATE-TOKEN"] = token
    return headers


def build_bridge_headers(api_key: str | None = None) -> dict[str, str]:
    headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
    if api_key:
        headers["X-API-Key"] = api_key
    return headers


def safe_json(response: httpx.Response, context: str, provider_name: str = "") -> Any:
    """Decode a JSON body, turning HTML error pages and garbage into a typed error."""
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as exc:
        # Log only a prefix so a large HTML page does not flood the logs
        logger.error("JSON parse failed for %s: %s", context, response.text[:200])
        raise InvalidResponseError(
            f"Invalid JSON response from {context}", provider_name
        ) from exc


def error_detail(response: httpx.Response) -> str:
    """Best-effort human-readable error text from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict):
        for key in ("error", "message"):
            if data.get(key):
                return str(data[key])
    return response.text.strip() or response.reason_phrase
