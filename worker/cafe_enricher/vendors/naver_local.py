"""Client utilities for the Naver Local Search API."""

import logging
from typing import Any, Dict, List

import requests

from cafe_enricher.vendors.errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://openapi.naver.com/v1/search/local.json"


def search(query: str, client_id: str, client_secret: str, display: int = 5) -> List[Dict[str, Any]]:
    """Return the raw ``items`` for ``query``.

    Results are requested in the provider's ``random`` order so that equally
    ranked listings are not always returned in the same sequence. There is no
    retry here; callers move on to their next query instead.
    """
    params = {"query": query, "display": display, "start": 1, "sort": "random"}
    headers = {"X-Naver-Client-Id": client_id, "X-Naver-Client-Secret": client_secret}
    try:
        response = _SESSION.get(_BASE_URL, params=params, headers=headers, timeout=10)
    except requests.RequestException as exc:
        raise TransportError(f"local search request failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        logger.error("local search failed: status=%s body=%s", response.status_code, response.text[:500])
        raise TransportError(f"local search returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("local search returned non-JSON payload: %s", response.text[:500])
        raise MalformedResponseError("local search payload is not JSON") from exc

    if not isinstance(payload, dict):
        logger.error("local search returned unexpected payload: %r", payload)
        raise MalformedResponseError("local search payload is not an object")

    items = payload.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        logger.error("local search items is not a list: %r", payload)
        raise MalformedResponseError("local search items is not a list")
    return items
