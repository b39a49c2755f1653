"""Client utilities for the Naver Image Search API."""

import logging
from typing import Optional

import requests

from cafe_enricher.vendors.errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://openapi.naver.com/v1/search/image"

# Hosts that block hotlinking or serve short-lived URLs.
BAD_IMAGE_DOMAINS = (
    "akmall.com",
    "shopping.interpark.com",
    "postfiles.pstatic.net",
    "blogfiles.pstatic.net",
)


def search_image(query: str, client_id: str, client_secret: str) -> Optional[str]:
    params = {"query": query, "display": 3, "sort": "sim", "filter": "medium"}
    headers = {"X-Naver-Client-Id": client_id, "X-Naver-Client-Secret": client_secret}
    try:
        response = _SESSION.get(_BASE_URL, params=params, headers=headers, timeout=10)
    except requests.RequestException as exc:
        raise TransportError(f"image search request failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        logger.error("image search failed: status=%s body=%s", response.status_code, response.text[:500])
        raise TransportError(f"image search returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("image search returned non-JSON payload: %s", response.text[:500])
        raise MalformedResponseError("image search payload is not JSON") from exc
    if not isinstance(payload, dict):
        raise MalformedResponseError("image search payload is not an object")

    links = [item.get("link") for item in payload.get("items") or [] if isinstance(item, dict) and item.get("link")]
    if not links:
        return None

    for link in links:
        if not any(domain in link for domain in BAD_IMAGE_DOMAINS):
            return link
    return links[0]
