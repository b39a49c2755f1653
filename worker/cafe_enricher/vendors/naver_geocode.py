"""Client utilities for the Naver Cloud Platform geocoding API."""

import logging
from typing import Optional

import requests

from cafe_enricher.models import Coordinates
from cafe_enricher.vendors.errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.apigw.ntruss.com/map-geocode/v2/geocode"


def geocode(address: str, key_id: str, key: str) -> Optional[Coordinates]:
    """Resolve a postal address to WGS84 coordinates, or ``None`` when unknown."""
    headers = {
        "x-ncp-apigw-api-key-id": key_id,
        "x-ncp-apigw-api-key": key,
        "Accept": "application/json",
    }
    try:
        response = _SESSION.get(_BASE_URL, params={"query": address}, headers=headers, timeout=10)
    except requests.RequestException as exc:
        raise TransportError(f"geocode request failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        logger.error("geocode failed: status=%s body=%s", response.status_code, response.text[:500])
        raise TransportError(f"geocode returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("geocode returned non-JSON payload: %s", response.text[:500])
        raise MalformedResponseError("geocode payload is not JSON") from exc
    if not isinstance(payload, dict):
        logger.error("geocode returned unexpected payload: %r", payload)
        raise MalformedResponseError("geocode payload is not an object")

    status = payload.get("status")
    addresses = payload.get("addresses") or []
    if not isinstance(addresses, list):
        logger.error("geocode addresses is not a list: %r", payload)
        raise MalformedResponseError("geocode addresses is not a list")
    if status != "OK" or not addresses:
        logger.warning(
            "No geocode result for address=%s status=%s error=%s",
            address,
            status,
            payload.get("errorMessage") or "N/A",
        )
        return None

    first = addresses[0]
    try:
        return Coordinates(latitude=float(first["y"]), longitude=float(first["x"]))
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("geocode address entry is malformed: %r", first)
        raise MalformedResponseError("geocode address entry is missing x/y") from exc
