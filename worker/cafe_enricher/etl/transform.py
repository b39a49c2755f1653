"""Utilities for turning Naver Local Search rows into cafe updates."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup

from cafe_enricher.models import (
    COORDINATES_FROM_GEOCODE,
    COORDINATES_FROM_LOCAL_SEARCH,
    Cafe,
    CandidateMatch,
    Coordinates,
)

logger = logging.getLogger(__name__)

CAFE_CATEGORY_MARKERS = ("카페", "커피", "디저트")
COORDINATE_SCALE = 10_000_000

PLACEHOLDER_IMAGES = (
    "https://images.unsplash.com/photo-1554118811-1e0d58224f24?w=400",
    "https://images.unsplash.com/photo-1511920170033-f8396924c348?w=400",
    "https://images.unsplash.com/photo-1495474472287-4d71bcdd2085?w=400",
    "https://images.unsplash.com/photo-1509042239860-f550ce710b93?w=400",
    "https://images.unsplash.com/photo-1442512595331-e89e73853f31?w=400",
    "https://images.unsplash.com/photo-1506619216599-9d16d0903dfd?w=400",
    "https://images.unsplash.com/photo-1447933601403-0c6688de566e?w=400",
    "https://images.unsplash.com/photo-1559056199-641a0ac8b55e?w=400",
    "https://images.unsplash.com/photo-1501492673258-26e0a5a64464?w=400",
    "https://images.unsplash.com/photo-1514432324607-a09d9b4aefdd?w=400",
)


def strip_markup(value: Optional[str]) -> str:
    """Drop the ``<b>`` emphasis Naver wraps around matched terms."""
    if not value:
        return ""
    return BeautifulSoup(value, "html.parser").get_text().strip()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_candidates(items: Iterable[Any], strategy_description: str) -> List[CandidateMatch]:
    candidates: List[CandidateMatch] = []
    for raw in items or []:
        if not isinstance(raw, dict):
            logger.debug("Skipping non-object search item: %r", raw)
            continue
        title = raw.get("title")
        if title is not None and not isinstance(title, str):
            logger.warning("Skipping search item with malformed title: %r", raw)
            continue
        candidates.append(
            CandidateMatch(
                title=strip_markup(title),
                category=_text(raw.get("category")),
                telephone=_text(raw.get("telephone")),
                address=_text(raw.get("address")),
                road_address=_text(raw.get("roadAddress")),
                mapx=_text(raw.get("mapx")) or None,
                mapy=_text(raw.get("mapy")) or None,
                link=_text(raw.get("link")),
                strategy_description=strategy_description,
                raw_snapshot=raw,
            )
        )
    return candidates


def is_cafe_category(category: Optional[str]) -> bool:
    return bool(category) and any(marker in category for marker in CAFE_CATEGORY_MARKERS)


def select_best(candidates: Iterable[CandidateMatch]) -> Optional[CandidateMatch]:
    """First candidate in provider order whose category looks like a cafe.

    A top hit without a cafe marker is discarded; there is no secondary score.
    """
    for candidate in candidates:
        if is_cafe_category(candidate.category):
            return candidate
    return None


def normalize_coordinates(mapx: str, mapy: str) -> Coordinates:
    """Convert Naver's fixed-point ``mapx``/``mapy`` to WGS84 degrees.

    ``mapx`` is the longitude and ``mapy`` the latitude.
    """
    longitude = int(str(mapx).strip()) / COORDINATE_SCALE
    latitude = int(str(mapy).strip()) / COORDINATE_SCALE
    return Coordinates(latitude=latitude, longitude=longitude)


def placeholder_image(index: int) -> str:
    return PLACEHOLDER_IMAGES[index % len(PLACEHOLDER_IMAGES)]


def is_placeholder_image(url: Optional[str]) -> bool:
    return url in PLACEHOLDER_IMAGES


def _match_coordinates(cafe: Cafe, match: CandidateMatch, force: bool) -> Optional[Coordinates]:
    if not match.mapx or not match.mapy:
        return None
    if cafe.coordinates is not None and cafe.coordinates_source == COORDINATES_FROM_GEOCODE and not force:
        logger.debug("Keeping geocoded coordinates for %s", cafe.name)
        return None
    try:
        coordinates = normalize_coordinates(match.mapx, match.mapy)
    except ValueError:
        logger.warning("Unparseable coordinates for %s: mapx=%s mapy=%s", cafe.name, match.mapx, match.mapy)
        return None
    if not coordinates.is_valid():
        logger.warning("Out-of-range coordinates for %s: %s", cafe.name, coordinates)
        return None
    return coordinates


def merge_cafe(
    cafe: Cafe,
    match: Optional[CandidateMatch],
    fallback_index: int,
    thumbnail_url: Optional[str] = None,
    force: bool = False,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Compute the partial update for ``cafe``.

    The returned mapping only holds fields to overwrite; anything absent keeps
    its stored value. ``updated_at`` is always present.
    """
    fields: Dict[str, Any] = {}

    if match is None:
        if not cafe.thumbnail_url or is_placeholder_image(cafe.thumbnail_url):
            fields["thumbnail_url"] = placeholder_image(fallback_index)
        fields["updated_at"] = now or datetime.now(timezone.utc)
        return fields

    address = match.road_address or match.address
    if address:
        fields["address"] = address
    fields["category"] = match.category
    fields["phone"] = match.telephone or ""
    fields["external_link"] = match.link or ""
    if match.title:
        fields["matched_title"] = match.title

    coordinates = _match_coordinates(cafe, match, force)
    if coordinates is not None:
        fields["coordinates"] = coordinates
        fields["coordinates_source"] = COORDINATES_FROM_LOCAL_SEARCH

    if thumbnail_url:
        fields["thumbnail_url"] = thumbnail_url
    elif not cafe.thumbnail_url:
        fields["thumbnail_url"] = placeholder_image(fallback_index)

    fields["updated_at"] = now or datetime.now(timezone.utc)
    return fields
