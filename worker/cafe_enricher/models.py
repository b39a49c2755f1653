"""Core data models shared by the cafe enrichment jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

COORDINATES_FROM_GEOCODE = "geocode"
COORDINATES_FROM_LOCAL_SEARCH = "local_search"


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def to_document(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_document(cls, value: Any) -> Optional["Coordinates"]:
        if not isinstance(value, dict):
            return None
        try:
            return cls(latitude=float(value["latitude"]), longitude=float(value["longitude"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(slots=True)
class Cafe:
    """A cafe record as stored in the ``cafes`` table."""

    id: str
    name: str
    address: Optional[str] = None
    location_tags: List[str] = field(default_factory=list)
    coordinates: Optional[Coordinates] = None
    coordinates_source: Optional[str] = None
    category: Optional[str] = None
    phone: Optional[str] = None
    external_link: Optional[str] = None
    matched_title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, cafe_id: str, data: Dict[str, Any], updated_at: Optional[datetime] = None) -> "Cafe":
        tags = data.get("location_tags") or []
        if not isinstance(tags, list):
            logger.warning("Ignoring non-list location_tags on cafe %s: %r", cafe_id, tags)
            tags = []
        return cls(
            id=str(cafe_id),
            name=str(data.get("name") or "").strip(),
            address=data.get("address"),
            location_tags=[str(tag) for tag in tags if tag],
            coordinates=Coordinates.from_document(data.get("coordinates")),
            coordinates_source=data.get("coordinates_source"),
            category=data.get("category"),
            phone=data.get("phone"),
            external_link=data.get("external_link"),
            matched_title=data.get("matched_title"),
            thumbnail_url=data.get("thumbnail_url"),
            updated_at=updated_at,
        )


@dataclass(frozen=True, slots=True)
class QueryStrategy:
    query: str
    description: str


@dataclass(slots=True)
class CandidateMatch:
    """One Naver Local Search row, with the title already stripped of markup."""

    title: str
    category: str = ""
    telephone: str = ""
    address: str = ""
    road_address: str = ""
    mapx: Optional[str] = None
    mapy: Optional[str] = None
    link: str = ""
    strategy_description: str = ""
    raw_snapshot: Optional[Dict[str, Any]] = field(default=None, repr=False)


@dataclass(slots=True)
class BatchSummary:
    success_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count + self.skipped_count


def apply_update(cafe: Cafe, fields: Dict[str, Any]) -> Cafe:
    """Return a copy of ``cafe`` with a merge result applied in memory."""
    return replace(cafe, **fields)
