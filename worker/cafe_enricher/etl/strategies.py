"""Search query formulations for matching a cafe against Naver Local Search."""

from typing import List, Optional, Sequence

from cafe_enricher.models import QueryStrategy

CAFE_KEYWORD = "카페"


def _tag(location_tags: Sequence[str], index: int) -> Optional[str]:
    if len(location_tags) <= index:
        return None
    value = (location_tags[index] or "").strip()
    return value or None


def generate_strategies(name: str, location_tags: Optional[Sequence[str]]) -> List[QueryStrategy]:
    """Return queries from most to least specific.

    Callers try them in order and keep the first that yields an accepted
    candidate, so a district-qualified hit always beats a bare-name hit.
    """
    name = name.strip()
    if not name:
        raise ValueError("cafe name is required to build search queries")

    tags = list(location_tags or [])
    strategies: List[QueryStrategy] = []

    district = _tag(tags, 1)
    if district:
        strategies.append(QueryStrategy(f"{name} {district}", f"name + district ({district})"))

    city = _tag(tags, 0)
    if city:
        strategies.append(QueryStrategy(f"{name} {city}", f"name + city ({city})"))

    strategies.append(QueryStrategy(f"{name} {CAFE_KEYWORD}", f'name + "{CAFE_KEYWORD}" keyword'))
    strategies.append(QueryStrategy(name, "name only"))
    return strategies
