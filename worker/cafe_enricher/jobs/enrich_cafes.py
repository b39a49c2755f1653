"""CLI job that matches cafes against Naver Local Search and stores the results."""

import argparse
import logging
import time
from typing import List, Optional, Sequence

from cafe_enricher.core.config import ConfigError, Settings, get_settings, require_search_credentials
from cafe_enricher.core.db import PersistenceError, fetch_cafes, init_pool, update_cafe
from cafe_enricher.core.throttle import RequestQueue
from cafe_enricher.etl.strategies import generate_strategies
from cafe_enricher.etl.transform import merge_cafe, select_best, to_candidates
from cafe_enricher.models import BatchSummary, Cafe, CandidateMatch
from cafe_enricher.vendors import naver_image, naver_local
from cafe_enricher.vendors.errors import TransportError

logger = logging.getLogger(__name__)


def find_best_match(cafe: Cafe, settings: Settings) -> Optional[CandidateMatch]:
    """Try each query strategy in order and return the first accepted candidate."""
    for strategy in generate_strategies(cafe.name, cafe.location_tags):
        try:
            items = naver_local.search(
                strategy.query,
                client_id=settings.naver_client_id,
                client_secret=settings.naver_client_secret,
                display=settings.search_display,
            )
        except TransportError as exc:
            logger.warning("Search failed for %s (%s): %s", cafe.name, strategy.description, exc)
            items = []
        finally:
            time.sleep(settings.request_delay)

        match = select_best(to_candidates(items, strategy.description))
        if match is not None:
            logger.info("Matched %s with strategy: %s", cafe.name, strategy.description)
            return match
        logger.debug("No cafe candidate for %s with strategy: %s", cafe.name, strategy.description)
    return None


def _lookup_thumbnail(cafe: Cafe, settings: Settings, image_queue: RequestQueue) -> Optional[str]:
    query = " ".join([cafe.name] + cafe.location_tags[-1:])
    future = image_queue.submit(
        naver_image.search_image,
        query,
        client_id=settings.naver_client_id,
        client_secret=settings.naver_client_secret,
    )
    try:
        return future.result()
    except TransportError as exc:
        logger.warning("Image search failed for %s: %s", cafe.name, exc)
        return None


def enrich_cafe(
    cafe: Cafe,
    index: int,
    settings: Settings,
    force: bool = False,
    image_queue: Optional[RequestQueue] = None,
) -> bool:
    """Enrich one cafe. Returns True only when a match was found and stored."""
    if not cafe.name:
        logger.warning("Skipping cafe %s without a name", cafe.id)
        return False

    logger.info("Processing: %s", cafe.name)
    match = find_best_match(cafe, settings)

    thumbnail_url = None
    if match is not None and image_queue is not None:
        thumbnail_url = _lookup_thumbnail(cafe, settings, image_queue)

    fields = merge_cafe(cafe, match, fallback_index=index, thumbnail_url=thumbnail_url, force=force)
    try:
        update_cafe(cafe.id, fields)
    except PersistenceError as exc:
        logger.error("Failed to store %s (%s): %s", cafe.name, cafe.id, exc)
        return False

    if match is None:
        logger.warning("No Naver match for %s; stored placeholder image only", cafe.name)
        return False

    logger.info(
        "Enriched %s: title=%s category=%s phone=%s",
        cafe.name,
        match.title,
        match.category,
        match.telephone or "N/A",
    )
    return True


def run_enrichment(
    cafes: Sequence[Cafe],
    settings: Settings,
    force: bool = False,
    image_queue: Optional[RequestQueue] = None,
) -> BatchSummary:
    summary = BatchSummary()
    for index, cafe in enumerate(cafes):
        try:
            enriched = enrich_cafe(cafe, index, settings, force=force, image_queue=image_queue)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error enriching %s (%s): %s", cafe.name, cafe.id, exc)
            enriched = False

        if enriched:
            summary.success_count += 1
        else:
            summary.failure_count += 1
        time.sleep(settings.entity_delay)

    logger.info(
        "Enrichment complete: processed=%d succeeded=%d failed=%d",
        summary.total,
        summary.success_count,
        summary.failure_count,
    )
    return summary


def run_enrichment_job(
    *,
    cafe_ids: Optional[List[str]] = None,
    force: bool = False,
    with_images: bool = False,
) -> BatchSummary:
    settings = get_settings()
    require_search_credentials(settings)

    init_pool()
    cafes = fetch_cafes(cafe_ids)
    logger.info("Found %d cafes to enrich", len(cafes))
    if not cafes:
        return BatchSummary()

    if not with_images:
        return run_enrichment(cafes, settings, force=force)
    with RequestQueue(settings.image_delay, name="naver-image") as image_queue:
        return run_enrichment(cafes, settings, force=force, image_queue=image_queue)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enrich cafes with Naver Local Search data")
    parser.add_argument("--id", dest="cafe_ids", action="append", help="Only enrich this cafe id (repeatable)")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-enrich explicitly, allowing search coordinates to replace geocoded ones",
    )
    parser.add_argument("--with-images", action="store_true", help="Look up a thumbnail via Naver Image Search")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        summary = run_enrichment_job(cafe_ids=args.cafe_ids, force=args.force, with_images=args.with_images)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc

    if summary.failure_count:
        logger.info("%d cafes were not enriched; re-running the job is safe", summary.failure_count)


if __name__ == "__main__":
    main()
