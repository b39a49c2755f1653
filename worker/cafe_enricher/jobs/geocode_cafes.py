"""CLI job that geocodes cafe addresses with the Naver Cloud geocoding API."""

import argparse
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Sequence

from cafe_enricher.core.config import ConfigError, Settings, get_settings, require_geocode_credentials
from cafe_enricher.core.db import PersistenceError, fetch_cafes, init_pool, update_cafe
from cafe_enricher.models import COORDINATES_FROM_GEOCODE, BatchSummary, Cafe
from cafe_enricher.vendors import naver_geocode
from cafe_enricher.vendors.errors import TransportError

logger = logging.getLogger(__name__)


def geocode_cafe(cafe: Cafe, settings: Settings) -> bool:
    """Geocode one cafe's address. Returns True only when coordinates were stored."""
    logger.info("Geocoding: %s - %s", cafe.name, cafe.address)
    try:
        coordinates = naver_geocode.geocode(cafe.address, key_id=settings.ncp_api_key_id, key=settings.ncp_api_key)
    except TransportError as exc:
        logger.error("Geocoding failed for %s: %s", cafe.name, exc)
        return False

    if coordinates is None:
        logger.warning("No coordinates found for %s", cafe.name)
        return False

    fields = {
        "coordinates": coordinates,
        "coordinates_source": COORDINATES_FROM_GEOCODE,
        "updated_at": datetime.now(timezone.utc),
    }
    try:
        update_cafe(cafe.id, fields)
    except PersistenceError as exc:
        logger.error("Failed to store coordinates for %s: %s", cafe.name, exc)
        return False

    logger.info("Geocoded %s -> (%s, %s)", cafe.name, coordinates.latitude, coordinates.longitude)
    return True


def run_geocoding(cafes: Sequence[Cafe], settings: Settings, force: bool = False) -> BatchSummary:
    summary = BatchSummary()

    for cafe in cafes:
        if cafe.coordinates is not None and not force:
            logger.info("Skipped (already geocoded): %s", cafe.name)
            summary.skipped_count += 1
            continue
        if not cafe.address:
            logger.info("Skipped (no address): %s", cafe.name)
            summary.skipped_count += 1
            continue

        try:
            geocoded = geocode_cafe(cafe, settings)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error geocoding %s (%s): %s", cafe.name, cafe.id, exc)
            geocoded = False

        if geocoded:
            summary.success_count += 1
        else:
            summary.failure_count += 1
        time.sleep(settings.request_delay)

    logger.info(
        "Geocoding complete: total=%d geocoded=%d skipped=%d failed=%d",
        summary.total,
        summary.success_count,
        summary.skipped_count,
        summary.failure_count,
    )
    return summary


def run_geocoding_job(*, force: bool = False) -> BatchSummary:
    settings = get_settings()
    require_geocode_credentials(settings)

    init_pool()
    cafes = fetch_cafes()
    logger.info("Found %d cafes to geocode", len(cafes))
    return run_geocoding(cafes, settings, force=force)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Geocode cafe addresses with Naver Cloud")
    parser.add_argument("--force", action="store_true", help="Geocode cafes that already have coordinates")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)
    try:
        run_geocoding_job(force=args.force)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
