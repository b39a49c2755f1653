"""CLI job that inserts cafes from a JSON seed file."""

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from cafe_enricher.core.db import PersistenceError, add_cafe, init_pool

logger = logging.getLogger(__name__)


def load_seed_file(path: Path) -> List[Dict[str, Any]]:
    """Read and validate a JSON array of cafe documents."""
    with Path(path).open("r", encoding="utf-8") as fh:
        entries = json.load(fh)
    if not isinstance(entries, list):
        raise ValueError(f"{path} must contain a JSON array of cafes")

    documents: List[Dict[str, Any]] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict) or not str(entry.get("name") or "").strip():
            raise ValueError(f"entry {position} in {path} has no name")
        tags = entry.get("location_tags") or []
        if not isinstance(tags, list):
            raise ValueError(f"entry {position} in {path} has non-list location_tags")
        document = {
            "name": str(entry["name"]).strip(),
            "address": entry.get("address") or "",
            "location_tags": [str(tag) for tag in tags],
        }
        if entry.get("thumbnail_url"):
            document["thumbnail_url"] = entry["thumbnail_url"]
        documents.append(document)
    return documents


def seed(documents: Sequence[Dict[str, Any]]) -> List[str]:
    created: List[str] = []
    for document in documents:
        try:
            cafe_id = add_cafe(document)
        except PersistenceError as exc:
            logger.error("Failed to add %s: %s", document.get("name"), exc)
            continue
        logger.info("Added %s (%s)", document["name"], cafe_id)
        created.append(cafe_id)

    logger.info("Seeded %d of %d cafes", len(created), len(documents))
    return created


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed the cafes table from a JSON file")
    parser.add_argument("path", type=Path, help="JSON array of {name, address, location_tags, thumbnail_url}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    documents = load_seed_file(args.path)
    init_pool()
    seed(documents)


if __name__ == "__main__":
    main()
