"""HTTP entrypoint that triggers cafe enrichment batches."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

from flask import Flask, jsonify, request

from cafe_enricher.core.config import get_settings
from cafe_enricher.jobs.enrich_cafes import run_enrichment_job

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
# One worker: batches share the Naver rate limit and must not overlap.
_executor = ThreadPoolExecutor(max_workers=1)

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/enrich")
def enqueue_enrichment() -> Any:
    """
    Queue an enrichment batch.
    Optional JSON fields: cafe_ids (list of str), force (bool), with_images (bool)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    cafe_ids = payload.get("cafe_ids")
    if cafe_ids is not None:
        if not isinstance(cafe_ids, list) or not all(isinstance(item, str) and item for item in cafe_ids):
            return jsonify({"error": "cafe_ids must be a list of non-empty strings"}), 400

    flags = {}
    for name in ("force", "with_images"):
        value = payload.get(name, False)
        if not isinstance(value, bool):
            return jsonify({"error": f"{name} must be a boolean"}), 400
        flags[name] = value

    job_args = dict(cafe_ids=cafe_ids or None, **flags)
    logger.info("Queueing enrichment job: %s", job_args)
    _executor.submit(_run_job_safe, job_args)

    return jsonify({"data": {"status": "queued"}}), 202


# ---------- Internals ----------


def _run_job_safe(job_args: Dict[str, Any]) -> None:
    try:
        run_enrichment_job(**job_args)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Enrichment job failed: %s", exc)


def main() -> None:
    settings = get_settings()
    port = int(os.getenv("PORT") or settings.worker_port)
    logger.info("Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
