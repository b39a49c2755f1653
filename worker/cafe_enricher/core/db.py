"""Database helpers for the worker.

Cafes live in a single ``cafes`` table keyed by a generated uuid. The record
itself is a JSONB document so that partial updates merge into it
(``data || patch``) instead of replacing it.
"""

import logging
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import psycopg2
from psycopg2 import extras, pool

from cafe_enricher.core.config import get_settings
from cafe_enricher.models import Cafe

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


class PersistenceError(RuntimeError):
    """Raised when a read or write against the cafes table fails."""


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def _to_patch(fields: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[datetime]]:
    """Split merge output into the JSONB patch and the ``updated_at`` column."""
    patch: Dict[str, Any] = {}
    updated_at = None
    for key, value in fields.items():
        if key == "id":
            continue
        if key == "updated_at":
            updated_at = value
            continue
        if is_dataclass(value):
            value = asdict(value)
        patch[key] = value
    return patch, updated_at


_SELECT_ALL = "SELECT id, data, updated_at FROM cafes ORDER BY created_at, id"

_SELECT_BY_IDS = "SELECT id, data, updated_at FROM cafes WHERE id::text = ANY(%(ids)s) ORDER BY created_at, id"

_SELECT_ONE = "SELECT id, data, updated_at FROM cafes WHERE id::text = %(id)s"

_UPDATE = """
UPDATE cafes
SET data = data || %(patch)s::jsonb,
    updated_at = COALESCE(%(updated_at)s, NOW())
WHERE id::text = %(id)s
"""

_INSERT = """
INSERT INTO cafes (data, created_at, updated_at)
VALUES (%(data)s::jsonb, NOW(), NOW())
RETURNING id
"""


def _rows_to_cafes(rows: Iterable[Tuple[Any, Dict[str, Any], Optional[datetime]]]) -> List[Cafe]:
    return [Cafe.from_document(row[0], row[1] or {}, updated_at=row[2]) for row in rows]


def fetch_cafes(cafe_ids: Optional[List[str]] = None) -> List[Cafe]:
    """Return every cafe (or the requested ids) in creation order."""
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                if cafe_ids:
                    cur.execute(_SELECT_BY_IDS, {"ids": list(cafe_ids)})
                else:
                    cur.execute(_SELECT_ALL)
                rows = cur.fetchall()
    except psycopg2.Error as exc:
        raise PersistenceError(f"failed to load cafes: {exc}") from exc
    return _rows_to_cafes(rows)


def get_cafe(cafe_id: str) -> Optional[Cafe]:
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_SELECT_ONE, {"id": str(cafe_id)})
                row = cur.fetchone()
    except psycopg2.Error as exc:
        raise PersistenceError(f"failed to load cafe {cafe_id}: {exc}") from exc
    if row is None:
        return None
    return _rows_to_cafes([row])[0]


def update_cafe(cafe_id: str, fields: Dict[str, Any]) -> None:
    """Merge ``fields`` into the stored document. Missing keys are left as they are."""
    patch, updated_at = _to_patch(fields)
    params = {"id": str(cafe_id), "patch": extras.Json(patch), "updated_at": updated_at}
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_UPDATE, params)
                if cur.rowcount == 0:
                    conn.rollback()
                    raise PersistenceError(f"cafe {cafe_id} does not exist")
            conn.commit()
    except psycopg2.Error as exc:
        raise PersistenceError(f"failed to update cafe {cafe_id}: {exc}") from exc
    logger.debug("Updated cafe %s fields=%s", cafe_id, sorted(fields))


def add_cafe(document: Dict[str, Any]) -> str:
    """Insert a new cafe document and return its generated id."""
    if not str(document.get("name") or "").strip():
        raise ValueError("name is required to add a cafe")

    patch, _ = _to_patch(document)
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_INSERT, {"data": extras.Json(patch)})
                cafe_id = cur.fetchone()[0]
            conn.commit()
    except psycopg2.Error as exc:
        raise PersistenceError(f"failed to add cafe {document.get('name')}: {exc}") from exc
    logger.debug("Added cafe %s as %s", document.get("name"), cafe_id)
    return str(cafe_id)
