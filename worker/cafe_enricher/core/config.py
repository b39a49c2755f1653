"""Application configuration helpers.

Credentials come from the environment only. Jobs call the ``require_*``
helpers before touching any cafe so a missing key fails the whole run up
front instead of producing a batch of failures.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    naver_client_id: str
    naver_client_secret: str
    ncp_api_key_id: str
    ncp_api_key: str
    database_url: str
    worker_port: int = 9000
    search_display: int = 5
    request_delay: float = 0.1
    entity_delay: float = 0.15
    image_delay: float = 0.2


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    naver_client_id = os.getenv("NAVER_CLIENT_ID", "")
    naver_client_secret = os.getenv("NAVER_CLIENT_SECRET", "")
    ncp_api_key_id = os.getenv("NCP_API_KEY_ID", "")
    ncp_api_key = os.getenv("NCP_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    search_display = int(os.getenv("NAVER_SEARCH_DISPLAY", "5"))
    request_delay = float(os.getenv("NAVER_REQUEST_DELAY", "0.1"))
    entity_delay = float(os.getenv("ENRICH_ENTITY_DELAY", "0.15"))
    image_delay = float(os.getenv("NAVER_IMAGE_DELAY", "0.2"))

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not naver_client_id or not naver_client_secret:
        logger.warning("NAVER_CLIENT_ID/NAVER_CLIENT_SECRET are not configured; Naver search requests will fail.")
    if not ncp_api_key_id or not ncp_api_key:
        logger.warning("NCP_API_KEY_ID/NCP_API_KEY are not configured; geocoding will be unavailable.")

    return Settings(
        naver_client_id=naver_client_id,
        naver_client_secret=naver_client_secret,
        ncp_api_key_id=ncp_api_key_id,
        ncp_api_key=ncp_api_key,
        database_url=database_url,
        worker_port=worker_port,
        search_display=search_display,
        request_delay=request_delay,
        entity_delay=entity_delay,
        image_delay=image_delay,
    )


def require_search_credentials(settings: Settings) -> None:
    if not settings.naver_client_id or not settings.naver_client_secret:
        raise ConfigError(
            "NAVER_CLIENT_ID and NAVER_CLIENT_SECRET must be set; get keys from https://developers.naver.com/apps/"
        )


def require_geocode_credentials(settings: Settings) -> None:
    if not settings.ncp_api_key_id or not settings.ncp_api_key:
        raise ConfigError("NCP_API_KEY_ID and NCP_API_KEY must be set for the Naver Cloud geocoding API.")
