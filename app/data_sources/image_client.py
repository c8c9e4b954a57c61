"""Best-effort item image metadata from the growagarden.gg public API."""
from __future__ import annotations

from typing import Any, Dict, Mapping

import requests

from app.data_sources.base import browser_headers
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="image_client")

session = requests.Session()


def fetch_image_index(*, url: str, user_agent: str, timeout: float = 8.0) -> Dict[str, Any]:
    """Return the `imageData` mapping keyed by item name, or {} on any failure."""
    try:
        resp = session.get(url, headers=browser_headers(user_agent), timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.exceptions.RequestException, ValueError) as exc:
        logger.warning("Image fetch failed", extra={"error": str(exc)})
        return {}

    images = payload.get("imageData") if isinstance(payload, Mapping) else None
    if not isinstance(images, Mapping):
        logger.warning("Image payload has no imageData")
        return {}
    logger.debug("Images fetched", extra={"count": len(images)})
    return dict(images)
