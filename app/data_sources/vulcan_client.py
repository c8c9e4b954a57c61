"""Best-effort restock timers from the vulcanvalues public API."""
from __future__ import annotations

import math
from typing import Any, Mapping, Optional

import requests

from app.data_sources.base import browser_headers
from app.domain import DEFAULT_RESTOCK_TIMERS, RestockTimers
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="vulcan_client")

session = requests.Session()


def _seconds_to_ms(value: Any, default_ms: int) -> int:
    """Convert a timer in seconds to ms, falling back when missing, zero or junk."""
    if isinstance(value, bool):
        return default_ms
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return default_ms
    if not math.isfinite(seconds) or seconds <= 0:
        return default_ms
    return int(seconds * 1000)


def parse_restock_timers(payload: Any) -> Optional[RestockTimers]:
    """Build RestockTimers from a vulcan payload, or None if it is unusable.

    Cosmetics always uses the default; the source does not publish it.
    """
    if not isinstance(payload, Mapping) or not payload.get("success"):
        return None
    data = payload.get("data")
    if not isinstance(data, Mapping):
        return None
    return RestockTimers(
        seeds=_seconds_to_ms(data.get("seedsTimer"), DEFAULT_RESTOCK_TIMERS.seeds),
        gears=_seconds_to_ms(data.get("gearTimer"), DEFAULT_RESTOCK_TIMERS.gears),
        eggs=_seconds_to_ms(data.get("eggsTimer"), DEFAULT_RESTOCK_TIMERS.eggs),
        event=_seconds_to_ms(data.get("eventTimer"), DEFAULT_RESTOCK_TIMERS.event),
        cosmetics=DEFAULT_RESTOCK_TIMERS.cosmetics,
    )


def fetch_restock_timers(*, url: str, user_agent: str, timeout: float = 8.0) -> Optional[RestockTimers]:
    """Fetch restock timers. Never raises; returns None on any failure."""
    try:
        resp = session.get(url, headers=browser_headers(user_agent), timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.exceptions.RequestException, ValueError) as exc:
        logger.warning("Timer fetch failed; using defaults", extra={"error": str(exc)})
        return None

    timers = parse_restock_timers(payload)
    if timers is None:
        logger.warning("Timer payload unusable; using defaults")
        return None
    logger.debug("Restock timers fetched", extra={"timers": timers.model_dump()})
    return timers
