"""Run one fetch cycle: three upstream reads in parallel, then normalize."""
from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Optional, TypeVar

from app.data_sources import StockDataSource
from app.domain import RestockTimers, StockSnapshot
from app.normalizer import normalize
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="stock_service")

T = TypeVar("T")

# Slack on top of the fetchers' own HTTP timeouts before we stop waiting.
AUX_JOIN_GRACE_SECONDS = 1.0


def _soft_result(future: "Future[T]", fallback: T, *, source: str, deadline: float) -> T:
    """Wait for an auxiliary fetch until `deadline`; return `fallback` on timeout or error."""
    try:
        return future.result(timeout=max(0.0, deadline - time.monotonic()))
    except FutureTimeoutError:
        logger.warning("Auxiliary fetch timed out; using fallback", extra={"source": source})
    except Exception as exc:
        logger.warning("Auxiliary fetch failed; using fallback", extra={"source": source, "error": str(exc)})
    future.cancel()
    return fallback


def fetch_stock_snapshot(
    data_source: StockDataSource,
    *,
    aux_timeout_seconds: float = 8.0,
) -> StockSnapshot:
    """
    Fetch stock, timers and images concurrently and merge them into a snapshot.

    Only the stock fetch can fail the cycle; its SessionError/FetchError/
    DataError propagate unchanged. Timers and images are waited on for at most
    `aux_timeout_seconds` (plus a small grace) and degrade to defaults/{}.
    """
    pool = ThreadPoolExecutor(max_workers=3, thread_name_prefix="fetch")
    try:
        started = time.monotonic()
        stock_future = pool.submit(data_source.fetch_stock)
        timers_future = pool.submit(data_source.fetch_timers)
        images_future = pool.submit(data_source.fetch_images)

        raw = stock_future.result()

        deadline = started + aux_timeout_seconds + AUX_JOIN_GRACE_SECONDS
        timers: Optional[RestockTimers] = _soft_result(timers_future, None, source="timers", deadline=deadline)
        images: Dict[str, Any] = _soft_result(images_future, {}, source="images", deadline=deadline) or {}
    finally:
        # stragglers finish on their own HTTP timeout; don't hold the cycle for them
        pool.shutdown(wait=False, cancel_futures=True)

    snapshot = normalize(raw, timers, images)
    _log_summary(snapshot, timers_from_source=timers is not None)
    return snapshot


def _log_summary(snapshot: StockSnapshot, *, timers_from_source: bool) -> None:
    timers = snapshot.restock_timers
    logger.info(
        "Stock fetch successful: seeds=%d gear=%d eggs=%d cosmetics=%d event=%d merchants=%d",
        len(snapshot.seeds_stock),
        len(snapshot.gear_stock),
        len(snapshot.egg_stock),
        len(snapshot.cosmetics_stock),
        len(snapshot.event_stock),
        len(snapshot.merchants_stock),
    )
    logger.info(
        "Images: %d, weather: %s, timers (%s): seeds=%dm eggs=%dm cosmetics=%dh",
        len(snapshot.image_data),
        snapshot.weather.type if snapshot.weather and snapshot.weather.type else "unknown",
        "source" if timers_from_source else "defaults",
        timers.seeds // 60_000,
        timers.eggs // 60_000,
        timers.cosmetics // 3_600_000,
    )
