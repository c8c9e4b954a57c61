"""Single-slot cache of the latest stock snapshot, refreshed on a fixed interval.

Only `RefreshCache.refresh()` mutates the state. At most one refresh runs at a
time; a call that arrives while one is in flight returns SKIPPED immediately
rather than queueing. A failed or empty refresh never clears good data, so
readers always get the best snapshot seen so far together with its age.
"""
from __future__ import annotations

import dataclasses
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from app.app_types import CacheState, SnapshotView
from app.domain import StockSnapshot
from app.errors import StockRelayError
from app.normalizer import isoformat_utc
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="refresh_cache")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class RefreshOutcome(str, Enum):
    """What a single refresh() call did."""
    UPDATED = "updated"
    EMPTY = "empty"
    FAILED = "failed"
    SKIPPED = "skipped"


class RefreshCache:
    """Owns CacheState; serves snapshots and runs single-flight refresh cycles."""

    def __init__(
        self,
        fetch_snapshot: Callable[[], StockSnapshot],
        *,
        stale_threshold_seconds: float = 60.0,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetch_snapshot = fetch_snapshot
        self.stale_threshold_seconds = stale_threshold_seconds
        self._now = now
        self._state = CacheState()
        self._lock = threading.Lock()

    def refresh(self) -> RefreshOutcome:
        """Run one fetch cycle unless another is already running."""
        with self._lock:
            if self._state.refresh_in_flight:
                logger.info("Scrape already in progress, skipping")
                return RefreshOutcome.SKIPPED
            self._state.refresh_in_flight = True

        try:
            return self._run_cycle()
        finally:
            with self._lock:
                self._state.refresh_in_flight = False

    def _run_cycle(self) -> RefreshOutcome:
        logger.debug("Starting scrape")
        try:
            snapshot = self._fetch_snapshot()
        except StockRelayError as exc:
            logger.error("Scrape failed: %s", exc, extra={"error_type": type(exc).__name__})
            self._record_error()
            return RefreshOutcome.FAILED
        except Exception:
            logger.exception("Scrape failed with an unexpected error")
            self._record_error()
            return RefreshOutcome.FAILED

        total = snapshot.total_items()
        if total == 0:
            logger.warning("Scrape returned 0 items; cache unchanged")
            self._record_error()
            return RefreshOutcome.EMPTY

        with self._lock:
            self._state.snapshot = snapshot
            self._state.last_scraped_at = self._now()
            self._state.success_count += 1
        logger.info("Scrape successful: %d total items cached", total)
        return RefreshOutcome.UPDATED

    def _record_error(self) -> None:
        with self._lock:
            self._state.error_count += 1

    def get_snapshot(self) -> Optional[SnapshotView]:
        """Return the cached snapshot with its age, or None before the first success."""
        with self._lock:
            snapshot = self._state.snapshot
            last_scraped_at = self._state.last_scraped_at
        if snapshot is None or last_scraped_at is None:
            return None

        age = max(0.0, (self._now() - last_scraped_at).total_seconds())
        return SnapshotView(
            snapshot=snapshot,
            last_scraped_at=last_scraped_at,
            age_seconds=int(age + 0.5),
            stale=age > self.stale_threshold_seconds,
        )

    def state(self) -> CacheState:
        """A consistent copy of the current state."""
        with self._lock:
            return dataclasses.replace(self._state)

    def debug_state(self) -> Dict[str, Any]:
        """JSON-safe dump of the whole internal state (diagnostics only)."""
        state = self.state()
        return {
            "data": state.snapshot.to_wire() if state.snapshot else None,
            "lastScraped": isoformat_utc(state.last_scraped_at) if state.last_scraped_at else None,
            "scrapeCount": state.success_count,
            "errors": state.error_count,
            "isRunning": state.refresh_in_flight,
        }


class StockPoller:
    """Fires `cache.refresh()` every `interval_seconds`, starting immediately.

    Ticks run on a small worker pool so a tick that lands during a slow cycle
    reaches the cache and is dropped by its in-flight check.
    """

    def __init__(self, cache: RefreshCache, interval_seconds: float = 12.0) -> None:
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pool: Optional[ThreadPoolExecutor] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="refresh")
        self._thread = threading.Thread(target=self._run, name="stock-poller", daemon=True)
        self._thread.start()
        logger.info("Scraping every %.1fs", self.interval_seconds)

    def tick(self) -> Future:
        """Submit one refresh attempt."""
        if self._pool is None:
            raise RuntimeError("StockPoller is not started")
        return self._pool.submit(self.cache.refresh)

    def _run(self) -> None:
        while True:
            self.tick()
            if self._stop.wait(self.interval_seconds):
                break

    def stop(self, timeout: float = 5.0) -> None:
        """Stop ticking. An in-flight cycle finishes on its own."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None
        logger.info("Poller stopped")
