"""HTTP API serving the cached stock snapshot."""

import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.normalizer import isoformat_utc
from app.refresh_cache import RefreshCache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/api")

PROCESS_STARTED_AT = time.monotonic()

WARMING_UP_MESSAGE = "No data available yet. Scraper is warming up."

router = APIRouter()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StockMeta(_CamelModel):
    """Staleness metadata attached to every /stock response."""
    stale: bool
    age_seconds: int
    last_scraped: str


class HealthResponse(_CamelModel):
    """Liveness and scrape counters."""
    status: str = "ok"
    uptime: str
    scrapes: int
    errors: int
    last_scraped: Optional[str] = None
    has_data: bool
    is_currently_scraping: bool


def get_refresh_cache(request: Request) -> RefreshCache:
    """The cache instance owned by the application."""
    return request.app.state.refresh_cache


@router.get("/stock")
def get_stock(cache: RefreshCache = Depends(get_refresh_cache)):
    """Latest snapshot with `_meta` staleness info, or 503 before the first success."""
    view = cache.get_snapshot()
    if view is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": WARMING_UP_MESSAGE, "lastScraped": None},
        )

    meta = StockMeta(
        stale=view.stale,
        age_seconds=view.age_seconds,
        last_scraped=isoformat_utc(view.last_scraped_at),
    )
    body: Dict[str, Any] = view.snapshot.to_wire()
    body["_meta"] = meta.model_dump(by_alias=True)
    return body


@router.get("/health", response_model=HealthResponse)
def health(cache: RefreshCache = Depends(get_refresh_cache)):
    """Report uptime, success/error counts and whether a scrape is running."""
    state = cache.state()
    return HealthResponse(
        uptime=f"{time.monotonic() - PROCESS_STARTED_AT:.1f}s",
        scrapes=state.success_count,
        errors=state.error_count,
        last_scraped=isoformat_utc(state.last_scraped_at) if state.last_scraped_at else None,
        has_data=state.snapshot is not None,
        is_currently_scraping=state.refresh_in_flight,
    )


@router.get("/debug")
def debug(cache: RefreshCache = Depends(get_refresh_cache)):
    """Raw internal cache state. No stability guarantees."""
    return cache.debug_state()
