"""FastAPI application setup: CORS, routes and the background refresh loop."""

import os
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .config import Settings, settings
from .data_sources import build_data_source
from .refresh_cache import RefreshCache, StockPoller
from .session_manager import BrowserSessionManager
from .stock_service import fetch_stock_snapshot
from utils.logging_utils import get_tagged_logger, setup_logging

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="stock_relay")
logger = get_tagged_logger(__name__, tag="app/main")


def build_refresh_cache(cfg: Settings, session_manager: BrowserSessionManager) -> RefreshCache:
    """Wire session, data source and fetch pipeline into a RefreshCache."""
    data_source = build_data_source(cfg, session_manager)
    return RefreshCache(
        partial(fetch_stock_snapshot, data_source, aux_timeout_seconds=cfg.aux_timeout_seconds),
        stale_threshold_seconds=cfg.stale_threshold_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start polling on startup; stop it and close the browser on shutdown."""
    poller = None
    if settings.poller_enabled:
        poller = StockPoller(app.state.refresh_cache, settings.scrape_interval_seconds)
        poller.start()
    else:
        logger.info("Poller disabled (STOCK_POLLER_ENABLED=false)")
    app.state.poller = poller
    try:
        yield
    finally:
        if poller is not None:
            poller.stop()
        app.state.session_manager.close()


app = FastAPI(title="Garden Stock Relay", lifespan=lifespan)

app.state.session_manager = BrowserSessionManager.from_settings(settings)
app.state.refresh_cache = build_refresh_cache(settings, app.state.session_manager)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def answer_options(request: Request, call_next):
    """Answer every OPTIONS request, preflight or not, with a bare 200.

    Registered after CORSMiddleware so it runs first; CORSMiddleware would
    otherwise reject preflights asking for other methods or headers.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    return await call_next(request)


app.include_router(api_router)
