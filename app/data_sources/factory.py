"""Factory helpers for wiring the stock data source at startup."""

from __future__ import annotations

from functools import partial

from app import config
from app.data_sources.base import CallableStockDataSource, CredentialProvider, StockDataSource
from app.data_sources.gamersberg_client import fetch_stock
from app.data_sources.image_client import fetch_image_index
from app.data_sources.vulcan_client import fetch_restock_timers
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


def build_data_source(
    settings: config.Settings | None = None,
    credentials: CredentialProvider | None = None,
) -> StockDataSource:
    """Bind the three upstream fetchers to the configured URLs and timeouts."""
    settings = settings or config.settings
    if credentials is None:
        from app.session_manager import BrowserSessionManager

        credentials = BrowserSessionManager.from_settings(settings)

    logger.info(
        "Using gamersberg stock source",
        extra={
            "stock_api_url": settings.stock_api_url,
            "timers_api_url": settings.timers_api_url,
            "images_api_url": settings.images_api_url,
        },
    )
    return CallableStockDataSource(
        stock=partial(
            fetch_stock,
            credentials,
            api_url=settings.stock_api_url,
            page_url=settings.page_url,
            user_agent=settings.user_agent,
            timeout=settings.primary_timeout_seconds,
        ),
        timers=partial(
            fetch_restock_timers,
            url=settings.timers_api_url,
            user_agent=settings.user_agent,
            timeout=settings.aux_timeout_seconds,
        ),
        images=partial(
            fetch_image_index,
            url=settings.images_api_url,
            user_agent=settings.user_agent,
            timeout=settings.aux_timeout_seconds,
        ),
    )
