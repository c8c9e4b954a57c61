"""Upstream stock, timer and image sources."""

from .base import CallableStockDataSource, CredentialProvider, StockDataSource
from .factory import build_data_source
from .gamersberg_client import fetch_stock
from .image_client import fetch_image_index
from .vulcan_client import fetch_restock_timers, parse_restock_timers

__all__ = [
    "build_data_source",
    "CallableStockDataSource",
    "CredentialProvider",
    "StockDataSource",
    "fetch_stock",
    "fetch_image_index",
    "fetch_restock_timers",
    "parse_restock_timers",
]
