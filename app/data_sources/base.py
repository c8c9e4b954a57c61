"""Interfaces and helpers for stock data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from app.domain import RestockTimers


def browser_headers(user_agent: str) -> Dict[str, str]:
    """Headers that make a plain GET look like the site's own frontend."""
    return {
        "User-Agent": user_agent,
        "Accept": "application/json",
    }


class CredentialProvider(Protocol):
    """Anything that can hand out and renew the cookie credential."""

    def get_credential(self) -> str:
        """Return the current credential, initializing it if needed."""
        ...

    def refresh(self) -> str:
        """Force a renewal and return the new credential."""
        ...


class StockDataSource(Protocol):
    """The three upstream reads that make up one fetch cycle."""

    def fetch_stock(self) -> Mapping[str, Any]:
        """Return the raw stock payload. Raises on failure."""
        ...

    def fetch_timers(self) -> Optional[RestockTimers]:
        """Return restock timers, or None when unavailable."""
        ...

    def fetch_images(self) -> Dict[str, Any]:
        """Return the image index, or {} when unavailable."""
        ...


@dataclass
class CallableStockDataSource(StockDataSource):
    """Wrap three callables so they can be swapped in tests or for other backends."""

    stock: Callable[[], Mapping[str, Any]]
    timers: Callable[[], Optional[RestockTimers]]
    images: Callable[[], Dict[str, Any]]

    def fetch_stock(self) -> Mapping[str, Any]:
        return self.stock()

    def fetch_timers(self) -> Optional[RestockTimers]:
        return self.timers()

    def fetch_images(self) -> Dict[str, Any]:
        return self.images()
