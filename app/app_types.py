"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.domain import StockSnapshot


@dataclass
class CacheState:
    """Everything the refresh cache knows. Mutated only by RefreshCache."""
    snapshot: Optional[StockSnapshot] = None
    last_scraped_at: Optional[datetime] = None
    success_count: int = 0
    error_count: int = 0
    refresh_in_flight: bool = False


@dataclass(frozen=True)
class SnapshotView:
    """Cached snapshot together with its staleness at read time."""
    snapshot: StockSnapshot
    last_scraped_at: datetime
    age_seconds: int
    stale: bool
