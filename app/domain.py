"""Unified stock schema served to clients.

These models are the stable contract between the normalizer and the HTTP
layer. Field names are snake_case in Python and camelCase on the wire
(`seedsStock`, `restockTimers`, `lastUpdated`, ...). Every model is frozen so a
cached snapshot cannot be mutated after the cache swaps it in.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _FrozenModel(BaseModel):
    """Base model: immutable, strict on extras, camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class StockItem(_FrozenModel):
    """A single in-stock entry. `value` is always > 0."""
    name: str
    value: int


class WeatherInfo(_FrozenModel):
    """Current in-game weather."""
    type: str | None = None
    duration_seconds: int | float | None = None


class ZenEvent(_FrozenModel):
    """Zen event status.

    The upstream stock API does not expose this, so it is always emitted
    inactive with no time remaining.
    """
    active: bool = False
    time_remaining: int | None = None


class RestockTimers(_FrozenModel):
    """Restock interval per shop category, in milliseconds."""
    seeds: int
    gears: int
    eggs: int
    event: int
    cosmetics: int


# seeds/gears/event: 5 min, eggs: 30 min, cosmetics: 3 h
DEFAULT_RESTOCK_TIMERS = RestockTimers(
    seeds=300_000,
    gears=300_000,
    eggs=1_800_000,
    event=300_000,
    cosmetics=10_800_000,
)


class StockSnapshot(_FrozenModel):
    """Normalized view of every shop, plus timers, weather and images."""
    seeds_stock: Tuple[StockItem, ...] = ()
    gear_stock: Tuple[StockItem, ...] = ()
    egg_stock: Tuple[StockItem, ...] = ()
    cosmetics_stock: Tuple[StockItem, ...] = ()
    event_stock: Tuple[StockItem, ...] = ()
    merchants_stock: Tuple[StockItem, ...] = ()
    restock_timers: RestockTimers = DEFAULT_RESTOCK_TIMERS
    weather: WeatherInfo | None = None
    zen_event: ZenEvent = ZenEvent()
    image_data: Dict[str, Any] = {}
    last_updated: str

    def total_items(self) -> int:
        """Count items across every category list."""
        return (
            len(self.seeds_stock)
            + len(self.gear_stock)
            + len(self.egg_stock)
            + len(self.cosmetics_stock)
            + len(self.event_stock)
            + len(self.merchants_stock)
        )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys for the HTTP layer."""
        return self.model_dump(mode="json", by_alias=True)
