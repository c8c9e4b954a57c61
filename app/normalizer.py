"""Map the raw gamersberg stock payload onto the unified StockSnapshot schema."""
from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.domain import (
    DEFAULT_RESTOCK_TIMERS,
    RestockTimers,
    StockItem,
    StockSnapshot,
    WeatherInfo,
    ZenEvent,
)
from app.errors import DataError

# Raw category key -> snapshot field. Several raw keys can share one field;
# their entries are appended in this order.
CATEGORY_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("seeds", "seeds_stock"),
    ("gear", "gear_stock"),
    ("eggs", "egg_stock"),
    ("cosmetic", "cosmetics_stock"),
    ("event", "event_stock"),
    ("honeyevent", "event_stock"),
    ("traveling", "merchants_stock"),
    ("seasonpass", "merchants_stock"),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def validate_stock_payload(raw: Any) -> Mapping[str, Any]:
    """Return the first data record, or raise DataError if the payload is unusable."""
    if not isinstance(raw, Mapping) or not raw.get("success"):
        raise DataError("Stock API returned an unsuccessful payload")
    data = raw.get("data")
    if not isinstance(data, list) or not data:
        raise DataError("Stock API returned empty data")
    record = data[0]
    if not isinstance(record, Mapping):
        raise DataError(f"Stock API data record has unexpected type {type(record).__name__}")
    return record


def coerce_quantity(value: Any) -> Optional[int]:
    """Coerce a raw quantity to int; None when it is not a number.

    Strings are read up to the first non-digit ("12x" -> 12) and floats are
    truncated toward zero.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _iter_entries(raw_category: Any) -> Iterable[Tuple[str, Any]]:
    """Yield (name, quantity) pairs from a name->qty map or a list of records."""
    if isinstance(raw_category, Mapping):
        yield from raw_category.items()
    elif isinstance(raw_category, list):
        for entry in raw_category:
            if isinstance(entry, Mapping) and "name" in entry:
                yield entry["name"], entry.get("quantity")


def _in_stock(raw_category: Any) -> List[StockItem]:
    """Keep only entries with a strictly positive quantity, in source order."""
    items: List[StockItem] = []
    for name, qty in _iter_entries(raw_category):
        quantity = coerce_quantity(qty)
        if quantity is not None and quantity > 0:
            items.append(StockItem(name=str(name), value=quantity))
    return items


def _duration(value: Any) -> Optional[float]:
    """Weather duration in seconds; None when it is not a finite number."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return coerce_quantity(value)


def _weather(raw_weather: Any) -> Optional[WeatherInfo]:
    """Pass weather through as {type, durationSeconds}, or None when absent.

    Junk values degrade to None field by field; they never fail the cycle.
    """
    if not isinstance(raw_weather, Mapping) or not raw_weather:
        return None
    kind = raw_weather.get("type")
    return WeatherInfo(
        type=None if kind is None else str(kind),
        duration_seconds=_duration(raw_weather.get("duration")),
    )


def isoformat_utc(when: dt.datetime) -> str:
    """Format an aware datetime as UTC ISO-8601 with milliseconds and a Z suffix."""
    return when.astimezone(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_to_iso(timestamp: Any) -> str:
    """Convert epoch seconds to a UTC ISO-8601 string, e.g. 1700000000 -> 2023-11-14T22:13:20.000Z.

    Numeric strings ("1700000000") are accepted too.
    """
    if isinstance(timestamp, str):
        try:
            timestamp = float(timestamp)
        except ValueError as exc:
            raise DataError(f"Stock API record has no usable timestamp: {timestamp!r}") from exc
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not math.isfinite(timestamp):
        raise DataError(f"Stock API record has no usable timestamp: {timestamp!r}")
    try:
        when = dt.datetime.fromtimestamp(timestamp, tz=dt.timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise DataError(f"Stock API timestamp out of range: {timestamp!r}") from exc
    return isoformat_utc(when)


def normalize(
    raw: Mapping[str, Any],
    timers: Optional[RestockTimers],
    images: Optional[Mapping[str, Any]],
) -> StockSnapshot:
    """Build a StockSnapshot from a raw stock payload plus optional enrichment.

    Pure function: the same inputs always give an equal snapshot. Missing
    timers fall back to DEFAULT_RESTOCK_TIMERS and missing images to {}.
    """
    record = validate_stock_payload(raw)

    lists: Dict[str, List[StockItem]] = {field: [] for _key, field in CATEGORY_FIELDS}
    for key, field in CATEGORY_FIELDS:
        lists[field].extend(_in_stock(record.get(key)))

    return StockSnapshot(
        **{field: tuple(items) for field, items in lists.items()},
        restock_timers=timers or DEFAULT_RESTOCK_TIMERS,
        weather=_weather(record.get("weather")),
        zen_event=ZenEvent(active=False, time_remaining=None),
        image_data=dict(images or {}),
        last_updated=epoch_to_iso(record.get("timestamp")),
    )
