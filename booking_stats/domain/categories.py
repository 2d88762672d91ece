"""
Category configuration: which field each view groups on and the extra
per-category stats it shows.

Extra stats are plain functions (bookings) -> value held in a table keyed
by view name. Values are returned as-is to the caller; "Top Customer"
returns a dict so the UI can show a name and keep the phone for a tooltip.
"""

import math
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from booking_stats.config import settings
from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.models import BookingRecord, BookingSource, BookingStatus
from booking_stats.domain.normalize import (
    normalize_phone,
    normalize_source,
    normalize_status,
    parse_amount,
    parse_slot_date,
)
from booking_stats.utils.date_utils import FINANCIAL_YEAR_MONTHS

NOT_AVAILABLE = "N/A"

StatFunction = Callable[[Sequence[BookingRecord]], Any]


@dataclass(frozen=True)
class ExtraStat:
    """Labelled derived metric computed from a category's bookings"""

    label: str
    calculate: StatFunction


@dataclass(frozen=True)
class CategoryConfig:
    """Static description of one category view"""

    name: str
    category: str  # grouping dimension label, e.g. "Location"
    value_field: str
    display_name_field: str
    sort_order: Optional[Tuple[str, ...]] = None
    extra_stats: Tuple[ExtraStat, ...] = ()


def config_fingerprint(config: CategoryConfig) -> str:
    """Cache-key part identifying a config by content, not just by view name"""
    stats = ",".join(
        f"{stat.label}={getattr(stat.calculate, '__module__', '')}.{getattr(stat.calculate, '__qualname__', '')}"
        for stat in config.extra_stats
    )
    return f"{config.name}|{config.category}|{config.value_field}|{stats}"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_inr(amount: int) -> str:
    """Indian digit grouping: 123456 -> "1,23,456" """
    digits = str(abs(amount))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        digits = ",".join([head] + pairs + [tail])
    return f"-{digits}" if amount < 0 else digits


def _top_key(totals: Dict[str, float]) -> str:
    """Key with the highest total; first seen wins ties"""
    if not totals:
        return NOT_AVAILABLE
    return max(totals.items(), key=lambda item: item[1])[0]


def online_bookings_share(bookings: Sequence[BookingRecord]) -> str:
    total = len(bookings)
    if total == 0:
        return "0%"
    online = sum(1 for b in bookings if normalize_source(b.source) == BookingSource.ONLINE)
    return f"{round_half_up(online / total * 100)}%"


def average_daily_bookings(bookings: Sequence[BookingRecord]) -> int:
    """Bookings in the month spread over a nominal 30 days"""
    return round_half_up(len(bookings) / 30)


def best_selling_date(bookings: Sequence[BookingRecord]) -> str:
    """Slot date with the highest collection"""
    collections: Dict[str, float] = {}
    for b in bookings:
        if not b.slot_date:
            continue
        day = str(b.slot_date).split(" ")[0]
        collections[day] = collections.get(day, 0.0) + parse_amount(b.total_paid)
    return _top_key(collections)


def top_weekday(bookings: Sequence[BookingRecord]) -> str:
    """Weekday (Monday-Friday only) with the highest collection"""
    if not bookings:
        return NOT_AVAILABLE

    weekdays = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
    collections = {day: 0.0 for day in weekdays}
    for b in bookings:
        slot_date = parse_slot_date(b.slot_date)
        if slot_date is None or slot_date.weekday() >= len(weekdays):
            continue
        collections[weekdays[slot_date.weekday()]] += parse_amount(b.total_paid)
    return _top_key(collections)


def popular_sport(bookings: Sequence[BookingRecord]) -> str:
    return _top_key(Counter(b.sport or "Unknown" for b in bookings))


def top_location_by_revenue(bookings: Sequence[BookingRecord]) -> str:
    collections: Dict[str, float] = defaultdict(float)
    for b in bookings:
        if b.location:
            collections[b.location] += parse_amount(b.total_paid)
    return _top_key(collections)


def top_location_by_count(bookings: Sequence[BookingRecord]) -> str:
    return _top_key(Counter(b.location for b in bookings if b.location))


def avg_collection_per_slot(bookings: Sequence[BookingRecord]) -> str:
    """Collection per slot rounded to the nearest 50, as a currency string"""
    symbol = settings.currency_symbol
    total_slots = sum(parse_amount(b.number_of_slots) for b in bookings)
    if not total_slots:
        return f"{symbol}0"
    total_collection = sum(parse_amount(b.total_paid) for b in bookings)
    rounded = round_half_up(total_collection / total_slots / 50) * 50
    return f"{symbol}{format_inr(rounded)}"


def avg_slots_per_booking(bookings: Sequence[BookingRecord]) -> str:
    if not bookings:
        return "0"
    total_slots = sum(parse_amount(b.number_of_slots) for b in bookings)
    return str(round_half_up(total_slots / len(bookings)))


def top_customer(bookings: Sequence[BookingRecord]) -> Any:
    """
    Most frequent customer by normalized phone.

    Returns {"name", "phone", "display_text"}; "phone" is the raw value of the
    first booking seen for that customer. "N/A" when nobody has a phone.
    """
    customers: Dict[str, Dict[str, Any]] = {}
    for b in bookings:
        phone = normalize_phone(b.phone)
        if not phone:
            continue
        entry = customers.setdefault(phone, {"count": 0, "name": b.customer_name, "phone": b.phone})
        entry["count"] += 1

    if not customers:
        return NOT_AVAILABLE

    best = max(customers.values(), key=lambda c: c["count"])
    return {"name": best["name"], "phone": best["phone"], "display_text": best["name"]}


def cancellation_rate(bookings: Sequence[BookingRecord]) -> str:
    if not bookings:
        return "0.0%"
    cancelled = sum(1 for b in bookings if normalize_status(b.status) == BookingStatus.CANCELLED)
    return f"{cancelled / len(bookings) * 100:.1f}%"


CATEGORY_CONFIGS: Dict[str, CategoryConfig] = {
    "months": CategoryConfig(
        name="months",
        category="Month",
        value_field="month",
        display_name_field="month",
        sort_order=FINANCIAL_YEAR_MONTHS,
        extra_stats=(
            ExtraStat("Average Daily Bookings", average_daily_bookings),
            ExtraStat("Online Bookings", online_bookings_share),
            ExtraStat("Best Selling Date", best_selling_date),
            ExtraStat("Top Weekday", top_weekday),
        ),
    ),
    "locations": CategoryConfig(
        name="locations",
        category="Location",
        value_field="location",
        display_name_field="location",
        extra_stats=(
            ExtraStat("Online Bookings", online_bookings_share),
            ExtraStat("Popular Sport", popular_sport),
        ),
    ),
    "sports": CategoryConfig(
        name="sports",
        category="Sport",
        value_field="sport",
        display_name_field="sport",
        extra_stats=(
            ExtraStat("Top Location", top_location_by_revenue),
            ExtraStat("Online Bookings", online_bookings_share),
            ExtraStat("Avg Collection/Slot", avg_collection_per_slot),
            ExtraStat("Avg Slots/Booking", avg_slots_per_booking),
        ),
    ),
    "status": CategoryConfig(
        name="status",
        category="Status",
        value_field="status",
        display_name_field="status",
        extra_stats=(
            ExtraStat("Top Location", top_location_by_count),
            ExtraStat("Top Customer", top_customer),
        ),
    ),
    "source": CategoryConfig(
        name="source",
        category="Source",
        value_field="source",
        display_name_field="source",
        extra_stats=(
            ExtraStat("Top Location", top_location_by_count),
            ExtraStat("Cancellation Rate", cancellation_rate),
        ),
    ),
}


def get_category_config(name: str) -> CategoryConfig:
    """Look up a view's config by view name ("locations") or category label ("Location")"""
    wanted = str(name).strip().lower()
    for config in CATEGORY_CONFIGS.values():
        if wanted in (config.name, config.category.lower()):
            return config
    raise InvalidConfigurationError(f"No category configuration for {name!r}")
