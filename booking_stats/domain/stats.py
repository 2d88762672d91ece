"""Aggregation engine - summary and per-category statistics over bookings"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from booking_stats.config import Settings, settings as default_settings
from booking_stats.domain.categories import CategoryConfig, config_fingerprint
from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.grouping import (
    group,
    group_by_date,
    group_by_location,
    group_summaries,
    unique_customer_count,
)
from booking_stats.domain.models import (
    COLUMN_MAP,
    BookingRecord,
    BookingSource,
    BookingStatus,
    CustomerSummary,
    GroupDimension,
    GroupSummary,
    PaymentChannel,
    PaymentDistribution,
    SourceSplit,
    StatsResult,
    StatusSplit,
    TimeDistribution,
    freeze_extra_stats,
)
from booking_stats.domain.normalize import (
    normalize_source,
    normalize_status,
    parse_amount,
    parse_slot_hour,
    payment_channel_amounts,
)
from booking_stats.domain.payments import channel_percentages
from booking_stats.domain.sorting import sort_category_entries_for_financial_year
from booking_stats.infrastructure.cache import ResultCache, build_cache_key
from booking_stats.infrastructure.observability.logging import log_reconciliation_mismatch, log_stats_computed
from booking_stats.infrastructure.observability.metrics import (
    cache_hit_counter,
    cache_miss_counter,
    reconciliation_mismatch_counter,
    stats_duration_histogram,
)

# Dimensions a category view may be keyed on
CATEGORY_DIMENSIONS = {
    "location": GroupDimension.LOCATION,
    "month": GroupDimension.MONTH,
    "sport": GroupDimension.SPORT,
    "status": GroupDimension.STATUS,
    "source": GroupDimension.SOURCE,
}

TOP_CUSTOMER_METRICS = ("count", "revenue")

# Raw payment columns reported individually
PAYMENT_METHOD_COLUMNS = (
    "Cash",
    "UPI",
    "Bank Transfer",
    "Hudle App",
    "Hudle QR",
    "Hudle Wallet",
    "Venue Wallet",
)


def _percentage(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


def calculate_payment_distribution(records: Sequence[BookingRecord]) -> PaymentDistribution:
    """Cash / bank / hudle totals and each one's share of their sum"""
    cash = bank = hudle = 0.0
    for record in records:
        amounts = payment_channel_amounts(record)
        cash += amounts[PaymentChannel.CASH]
        bank += amounts[PaymentChannel.BANK]
        hudle += amounts[PaymentChannel.HUDLE]

    total, cash_pct, bank_pct, hudle_pct = channel_percentages(cash, bank, hudle)
    return PaymentDistribution(
        cash_amount=cash,
        bank_amount=bank,
        hudle_amount=hudle,
        total_amount=total,
        cash_percentage=cash_pct,
        bank_percentage=bank_pct,
        hudle_percentage=hudle_pct,
    )


def calculate_revenue_by_payment_method(records: Sequence[BookingRecord]) -> Dict[str, float]:
    """Sum of each raw payment column, keyed by its export name"""
    return {
        column: sum(parse_amount(getattr(r, COLUMN_MAP[column])) for r in records)
        for column in PAYMENT_METHOD_COLUMNS
    }


def calculate_time_distribution(
    records: Sequence[BookingRecord],
    peak_start_hour: int = 18,
    peak_end_hour: int = 23,
) -> TimeDistribution:
    """
    Peak vs non-peak bookings by slot time.

    Peak is [peak_start_hour, peak_end_hour). Bookings without a usable slot
    time are left out of both the counts and the percentage denominator.
    """
    peak = non_peak = 0
    for record in records:
        hour = parse_slot_hour(record.slot_time)
        if hour is None:
            continue
        if peak_start_hour <= hour < peak_end_hour:
            peak += 1
        else:
            non_peak += 1

    timed = peak + non_peak
    return TimeDistribution(
        peak_hours=peak,
        non_peak_hours=non_peak,
        peak_hours_percentage=_percentage(peak, timed),
        non_peak_hours_percentage=_percentage(non_peak, timed),
    )


def calculate_top_customers(
    records: Sequence[BookingRecord],
    metric: str = "count",
    limit: int = 5,
) -> List[CustomerSummary]:
    """
    Rank customers (Customer ID, falling back to phone) by booking count or revenue.

    Ties keep first-encounter order.

    Raises:
        InvalidConfigurationError: metric is not "count" or "revenue"
    """
    if metric not in TOP_CUSTOMER_METRICS:
        raise InvalidConfigurationError(f"Unknown top-customer metric: {metric!r}")

    customers: Dict[str, Dict[str, Any]] = {}
    for record in records:
        customer_id = record.customer_id or record.phone
        if not customer_id:
            continue
        entry = customers.setdefault(
            customer_id,
            {
                "name": record.customer_name or "Unknown",
                "phone": record.phone or "N/A",
                "booking_count": 0,
                "total_collection": 0.0,
            },
        )
        entry["booking_count"] += 1
        entry["total_collection"] += parse_amount(record.total_paid)

    sort_field = "total_collection" if metric == "revenue" else "booking_count"
    ranked = sorted(customers.items(), key=lambda item: item[1][sort_field], reverse=True)

    return [
        CustomerSummary(
            id=customer_id,
            name=entry["name"],
            phone=entry["phone"],
            booking_count=entry["booking_count"],
            total_collection=entry["total_collection"],
        )
        for customer_id, entry in ranked[:limit]
    ]


def check_reconciliation(payments: PaymentDistribution, total_collection: float, tolerance: float) -> bool:
    """
    Compare channel totals with the Total Paid sum.

    The two are entered independently and may drift; a gap above tolerance
    is logged and counted but never raised. Returns True when within tolerance.
    """
    gap = abs(payments.total_amount - total_collection)
    if gap <= tolerance:
        return True

    reconciliation_mismatch_counter.inc()
    log_reconciliation_mismatch(payments.total_amount, total_collection, tolerance)
    return False


def _ordered_month_summaries(records: Sequence[BookingRecord]) -> Tuple[GroupSummary, ...]:
    summaries = group_summaries(group_by_date(list(records), GroupDimension.MONTH))
    ordered = sort_category_entries_for_financial_year((s.key, s) for s in summaries)
    return tuple(summary for _, summary in ordered)


def compute_stats(records: Sequence[BookingRecord], config: Settings = default_settings) -> StatsResult:
    """
    Build a full StatsResult for a collection of bookings (no caching).

    Returns StatsResult.empty() for an empty collection.
    """
    if not records:
        return StatsResult.empty()

    total_bookings = len(records)
    total_collection = sum(parse_amount(r.total_paid) for r in records)
    total_slots = sum(int(parse_amount(r.number_of_slots)) for r in records)
    total_balance = sum(parse_amount(r.balance) for r in records)

    online = sum(1 for r in records if normalize_source(r.source) == BookingSource.ONLINE)
    statuses = [normalize_status(r.status) for r in records]
    confirmed = statuses.count(BookingStatus.CONFIRMED)
    cancelled = statuses.count(BookingStatus.CANCELLED)
    partially_cancelled = statuses.count(BookingStatus.PARTIALLY_CANCELLED)

    payments = calculate_payment_distribution(records)
    check_reconciliation(payments, total_collection, config.reconciliation_tolerance)

    return StatsResult(
        total_bookings=total_bookings,
        total_collection=total_collection,
        total_slots=total_slots,
        unique_customers=unique_customer_count(records),
        total_balance=total_balance,
        avg_revenue_per_slot=total_collection / total_slots if total_slots else 0.0,
        completion_rate=_percentage(confirmed, total_bookings),
        avg_booking_value=total_collection / total_bookings,
        payment_rate=_percentage(total_collection - total_balance, total_collection),
        source=SourceSplit(
            online=online,
            offline=total_bookings - online,
            online_percentage=_percentage(online, total_bookings),
        ),
        status=StatusSplit(
            confirmed=confirmed,
            cancelled=cancelled,
            partially_cancelled=partially_cancelled,
            cancellation_rate=_percentage(cancelled + partially_cancelled, total_bookings),
        ),
        payments=payments,
        time_of_day=calculate_time_distribution(records, config.peak_start_hour, config.peak_end_hour),
        top_customers=tuple(calculate_top_customers(records, "count", config.top_customers_limit)),
        monthly=_ordered_month_summaries(records),
        locations=tuple(group_summaries(group_by_location(list(records)))),
    )


def resolve_category_dimension(config: CategoryConfig) -> GroupDimension:
    """Map config.category ("Location", "month", ...) onto a grouping dimension"""
    if not getattr(config, "category", None) or not getattr(config, "value_field", None):
        raise InvalidConfigurationError("Category config requires both 'category' and 'value_field'")

    dimension = CATEGORY_DIMENSIONS.get(str(config.category).strip().lower())
    if dimension is None:
        raise InvalidConfigurationError(f"Unsupported category: {config.category!r}")
    return dimension


def _category_bucket_key(dimension: GroupDimension, category_key: str, available: Iterable[str]) -> str:
    """Accept raw labels such as "Confirmed" or "Online" for normalized dimensions"""
    if category_key in available:
        return category_key
    if dimension == GroupDimension.STATUS:
        return normalize_status(category_key).value
    if dimension == GroupDimension.SOURCE:
        return normalize_source(category_key).value
    return category_key


class StatsEngine:
    """
    Statistics entry point with an owned result cache.

    Safe to share between threads: computations are pure and the cache is locked.
    """

    def __init__(self, cache: Optional[ResultCache] = None, config: Settings = default_settings) -> None:
        self.config = config
        self.cache = cache if cache is not None else ResultCache(config.cache_max_entries)

    def _cached(
        self,
        kind: str,
        key: str,
        compute: Callable[[], StatsResult],
        scope: str,
        record_count: int,
        category: Optional[str] = None,
    ) -> StatsResult:
        start_time = time.perf_counter()

        cached = self.cache.get(key)
        if cached is not None:
            cache_hit_counter.labels(kind=kind).inc()
            result, hit = cached, True
        else:
            cache_miss_counter.labels(kind=kind).inc()
            result, hit = compute(), False
            self.cache.set(key, result)

        duration = time.perf_counter() - start_time
        stats_duration_histogram.labels(kind=kind).observe(duration)
        log_stats_computed(kind, scope, record_count, hit, duration * 1000, category)
        return result

    def summary_stats(self, records: Sequence[BookingRecord], scope: str = "all") -> StatsResult:
        """
        Statistics for the whole collection.

        Args:
            records: Bookings to summarize (not modified)
            scope: Cache scope, usually the financial year being viewed

        Returns:
            StatsResult; StatsResult.empty() when there are no records
        """
        if not records:
            logging.info("No data provided for statistics calculation", extra={"scope": scope})
            return StatsResult.empty()

        key = build_cache_key(scope, "summary", records)
        return self._cached("summary", key, lambda: compute_stats(records, self.config), scope, len(records))

    def category_stats(
        self,
        records: Sequence[BookingRecord],
        category_key: str,
        config: CategoryConfig,
        scope: str = "all",
    ) -> StatsResult:
        """
        Statistics for one bucket of a category view, plus the view's extra stats.

        Extra stat values are merged verbatim under their labels.

        Raises:
            InvalidConfigurationError: config has no usable category/value field
        """
        dimension = resolve_category_dimension(config)
        key = build_cache_key(scope, "category", records, config_fingerprint(config), dimension.value, category_key)

        def compute() -> StatsResult:
            grouped = group(list(records), dimension)
            bucket = grouped.get(_category_bucket_key(dimension, category_key, grouped.keys()), [])

            base = compute_stats(bucket, self.config)
            extras = freeze_extra_stats({stat.label: stat.calculate(bucket) for stat in config.extra_stats})
            return replace(base, extra_stats=extras)

        return self._cached("category", key, compute, scope, len(records), category_key)

    def batch_category_stats(
        self,
        records: Sequence[BookingRecord],
        requests: Iterable[Tuple[str, CategoryConfig]],
        scope: str = "all",
        max_workers: Optional[int] = None,
    ) -> List[StatsResult]:
        """Compute several (category_key, config) requests in parallel; results keep request order"""
        requests = list(requests)
        if not requests:
            return []

        workers = max_workers or self.config.stats_max_workers
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self.category_stats, records, category_key, config, scope)
                for category_key, config in requests
            ]
            return [future.result() for future in futures]

    def clear_cache_for_scope(self, scope: str) -> int:
        return self.cache.clear_scope(scope)

    def clear_cache(self) -> None:
        self.cache.clear_all()
