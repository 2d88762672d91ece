"""Unit tests for the aggregation engine"""

import logging
import pytest

from booking_stats.config import Settings
from booking_stats.domain.categories import CATEGORY_CONFIGS, CategoryConfig, ExtraStat, popular_sport
from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.models import BookingRecord, StatsResult
from booking_stats.domain.stats import (
    StatsEngine,
    calculate_payment_distribution,
    calculate_revenue_by_payment_method,
    calculate_time_distribution,
    calculate_top_customers,
    check_reconciliation,
    compute_stats,
)
from booking_stats.infrastructure.cache import ResultCache


def test_summary_stats_totals(engine, sample_records):
    stats = engine.summary_stats(sample_records)

    assert stats.total_bookings == 4
    assert stats.total_collection == 2300.0
    assert stats.total_slots == 6
    assert stats.total_balance == 100.0
    assert stats.unique_customers == 2
    assert stats.avg_booking_value == 575.0
    assert stats.avg_revenue_per_slot == pytest.approx(2300 / 6)
    assert stats.completion_rate == 50.0
    assert stats.payment_rate == pytest.approx(2200 / 2300 * 100)


def test_summary_stats_source_and_status_split(engine, sample_records):
    stats = engine.summary_stats(sample_records)

    assert (stats.source.online, stats.source.offline) == (3, 1)
    assert stats.source.online_percentage == 75.0
    assert stats.status.confirmed == 2
    assert stats.status.cancelled == 1
    assert stats.status.partially_cancelled == 1
    assert stats.status.cancellation_rate == 50.0


def test_summary_stats_sub_aggregates(engine, sample_records):
    """Monthly breakdown follows financial-year order"""
    stats = engine.summary_stats(sample_records)

    assert [m.key for m in stats.monthly] == ["April 2024", "May 2024", "January 2024"]
    assert [loc.key for loc in stats.locations] == ["Court A", "Court B"]
    assert [c.id for c in stats.top_customers] == ["C1", "C2"]
    assert stats.top_customers[0].booking_count == 2


def test_summary_stats_empty_returns_zero_result(engine):
    """No bookings is not an error and is not cached"""
    stats = engine.summary_stats([])

    assert stats == StatsResult.empty()
    assert stats.payments.cash_percentage == 0.0
    assert len(engine.cache) == 0


def test_summary_stats_is_cached(engine, sample_records):
    first = engine.summary_stats(sample_records, scope="2024-25")
    second = engine.summary_stats(sample_records, scope="2024-25")

    assert second is first
    assert len(engine.cache) == 1


def test_summary_stats_recomputes_when_records_change(engine, sample_records):
    first = engine.summary_stats(sample_records)
    changed = sample_records[:-1] + [BookingRecord(s_no=4, cash=999.0, total_paid=999.0)]

    second = engine.summary_stats(changed)

    assert second.total_collection != first.total_collection
    assert len(engine.cache) == 2


def test_payment_percentages_sum_to_hundred(sample_records):
    payments = calculate_payment_distribution(sample_records)

    assert (payments.cash_amount, payments.bank_amount, payments.hudle_amount) == (700.0, 500.0, 1100.0)
    assert payments.total_amount == 2300.0
    total_pct = payments.cash_percentage + payments.bank_percentage + payments.hudle_percentage
    assert abs(total_pct - 100) < 0.01


def test_payment_percentages_zero_when_nothing_paid():
    payments = calculate_payment_distribution([BookingRecord(), BookingRecord()])

    assert payments.total_amount == 0.0
    assert (payments.cash_percentage, payments.bank_percentage, payments.hudle_percentage) == (0.0, 0.0, 0.0)


def test_revenue_by_payment_method(sample_records):
    revenue = calculate_revenue_by_payment_method(sample_records)

    assert revenue["Cash"] == 700.0
    assert revenue["UPI"] == 300.0
    assert revenue["Bank Transfer"] == 200.0
    assert revenue["Hudle App"] == 1000.0
    assert revenue["Hudle Wallet"] == 100.0
    assert revenue["Venue Wallet"] == 0.0


def test_time_distribution_ignores_untimed_bookings(sample_records):
    """Peak is 18:00-23:00; the booking without a slot time is not counted"""
    distribution = calculate_time_distribution(sample_records)

    assert (distribution.peak_hours, distribution.non_peak_hours) == (2, 1)
    assert distribution.peak_hours_percentage == pytest.approx(200 / 3)
    assert distribution.non_peak_hours_percentage == pytest.approx(100 / 3)


def test_time_distribution_peak_window_is_half_open():
    records = [BookingRecord(slot_time="06:00 PM"), BookingRecord(slot_time="11:00 PM")]

    distribution = calculate_time_distribution(records)

    assert (distribution.peak_hours, distribution.non_peak_hours) == (1, 1)


def test_top_customers_by_revenue_falls_back_to_phone():
    records = [
        BookingRecord(customer_id="C1", customer_name="Asha", total_paid=100.0),
        BookingRecord(phone="9123456780", customer_name="Ravi", total_paid=700.0),
        BookingRecord(customer_id="C1", customer_name="Asha", total_paid=200.0),
    ]

    top = calculate_top_customers(records, metric="revenue", limit=1)

    assert len(top) == 1
    assert top[0].id == "9123456780"
    assert top[0].total_collection == 700.0


def test_top_customers_unknown_metric_raises(sample_records):
    with pytest.raises(InvalidConfigurationError):
        calculate_top_customers(sample_records, metric="loyalty")


def test_reconciliation_mismatch_is_logged_not_raised(engine, caplog):
    """Channel totals far from Total Paid still produce a result"""
    records = [BookingRecord(s_no=1, cash=500.0, total_paid=100.0)]

    with caplog.at_level(logging.WARNING):
        stats = engine.summary_stats(records)

    assert stats.total_collection == 100.0
    assert stats.payments.total_amount == 500.0
    assert "Payment channel totals do not match Total Paid" in caplog.text


def test_check_reconciliation_tolerance():
    payments = calculate_payment_distribution([BookingRecord(cash=105.0)])

    assert check_reconciliation(payments, 100.0, tolerance=10.0)
    assert not check_reconciliation(payments, 90.0, tolerance=10.0)


def test_compute_stats_uses_injected_settings(sample_records):
    config = Settings(peak_start_hour=6, peak_end_hour=12, top_customers_limit=1)

    stats = compute_stats(sample_records, config)

    assert stats.time_of_day.peak_hours == 1
    assert len(stats.top_customers) == 1


def test_category_stats_for_location(engine, sample_records):
    stats = engine.category_stats(sample_records, "Court A", CATEGORY_CONFIGS["locations"])

    assert stats.total_bookings == 3
    assert stats.total_collection == 1800.0
    assert stats.extra_stats == {"Online Bookings": "100%", "Popular Sport": "Badminton"}


def test_category_stats_is_idempotent(engine, sample_records):
    config = CATEGORY_CONFIGS["locations"]

    first = engine.category_stats(sample_records, "Court A", config)
    engine.clear_cache()
    second = engine.category_stats(sample_records, "Court A", config)

    assert first == second
    assert first is not second


def test_category_stats_preserves_structured_extra_stats(engine, sample_records):
    """Top Customer keeps name and raw phone; status keys accept raw labels"""
    stats = engine.category_stats(sample_records, "Confirmed", CATEGORY_CONFIGS["status"])

    assert stats.total_bookings == 2
    assert stats.extra_stats["Top Location"] == "Court A"
    assert stats.extra_stats["Top Customer"] == {
        "name": "Asha",
        "phone": "98765 43210",
        "display_text": "Asha",
    }
    assert stats.to_dict()["extra_stats"]["Top Customer"]["phone"] == "98765 43210"


def test_category_stats_for_month(engine, sample_records):
    stats = engine.category_stats(sample_records, "April 2024", CATEGORY_CONFIGS["months"])

    assert stats.total_bookings == 2
    assert stats.extra_stats["Best Selling Date"] == "15/04/2024"
    assert stats.extra_stats["Top Weekday"] == "Monday"
    assert stats.extra_stats["Average Daily Bookings"] == 0


def test_category_stats_unknown_key_returns_zero_result_with_extras(engine, sample_records):
    stats = engine.category_stats(sample_records, "Nowhere", CATEGORY_CONFIGS["locations"])

    assert stats.total_bookings == 0
    assert stats.extra_stats == {"Online Bookings": "0%", "Popular Sport": "N/A"}


def test_category_stats_invalid_config_raises(engine, sample_records):
    broken = CategoryConfig(name="broken", category="", value_field="", display_name_field="")
    unsupported = CategoryConfig(name="weather", category="Weather", value_field="weather", display_name_field="weather")

    with pytest.raises(InvalidConfigurationError):
        engine.category_stats(sample_records, "x", broken)
    with pytest.raises(InvalidConfigurationError):
        engine.category_stats(sample_records, "x", unsupported)


def test_category_and_summary_entries_do_not_collide(engine, sample_records):
    engine.summary_stats(sample_records)
    engine.category_stats(sample_records, "Court A", CATEGORY_CONFIGS["locations"])
    engine.category_stats(sample_records, "Court B", CATEGORY_CONFIGS["locations"])

    assert len(engine.cache) == 3


def test_batch_category_stats_keeps_request_order(engine, sample_records):
    requests = [
        ("Court B", CATEGORY_CONFIGS["locations"]),
        ("Badminton", CATEGORY_CONFIGS["sports"]),
        ("Offline", CATEGORY_CONFIGS["source"]),
    ]

    results = engine.batch_category_stats(sample_records, requests, max_workers=3)

    assert [r.total_bookings for r in results] == [1, 3, 1]
    assert results[1].extra_stats["Avg Collection/Slot"] == "₹450"
    assert results[2].extra_stats["Cancellation Rate"] == "100.0%"
    assert engine.batch_category_stats(sample_records, []) == []


def test_clear_cache_for_scope_only_touches_that_scope(sample_records):
    engine = StatsEngine(cache=ResultCache(max_entries=5))
    engine.summary_stats(sample_records, scope="2024-25")
    engine.summary_stats(sample_records, scope="2023-24")

    removed = engine.clear_cache_for_scope("2024-25")

    assert removed == 1
    assert len(engine.cache) == 1
    assert engine.cache.keys()[0].startswith("2023-24:")


def test_cached_category_stats_cannot_be_modified(engine, sample_records):
    """Callers share cached results, so extra stats are read-only at every level"""
    config = CATEGORY_CONFIGS["status"]
    stats = engine.category_stats(sample_records, "confirmed", config)

    with pytest.raises(TypeError):
        stats.extra_stats["injected"] = 1
    with pytest.raises(TypeError):
        stats.extra_stats["Top Customer"]["name"] = "Someone else"

    again = engine.category_stats(sample_records, "confirmed", config)

    assert again is stats
    assert set(again.extra_stats) == {"Top Location", "Top Customer"}
    assert again.extra_stats["Top Customer"]["name"] == "Asha"


def test_to_dict_returns_plain_extra_stats(engine, sample_records):
    stats = engine.category_stats(sample_records, "confirmed", CATEGORY_CONFIGS["status"])

    rendered = stats.to_dict()["extra_stats"]
    rendered["Top Customer"]["name"] = "Changed copy"

    assert type(rendered["Top Customer"]) is dict
    assert stats.extra_stats["Top Customer"]["name"] == "Asha"


def test_configs_sharing_a_name_do_not_share_cache_entries(engine, sample_records):
    base = CATEGORY_CONFIGS["locations"]
    custom = CategoryConfig(
        name=base.name,
        category=base.category,
        value_field=base.value_field,
        display_name_field=base.display_name_field,
        extra_stats=(ExtraStat("Popular Sport", popular_sport),),
    )

    first = engine.category_stats(sample_records, "Court A", base)
    second = engine.category_stats(sample_records, "Court A", custom)

    assert set(first.extra_stats) == {"Online Bookings", "Popular Sport"}
    assert set(second.extra_stats) == {"Popular Sport"}
    assert len(engine.cache) == 2
