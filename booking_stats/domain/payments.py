"""Payment-channel breakdowns by financial-year month and by day"""

import logging
from datetime import date
from typing import Dict, List, Sequence, Tuple

from booking_stats.domain.models import BookingRecord, DailyPayment, MonthlyPayment, PaymentChannel
from booking_stats.domain.normalize import parse_slot_date, payment_channel_amounts
from booking_stats.utils.date_utils import (
    FINANCIAL_YEAR_MONTHS,
    financial_year_bounds,
    format_date,
    is_date_in_range,
    month_name,
    parse_financial_year,
)


def channel_percentages(cash: float, bank: float, hudle: float) -> Tuple[float, float, float, float]:
    """Total plus each channel's share of it (0-100); all zero when total is zero"""
    total = cash + bank + hudle
    if total <= 0:
        return total, 0.0, 0.0, 0.0
    return total, cash / total * 100, bank / total * 100, hudle / total * 100


def calculate_monthly_payments(records: Sequence[BookingRecord]) -> List[MonthlyPayment]:
    """
    Cash / bank / hudle totals for each month, April first.

    Always returns 12 entries; months without bookings are zero-filled with
    an empty year. Records without a parsable slot date are ignored.
    """
    totals: Dict[str, List[float]] = {name: [0.0, 0.0, 0.0] for name in FINANCIAL_YEAR_MONTHS}
    years: Dict[str, str] = {}

    for record in records:
        slot_date = parse_slot_date(record.slot_date)
        if slot_date is None:
            continue

        name = month_name(slot_date)
        years.setdefault(name, str(slot_date.year))
        amounts = payment_channel_amounts(record)
        bucket = totals[name]
        bucket[0] += amounts[PaymentChannel.CASH]
        bucket[1] += amounts[PaymentChannel.BANK]
        bucket[2] += amounts[PaymentChannel.HUDLE]

    monthly = []
    for name in FINANCIAL_YEAR_MONTHS:
        cash, bank, hudle = totals[name]
        total, cash_pct, bank_pct, hudle_pct = channel_percentages(cash, bank, hudle)
        monthly.append(
            MonthlyPayment(
                month=name,
                year=years.get(name, ""),
                cash_amount=cash,
                bank_amount=bank,
                hudle_amount=hudle,
                total_amount=total,
                cash_percentage=cash_pct,
                bank_percentage=bank_pct,
                hudle_percentage=hudle_pct,
            )
        )
    return monthly


def calculate_daily_payments_by_mode(
    records: Sequence[BookingRecord],
    financial_year: str,
) -> Dict[str, DailyPayment]:
    """
    Per-day channel totals for dates inside one financial year.

    Args:
        records: Bookings to aggregate
        financial_year: "202425", "2024-25" or "2024" (April 2024 - March 2025)

    Returns:
        {"DD/MM/YYYY": DailyPayment} in chronological order

    Raises:
        InvalidFinancialYearError: label cannot be parsed
    """
    start, end = financial_year_bounds(parse_financial_year(financial_year))

    by_day: Dict[date, List[float]] = {}
    outside = 0
    for record in records:
        slot_date = parse_slot_date(record.slot_date)
        if not is_date_in_range(slot_date, start, end):
            outside += 1
            continue

        amounts = payment_channel_amounts(record)
        bucket = by_day.setdefault(slot_date, [0.0, 0.0, 0.0])
        bucket[0] += amounts[PaymentChannel.CASH]
        bucket[1] += amounts[PaymentChannel.BANK]
        bucket[2] += amounts[PaymentChannel.HUDLE]

    if outside:
        logging.debug(
            "Skipped bookings outside financial year",
            extra={"financial_year": financial_year, "skipped": outside},
        )

    return {
        format_date(day): DailyPayment(cash=cash, bank=bank, hudle=hudle)
        for day, (cash, bank, hudle) in sorted(by_day.items())
    }
