"""Grouping engine - partitions bookings into named buckets along one dimension"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Union

from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.models import (
    BookingRecord,
    GroupDimension,
    GroupedResult,
    GroupSummary,
    MultiGroupedResult,
)
from booking_stats.domain.normalize import (
    normalize_phone,
    normalize_source,
    normalize_status,
    parse_amount,
    parse_slot_date,
    payment_channel_amounts,
)
from booking_stats.infrastructure.observability.metrics import record_dropped
from booking_stats.utils.date_utils import (
    financial_year_label,
    financial_year_start,
    format_date,
    month_name,
)

DATE_DIMENSIONS = (GroupDimension.DAY, GroupDimension.MONTH, GroupDimension.YEAR)


def resolve_dimension(dimension: Union[str, GroupDimension]) -> GroupDimension:
    """Map a dimension name (case-insensitive) to GroupDimension or fail loudly"""
    if isinstance(dimension, GroupDimension):
        return dimension
    try:
        return GroupDimension(str(dimension).strip().lower())
    except ValueError:
        raise InvalidConfigurationError(f"Unknown grouping dimension: {dimension!r}") from None


def _partition(
    records: Iterable[BookingRecord],
    key_fn: Callable[[BookingRecord], Optional[str]],
) -> GroupedResult:
    """Append each record to the bucket named by key_fn; None keys are dropped"""
    groups = GroupedResult()
    for record in records:
        key = key_fn(record)
        if key is None:
            groups.dropped += 1
            continue
        groups.setdefault(key, []).append(record)
    return groups


def date_key(record: BookingRecord, dimension: GroupDimension) -> Optional[str]:
    """
    Bucket key for a date dimension.

    day   -> "15/04/2024"
    month -> "January 2024" for 10/01/2025 (financial year that started April 2024)
    year  -> "2024-25"
    """
    slot_date = parse_slot_date(record.slot_date)
    if slot_date is None:
        return None

    if dimension == GroupDimension.MONTH:
        return f"{month_name(slot_date)} {financial_year_start(slot_date)}"
    if dimension == GroupDimension.YEAR:
        return financial_year_label(slot_date)
    return format_date(slot_date)


def group_by_date(records: List[BookingRecord], group_by: Union[str, GroupDimension] = GroupDimension.DAY) -> GroupedResult:
    """Group by slot date, financial-year month or financial year.

    Records whose slot date is missing or malformed are skipped.
    """
    dimension = resolve_dimension(group_by)
    if dimension not in DATE_DIMENSIONS:
        raise InvalidConfigurationError(f"Not a date dimension: {dimension.value}")

    groups = _partition(records, lambda r: date_key(r, dimension))
    if groups.dropped:
        logging.debug(
            "Skipped bookings without a parsable slot date",
            extra={"dimension": dimension.value, "dropped": groups.dropped},
        )
    record_dropped(dimension.value, groups.dropped)
    return groups


def group_by_location(records: List[BookingRecord]) -> GroupedResult:
    def location_key(record: BookingRecord) -> Optional[str]:
        location = (record.location or "").strip()
        if not location:
            logging.warning(
                "Booking has no location",
                extra={"s_no": record.s_no, "booking_reference": record.booking_reference},
            )
            return None
        return location

    groups = _partition(records, location_key)
    record_dropped(GroupDimension.LOCATION.value, groups.dropped)
    return groups


def group_by_sport(records: List[BookingRecord]) -> GroupedResult:
    """Missing sport is bucketed under "Unknown", never dropped"""
    return _partition(records, lambda r: r.sport or "Unknown")


def group_by_source(records: List[BookingRecord]) -> GroupedResult:
    return _partition(records, lambda r: normalize_source(r.source).value)


def group_by_status(records: List[BookingRecord]) -> GroupedResult:
    return _partition(records, lambda r: normalize_status(r.status).value)


def group_by_payment_mode(records: List[BookingRecord]) -> MultiGroupedResult:
    """
    Explode bookings into cash / bank / hudle buckets.

    A booking lands in every channel it paid through, as a copy carrying
    that channel's amount in ``payment_amount``.
    """
    groups = MultiGroupedResult()
    for record in records:
        for channel, amount in payment_channel_amounts(record).items():
            if amount > 0:
                groups.setdefault(channel.value, []).append(replace(record, payment_amount=amount))
    return groups


_GROUPERS: Dict[GroupDimension, Callable[[List[BookingRecord]], GroupedResult]] = {
    GroupDimension.LOCATION: group_by_location,
    GroupDimension.SPORT: group_by_sport,
    GroupDimension.SOURCE: group_by_source,
    GroupDimension.STATUS: group_by_status,
}


def group(
    records: List[BookingRecord],
    dimension: Union[str, GroupDimension],
) -> Union[GroupedResult, MultiGroupedResult]:
    """
    Main entry point: partition records along one dimension.

    Returns a MultiGroupedResult for the payment dimension (records may repeat
    across channels) and a GroupedResult for every other dimension.

    Raises:
        InvalidConfigurationError: unknown dimension name
    """
    resolved = resolve_dimension(dimension)
    if not records:
        return MultiGroupedResult() if resolved == GroupDimension.PAYMENT else GroupedResult()

    if resolved in DATE_DIMENSIONS:
        return group_by_date(records, resolved)
    if resolved == GroupDimension.PAYMENT:
        return group_by_payment_mode(records)
    return _GROUPERS[resolved](records)


def unique_customer_count(records: Iterable[BookingRecord]) -> int:
    """Distinct normalized phone numbers; blanks are not customers"""
    return len({phone for phone in (normalize_phone(r.phone) for r in records) if phone})


def group_summaries(grouped: Dict[str, List[BookingRecord]]) -> List[GroupSummary]:
    """Count, revenue, slots and unique customers for each bucket, in bucket order"""
    summaries = []
    for key, bookings in grouped.items():
        count = len(bookings)
        total_amount = sum(parse_amount(b.total_paid) for b in bookings)
        summaries.append(
            GroupSummary(
                key=key,
                count=count,
                total_amount=total_amount,
                total_slots=sum(int(parse_amount(b.number_of_slots)) for b in bookings),
                unique_customers=unique_customer_count(bookings),
                avg_booking_value=total_amount / count if count else 0.0,
            )
        )
    return summaries
