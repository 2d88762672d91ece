"""Record filters applied before grouping (date, location, customer, reference, phone, balance)"""

import logging
from datetime import date
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.models import COLUMN_MAP, BookingRecord
from booking_stats.domain.normalize import normalize_phone, parse_amount, parse_slot_date
from booking_stats.utils.date_utils import is_date_in_range

MIN_CUSTOMER_SEARCH = 2
MIN_BOOKING_REF_SEARCH = 3
MIN_PHONE_SEARCH = 9


class FilterType(str, Enum):
    SINGLE_DATE = "single-date"
    DATE_RANGE = "date-range"
    LOCATION = "location"
    CUSTOMER = "customer"
    BOOKING_REF = "booking-ref"
    PHONE = "phone"
    BALANCE = "balance"


def _as_date(value: Any) -> Optional[date]:
    """Filter inputs may be dates, DD/MM/YYYY strings or ISO strings"""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return parse_slot_date(value)
    parsed = parse_slot_date(value)
    if parsed is not None:
        return parsed
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def filter_by_date(records: Sequence[BookingRecord], value: Any) -> List[BookingRecord]:
    wanted = _as_date(value)
    if wanted is None:
        return list(records)
    return [r for r in records if parse_slot_date(r.slot_date) == wanted]


def filter_by_date_range(records: Sequence[BookingRecord], start: Any = None, end: Any = None) -> List[BookingRecord]:
    """Inclusive on both ends; an omitted end is open"""
    start_date, end_date = _as_date(start), _as_date(end)
    if start_date is None and end_date is None:
        logging.warning("No date range provided")
        return list(records)
    return [r for r in records if is_date_in_range(parse_slot_date(r.slot_date), start_date, end_date)]


def filter_by_field(records: Sequence[BookingRecord], field: str, value: Any) -> List[BookingRecord]:
    """Case- and whitespace-insensitive equality on one field"""
    if not value:
        return list(records)
    attribute = COLUMN_MAP.get(field, field)
    wanted = str(value).strip().lower()
    return [
        r for r in records
        if getattr(r, attribute, None) and str(getattr(r, attribute)).strip().lower() == wanted
    ]


def filter_by_customer(records: Sequence[BookingRecord], term: Any) -> List[BookingRecord]:
    if not term or len(str(term)) < MIN_CUSTOMER_SEARCH:
        return list(records)
    needle = str(term).lower()
    return [r for r in records if r.customer_name and needle in r.customer_name.lower()]


def filter_by_booking_ref(records: Sequence[BookingRecord], reference: Any) -> List[BookingRecord]:
    if not reference or len(str(reference)) < MIN_BOOKING_REF_SEARCH:
        logging.warning("Booking reference too short, returning all data")
        return list(records)
    needle = str(reference).strip().upper()
    return [r for r in records if r.booking_reference and needle in str(r.booking_reference)]


def filter_by_phone(records: Sequence[BookingRecord], phone: Any) -> List[BookingRecord]:
    if not phone or len(str(phone)) < MIN_PHONE_SEARCH:
        logging.warning("Phone number too short, returning all data")
        return list(records)
    needle = normalize_phone(phone)
    return [r for r in records if needle in normalize_phone(r.phone)]


def filter_by_balance(records: Sequence[BookingRecord], outstanding_only: Any) -> List[BookingRecord]:
    if not outstanding_only:
        return list(records)
    return [r for r in records if parse_amount(r.balance) > 0]


def apply_filter(records: Sequence[BookingRecord], filter_type: Union[str, FilterType], value: Any) -> List[BookingRecord]:
    """
    Apply one filter.

    Raises:
        InvalidConfigurationError: unknown filter type
    """
    try:
        kind = FilterType(getattr(filter_type, "value", filter_type))
    except ValueError:
        raise InvalidConfigurationError(f"Unknown filter type: {filter_type!r}") from None

    if kind == FilterType.SINGLE_DATE:
        return filter_by_date(records, value)
    if kind == FilterType.DATE_RANGE:
        value = value or {}
        return filter_by_date_range(records, value.get("start_date"), value.get("end_date"))
    if kind == FilterType.LOCATION:
        return filter_by_field(records, "location", value)
    if kind == FilterType.CUSTOMER:
        return filter_by_customer(records, value)
    if kind == FilterType.BOOKING_REF:
        return filter_by_booking_ref(records, value)
    if kind == FilterType.PHONE:
        return filter_by_phone(records, value)
    return filter_by_balance(records, value)


def apply_filters(records: Sequence[BookingRecord], filters: Mapping[str, Any]) -> List[BookingRecord]:
    """Apply several filters in sequence; falsy values are skipped"""
    filtered = list(records)
    for filter_type, value in (filters or {}).items():
        if value:
            filtered = apply_filter(filtered, filter_type, value)
    logging.debug("Filters applied", extra={"filters": list((filters or {}).keys()), "results": len(filtered)})
    return filtered
