"""
Field normalization: currency strings, slot dates, status/source labels, phones.

Every function here is lenient. Bad input becomes 0, None or a fallback
category so that one dirty row never aborts a whole report.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Dict, Optional

from booking_stats.domain.models import (
    BANK_FIELDS,
    HUDLE_FIELDS,
    BookingRecord,
    BookingSource,
    BookingStatus,
    PaymentChannel,
)

_CURRENCY_NOISE = re.compile(r"[₹$€£,\s]")
_NON_DIGITS = re.compile(r"\D")
_SLOT_TIME = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")


def parse_amount(raw: Any) -> float:
    """
    Parse a monetary value, returning 0.0 for anything unusable.

    Examples:
        "₹1,250.50" -> 1250.5
        None / "" / "abc" / NaN -> 0.0
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        cleaned = _CURRENCY_NOISE.sub("", str(raw))
        if not cleaned:
            return 0.0
        try:
            value = float(cleaned)
        except ValueError:
            return 0.0

    return value if math.isfinite(value) else 0.0


def parse_slot_date(raw: Any) -> Optional[date]:
    """Parse a DD/MM/YYYY slot date (trailing time part ignored); None if malformed"""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    text = str(raw).strip()
    if not text:
        return None

    date_part = text.split()[0]
    try:
        return datetime.strptime(date_part, "%d/%m/%Y").date()
    except ValueError:
        return None


def parse_slot_hour(raw: Any) -> Optional[int]:
    """Convert a 12-hour "hh:mm AM/PM" slot time to a 0-23 hour; None if unusable"""
    if raw is None:
        return None

    match = _SLOT_TIME.match(str(raw))
    if not match:
        return None

    hour = int(match.group(1))
    period = (match.group(3) or "").upper()

    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0

    return hour if 0 <= hour <= 23 else None


def normalize_status(raw: Any) -> BookingStatus:
    """Case-insensitive substring match onto the four canonical statuses"""
    status = str(raw or "").lower()
    if "confirm" in status:
        return BookingStatus.CONFIRMED
    if "cancel" in status:
        if "partial" in status:
            return BookingStatus.PARTIALLY_CANCELLED
        return BookingStatus.CANCELLED
    return BookingStatus.UNKNOWN


def normalize_source(raw: Any) -> BookingSource:
    if str(raw or "").strip().lower() == "online":
        return BookingSource.ONLINE
    return BookingSource.OFFLINE


def normalize_phone(raw: Any) -> str:
    """Strip everything but digits; "98765 43210" -> "9876543210" """
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return _NON_DIGITS.sub("", str(raw))


def payment_channel_amounts(record: BookingRecord) -> Dict[PaymentChannel, float]:
    """
    Collapse the raw payment fields of a booking into the three reporting channels.

    cash  = Cash
    bank  = UPI + Bank Transfer
    hudle = Hudle App + Hudle QR + Hudle Wallet + Venue Wallet + Hudle Pass + Hudle Discount
    """
    return {
        PaymentChannel.CASH: parse_amount(record.cash),
        PaymentChannel.BANK: sum(parse_amount(getattr(record, name)) for name in BANK_FIELDS),
        PaymentChannel.HUDLE: sum(parse_amount(getattr(record, name)) for name in HUDLE_FIELDS),
    }
