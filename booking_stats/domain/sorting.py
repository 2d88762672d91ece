"""Sort engine - type-aware ordering of bookings and category entries"""

import logging
import re
from functools import cmp_to_key
from typing import Any, Iterable, List, Mapping, Sequence, Tuple, TypeVar, Union

from booking_stats.config import settings
from booking_stats.domain.models import COLUMN_MAP, SortDirection
from booking_stats.domain.normalize import parse_amount, parse_slot_date
from booking_stats.utils.date_utils import financial_year_month_index

T = TypeVar("T")

_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")


def _direction(direction: Union[str, SortDirection]) -> SortDirection:
    try:
        return SortDirection(str(getattr(direction, "value", direction)).lower())
    except ValueError:
        return SortDirection.DESC


def field_value(item: Any, field: str) -> Any:
    """Read a field from a mapping or a record; export column names are accepted"""
    if isinstance(item, Mapping):
        return item.get(field)
    return getattr(item, COLUMN_MAP.get(field, field), None)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _sign(delta: float) -> int:
    return (delta > 0) - (delta < 0)


def compare_values(a: Any, b: Any, direction: Union[str, SortDirection] = SortDirection.ASC) -> int:
    """
    Compare two field values.

    Precedence:
    1. None sorts first ascending, last descending
    2. numbers compare numerically
    3. DD/MM/YYYY strings compare as dates
    4. currency-prefixed strings compare by amount
    5. anything else compares as case-insensitive text
    """
    ascending = _direction(direction) == SortDirection.ASC

    if a is None and b is None:
        return 0
    if a is None:
        return -1 if ascending else 1
    if b is None:
        return 1 if ascending else -1

    result = 0
    resolved = False

    if _is_number(a) and _is_number(b):
        result, resolved = _sign(a - b), True

    elif isinstance(a, str) and isinstance(b, str):
        if _DATE_PATTERN.match(a) and _DATE_PATTERN.match(b):
            date_a, date_b = parse_slot_date(a), parse_slot_date(b)
            if date_a is not None and date_b is not None:
                result, resolved = _sign((date_a - date_b).days), True

        symbol = settings.currency_symbol
        if not resolved and a.startswith(symbol) and b.startswith(symbol):
            result, resolved = _sign(parse_amount(a) - parse_amount(b)), True

    if not resolved:
        text_a, text_b = str(a).casefold(), str(b).casefold()
        result = (text_a > text_b) - (text_a < text_b)

    return result if ascending else -result


def sort_records(records: Sequence[T], field: str, direction: Union[str, SortDirection] = SortDirection.ASC) -> List[T]:
    """Stable sort by one field; returns a new list and leaves the input untouched"""
    if not records or not field:
        logging.warning("Invalid data or field for sorting", extra={"field": field})
        return list(records or [])

    return sorted(
        records,
        key=cmp_to_key(lambda x, y: compare_values(field_value(x, field), field_value(y, field), direction)),
    )


def sort_by_fields(records: Sequence[T], sort_config: Sequence[Tuple[str, Union[str, SortDirection]]]) -> List[T]:
    """Sort by several (field, direction) pairs; later pairs break ties of earlier ones"""
    if not records or not sort_config:
        return list(records or [])

    def compare(x: T, y: T) -> int:
        for field, direction in sort_config:
            result = compare_values(field_value(x, field), field_value(y, field), direction)
            if result != 0:
                return result
        return 0

    return sorted(records, key=cmp_to_key(compare))


def next_sort_direction(
    current_field: str,
    new_field: str,
    current_direction: Union[str, SortDirection],
) -> SortDirection:
    """New field starts descending; clicking the same field toggles"""
    if current_field != new_field:
        return SortDirection.DESC
    return SortDirection.DESC if _direction(current_direction) == SortDirection.ASC else SortDirection.ASC


def _month_label_key(label: str) -> Tuple[int, int]:
    parts = str(label).split(" ")
    month = parts[0]
    try:
        year = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        year = 0
    return year, financial_year_month_index(month)


def sort_category_entries_for_financial_year(entries: Iterable[Tuple[str, Any]]) -> List[Tuple[str, Any]]:
    """
    Order ("{Month} {Year}", value) pairs by year, then April..March.

    ["January 2024", "April 2023", "March 2024", "May 2023"]
      -> April 2023, May 2023, January 2024, March 2024
    """
    return sorted(entries, key=lambda entry: _month_label_key(entry[0]))


def detect_field_type(records: Sequence[Any], field: str) -> str:
    """Guess 'number', 'date', 'currency' or 'string' from the first non-null value"""
    if not records or not field:
        return "string"

    sample = next((v for v in (field_value(r, field) for r in records) if v is not None), None)
    if _is_number(sample):
        return "number"
    if isinstance(sample, str):
        if _DATE_PATTERN.match(sample):
            return "date"
        if sample.startswith(settings.currency_symbol):
            return "currency"
    return "string"
