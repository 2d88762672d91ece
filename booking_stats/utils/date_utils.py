"""Date and financial-year utilities (April-March accounting year)"""

import re
from datetime import date
from typing import Optional, Tuple

from booking_stats.domain.exceptions import InvalidFinancialYearError

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# April first
FINANCIAL_YEAR_MONTHS = MONTH_NAMES[3:] + MONTH_NAMES[:3]

FINANCIAL_YEAR_START_MONTH = 4


def month_name(d: date) -> str:
    return MONTH_NAMES[d.month - 1]


def format_date(d: date) -> str:
    """Format a date as DD/MM/YYYY"""
    return f"{d.day:02d}/{d.month:02d}/{d.year}"


def financial_year_start(d: date) -> int:
    """Calendar year in which the financial year containing d started.

    January-March belong to the financial year that started the previous April.
    """
    return d.year - 1 if d.month < FINANCIAL_YEAR_START_MONTH else d.year


def financial_year_label(d: date) -> str:
    """Financial year label, e.g. 15/01/2025 -> "2024-25" """
    start = financial_year_start(d)
    return f"{start}-{str(start + 1)[-2:]}"


def financial_year_month_index(name: str) -> int:
    """Position of a month name in April..March order, -1 if not a month"""
    try:
        return FINANCIAL_YEAR_MONTHS.index(name)
    except ValueError:
        return -1


def parse_financial_year(label: str) -> int:
    """
    Parse a financial year label into its starting calendar year.

    Accepted forms: "202425", "2024-25", "2024-2025", "2024".
    """
    text = str(label or "").strip()
    match = re.fullmatch(r"(\d{4})(?:-?(\d{2}|\d{4}))?", text)
    if not match:
        raise InvalidFinancialYearError(f"Unrecognized financial year: {label!r}")

    start = int(match.group(1))
    end = match.group(2)
    if end is not None and int(end[-2:]) != (start + 1) % 100:
        raise InvalidFinancialYearError(f"Financial year {label!r} does not span consecutive years")
    return start


def financial_year_bounds(start_year: int) -> Tuple[date, date]:
    """First and last day of the financial year starting in April of start_year"""
    return date(start_year, 4, 1), date(start_year + 1, 3, 31)


def fiscal_quarter(d: date) -> int:
    """Apr-Jun = 1, Jul-Sep = 2, Oct-Dec = 3, Jan-Mar = 4"""
    return (d.month - FINANCIAL_YEAR_START_MONTH) % 12 // 3 + 1


def is_date_in_range(d: Optional[date], start: Optional[date], end: Optional[date]) -> bool:
    """Inclusive range check; a missing bound is open"""
    if d is None:
        return False
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True
