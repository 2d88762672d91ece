"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from booking_stats.domain.filters import apply_filters
from booking_stats.domain.models import BookingRecord


class RecordsRequest(BaseModel):
    """Bookings posted by the caller.

    Each row may use export column names ("Slot Date", "Total Paid") or
    field names ("slot_date", "total_paid"); amounts are coerced leniently.
    ``filters`` maps a filter type ("location", "date-range", ...) to its value.
    """

    records: List[Dict[str, Any]] = Field(default_factory=list)
    scope: str = Field("all", min_length=1, description="Cache scope, e.g. a financial year")
    filters: Dict[str, Any] = Field(default_factory=dict)

    def to_records(self) -> List[BookingRecord]:
        """Raises InvalidConfigurationError for an unknown filter type"""
        records = [BookingRecord.from_raw(row) for row in self.records]
        if self.filters:
            records = apply_filters(records, self.filters)
        return records


class StatsResponse(BaseModel):
    """Response for the stats endpoints"""

    scope: str
    category: Optional[str] = None
    key: Optional[str] = None
    stats: Dict[str, Any]


class GroupSummarySchema(BaseModel):
    key: str
    count: int
    total_amount: float
    total_slots: int
    unique_customers: int
    avg_booking_value: float


class GroupsResponse(BaseModel):
    """Response for POST /v1/groups/{dimension}"""

    dimension: str
    dropped: int = 0
    groups: List[GroupSummarySchema]


class MonthlyPaymentSchema(BaseModel):
    month: str
    year: str
    cash_amount: float
    bank_amount: float
    hudle_amount: float
    total_amount: float
    cash_percentage: float
    bank_percentage: float
    hudle_percentage: float


class DailyPaymentSchema(BaseModel):
    cash: float
    bank: float
    hudle: float
    total: float


class DailyPaymentsResponse(BaseModel):
    financial_year: str
    days: Dict[str, DailyPaymentSchema]


class CacheClearedResponse(BaseModel):
    scope: Optional[str] = None
    entries_removed: Optional[int] = None


class CategorySchema(BaseModel):
    name: str
    category: str
    extra_stats: List[str]
