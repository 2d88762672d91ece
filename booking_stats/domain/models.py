"""Domain models - pure Python dataclasses representing booking analytics entities"""

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class GroupDimension(str, Enum):
    """Axis along which bookings are partitioned"""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"
    LOCATION = "location"
    SPORT = "sport"
    STATUS = "status"
    SOURCE = "source"
    PAYMENT = "payment"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    PARTIALLY_CANCELLED = "partially_cancelled"
    UNKNOWN = "unknown"


class BookingSource(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class PaymentChannel(str, Enum):
    """Canonical reporting buckets for the raw payment fields"""

    CASH = "cash"
    BANK = "bank"
    HUDLE = "hudle"  # app, QR, wallets, pass and discounts


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Raw payment fields feeding each canonical channel
BANK_FIELDS = ("upi", "bank_transfer")
HUDLE_FIELDS = (
    "hudle_app",
    "hudle_qr",
    "hudle_wallet",
    "venue_wallet",
    "hudle_pass",
    "hudle_discount",
)

# Bookings export column -> BookingRecord field
COLUMN_MAP = {
    "S no": "s_no",
    "Slot Date": "slot_date",
    "Slot Time": "slot_time",
    "Location": "location",
    "Sport": "sport",
    "Status": "status",
    "Source": "source",
    "Customer ID": "customer_id",
    "Customer Name": "customer_name",
    "Phone": "phone",
    "Booking Reference": "booking_reference",
    "Cash": "cash",
    "UPI": "upi",
    "Bank Transfer": "bank_transfer",
    "Hudle App": "hudle_app",
    "Hudle QR": "hudle_qr",
    "Hudle Wallet": "hudle_wallet",
    "Venue Wallet": "venue_wallet",
    "Hudle Pass": "hudle_pass",
    "Hudle Discount": "hudle_discount",
    "Venue Discount": "venue_discount",
    "Total Paid": "total_paid",
    "Balance": "balance",
    "Number of slots": "number_of_slots",
}

AMOUNT_FIELDS = (
    "cash",
    "upi",
    "bank_transfer",
    "hudle_app",
    "hudle_qr",
    "hudle_wallet",
    "venue_wallet",
    "hudle_pass",
    "hudle_discount",
    "venue_discount",
    "total_paid",
    "balance",
)


@dataclass(frozen=True)
class BookingRecord:
    """Single booking row. Owned by the caller; never mutated by the engine."""

    s_no: Optional[int] = None
    slot_date: Optional[str] = None  # DD/MM/YYYY
    slot_time: Optional[str] = None  # hh:mm AM/PM
    location: Optional[str] = None
    sport: str = "Unknown"
    status: str = ""
    source: str = ""
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    booking_reference: Optional[str] = None

    cash: float = 0.0
    upi: float = 0.0
    bank_transfer: float = 0.0
    hudle_app: float = 0.0
    hudle_qr: float = 0.0
    hudle_wallet: float = 0.0
    venue_wallet: float = 0.0
    hudle_pass: float = 0.0
    hudle_discount: float = 0.0
    venue_discount: float = 0.0

    total_paid: float = 0.0
    balance: float = 0.0
    number_of_slots: int = 0

    # Set only on copies produced by payment-channel grouping
    payment_amount: Optional[float] = None

    @classmethod
    def from_raw(cls, row: Mapping[str, Any]) -> "BookingRecord":
        """Build a record from an export row keyed by column name or field name.

        Amounts are coerced with parse_amount; unknown columns are ignored.
        """
        from booking_stats.domain.normalize import parse_amount

        values: Dict[str, Any] = {}
        for key, raw in row.items():
            name = COLUMN_MAP.get(key, key)
            if name not in _FIELD_NAMES or name == "payment_amount":
                continue
            if name in AMOUNT_FIELDS:
                values[name] = parse_amount(raw)
            elif name == "number_of_slots":
                values[name] = int(parse_amount(raw))
            elif name == "s_no":
                values[name] = _as_int(raw)
            elif name == "sport":
                values[name] = str(raw).strip() if raw not in (None, "") else "Unknown"
            elif name in ("status", "source"):
                values[name] = "" if raw is None else str(raw)
            else:
                values[name] = None if raw in (None, "") else str(raw)
        return cls(**values)


_FIELD_NAMES = frozenset(BookingRecord.__dataclass_fields__)


def _as_int(raw: Any) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class GroupedResult(Dict[str, List[BookingRecord]]):
    """One-to-one partition: every kept record is in exactly one bucket.

    ``dropped`` counts records that had no usable key.
    """

    def __init__(self, *args: Any, dropped: int = 0, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.dropped = dropped

    def record_count(self) -> int:
        return sum(len(bucket) for bucket in self.values())


class MultiGroupedResult(Dict[str, List[BookingRecord]]):
    """Many-to-many grouping: a record may appear in several buckets.

    Used for payment channels; bucket sizes need not sum to the input length.
    """

    pass


@dataclass(frozen=True)
class SourceSplit:
    online: int
    offline: int
    online_percentage: float


@dataclass(frozen=True)
class StatusSplit:
    confirmed: int
    cancelled: int
    partially_cancelled: int
    cancellation_rate: float


@dataclass(frozen=True)
class PaymentDistribution:
    """Canonical channel totals and their share of the channel sum"""

    cash_amount: float
    bank_amount: float
    hudle_amount: float
    total_amount: float
    cash_percentage: float
    bank_percentage: float
    hudle_percentage: float


@dataclass(frozen=True)
class TimeDistribution:
    """Peak (18:00-23:00) vs non-peak slot counts"""

    peak_hours: int
    non_peak_hours: int
    peak_hours_percentage: float
    non_peak_hours_percentage: float


@dataclass(frozen=True)
class CustomerSummary:
    id: str
    name: str
    phone: str
    booking_count: int
    total_collection: float


@dataclass(frozen=True)
class GroupSummary:
    """Per-bucket sub-aggregate (month or location)"""

    key: str
    count: int
    total_amount: float
    total_slots: int
    unique_customers: int
    avg_booking_value: float


def freeze_extra_stats(values: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view of extra stats; nested mappings (e.g. Top Customer) are wrapped too"""
    return MappingProxyType(
        {label: MappingProxyType(dict(value)) if isinstance(value, Mapping) else value for label, value in values.items()}
    )


def _thaw(value: Any) -> Any:
    return dict(value) if isinstance(value, Mapping) else value


@dataclass(frozen=True)
class StatsResult:
    """Immutable statistics snapshot for a collection of bookings.

    Results are shared through the cache, so ``extra_stats`` is a read-only mapping.
    """

    total_bookings: int
    total_collection: float
    total_slots: int
    unique_customers: int
    total_balance: float
    avg_revenue_per_slot: float
    completion_rate: float
    avg_booking_value: float
    payment_rate: float
    source: SourceSplit
    status: StatusSplit
    payments: PaymentDistribution
    time_of_day: TimeDistribution
    top_customers: Tuple[CustomerSummary, ...] = ()
    monthly: Tuple[GroupSummary, ...] = ()
    locations: Tuple[GroupSummary, ...] = ()
    extra_stats: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def empty(cls) -> "StatsResult":
        """Zero result for a scope with no bookings"""
        return cls(
            total_bookings=0,
            total_collection=0.0,
            total_slots=0,
            unique_customers=0,
            total_balance=0.0,
            avg_revenue_per_slot=0.0,
            completion_rate=0.0,
            avg_booking_value=0.0,
            payment_rate=0.0,
            source=SourceSplit(0, 0, 0.0),
            status=StatusSplit(0, 0, 0, 0.0),
            payments=PaymentDistribution(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
            time_of_day=TimeDistribution(0, 0, 0.0, 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly rendering; extra stat values keep their shape as plain dicts"""
        data = asdict(replace(self, extra_stats={}))
        data["top_customers"] = [asdict(c) for c in self.top_customers]
        data["monthly"] = [asdict(g) for g in self.monthly]
        data["locations"] = [asdict(g) for g in self.locations]
        data["extra_stats"] = {label: _thaw(value) for label, value in self.extra_stats.items()}
        return data


@dataclass(frozen=True)
class MonthlyPayment:
    """Channel totals for one financial-year month"""

    month: str
    year: str
    cash_amount: float
    bank_amount: float
    hudle_amount: float
    total_amount: float
    cash_percentage: float
    bank_percentage: float
    hudle_percentage: float


@dataclass(frozen=True)
class DailyPayment:
    cash: float = 0.0
    bank: float = 0.0
    hudle: float = 0.0

    @property
    def total(self) -> float:
        return self.cash + self.bank + self.hudle
