"""POST /v1/payments/* - payment-channel breakdowns"""

import logging
from dataclasses import asdict
from typing import Dict, List
from fastapi import APIRouter, HTTPException, Request

from booking_stats.api.dependencies import get_request_id
from booking_stats.api.v1.schemas import (
    DailyPaymentSchema,
    DailyPaymentsResponse,
    MonthlyPaymentSchema,
    RecordsRequest,
)
from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.models import BookingRecord
from booking_stats.domain.payments import calculate_daily_payments_by_mode, calculate_monthly_payments
from booking_stats.domain.stats import calculate_revenue_by_payment_method

router = APIRouter()


def _records_or_400(request_body: RecordsRequest, request: Request) -> List[BookingRecord]:
    try:
        return request_body.to_records()
    except InvalidConfigurationError as e:
        logging.warning(f"Invalid filter: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/payments/monthly", response_model=List[MonthlyPaymentSchema])
def monthly_payments(request_body: RecordsRequest, request: Request):
    """Twelve entries, April to March, zero-filled for empty months"""
    records = _records_or_400(request_body, request)
    return [MonthlyPaymentSchema(**asdict(m)) for m in calculate_monthly_payments(records)]


@router.post("/payments/daily/{financial_year}", response_model=DailyPaymentsResponse)
def daily_payments(financial_year: str, request_body: RecordsRequest, request: Request):
    """Per-day cash / bank / hudle totals inside one financial year ("202425" or "2024-25")"""
    request_id = get_request_id(request)

    try:
        days = calculate_daily_payments_by_mode(request_body.to_records(), financial_year)
    except InvalidConfigurationError as e:
        logging.warning(f"Invalid daily payments request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    return DailyPaymentsResponse(
        financial_year=financial_year,
        days={
            day: DailyPaymentSchema(cash=p.cash, bank=p.bank, hudle=p.hudle, total=p.total)
            for day, p in days.items()
        },
    )


@router.post("/payments/methods", response_model=Dict[str, float])
def revenue_by_payment_method(request_body: RecordsRequest, request: Request):
    """Totals for each raw payment column"""
    return calculate_revenue_by_payment_method(_records_or_400(request_body, request))
