"""POST /v1/groups/{dimension} - per-bucket counts and revenue"""

import logging
from fastapi import APIRouter, HTTPException, Request

from booking_stats.api.dependencies import get_request_id
from booking_stats.api.v1.schemas import GroupsResponse, GroupSummarySchema, RecordsRequest
from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.grouping import group, group_summaries, resolve_dimension
from booking_stats.domain.models import GroupDimension, GroupedResult
from booking_stats.domain.sorting import sort_category_entries_for_financial_year

router = APIRouter()


@router.post("/groups/{dimension}", response_model=GroupsResponse)
def group_bookings(dimension: str, request_body: RecordsRequest, request: Request):
    """
    Group the posted bookings and summarize each bucket.

    Month buckets come back in financial-year order; other dimensions keep
    first-seen order. For "payment" a booking is counted in every channel it used.
    """
    request_id = get_request_id(request)

    try:
        resolved = resolve_dimension(dimension)
        grouped = group(request_body.to_records(), resolved)
    except InvalidConfigurationError as e:
        logging.error(f"Invalid grouping request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    summaries = group_summaries(grouped)
    if resolved == GroupDimension.MONTH:
        summaries = [s for _, s in sort_category_entries_for_financial_year((s.key, s) for s in summaries)]

    return GroupsResponse(
        dimension=resolved.value,
        dropped=grouped.dropped if isinstance(grouped, GroupedResult) else 0,
        groups=[GroupSummarySchema(**vars(s)) for s in summaries],
    )
