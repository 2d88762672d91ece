"""POST /v1/stats/* - summary and category statistics; DELETE /v1/cache - cache control"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request

from booking_stats.api.dependencies import get_request_id, get_stats_engine
from booking_stats.api.v1.schemas import CacheClearedResponse, CategorySchema, RecordsRequest, StatsResponse
from booking_stats.domain.categories import CATEGORY_CONFIGS, get_category_config
from booking_stats.domain.exceptions import InvalidConfigurationError
from booking_stats.domain.stats import StatsEngine

router = APIRouter()


@router.post("/stats/summary", response_model=StatsResponse)
def summary_stats(
    request_body: RecordsRequest,
    request: Request,
    engine: StatsEngine = Depends(get_stats_engine),
):
    """
    Summary statistics for the posted bookings.

    An empty record list yields zeroed statistics, not an error.
    """
    try:
        records = request_body.to_records()
    except InvalidConfigurationError as e:
        logging.error(f"Invalid filter: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=400, detail=str(e))

    result = engine.summary_stats(records, scope=request_body.scope)
    return StatsResponse(scope=request_body.scope, stats=result.to_dict())


@router.post("/stats/category/{category}/{key}", response_model=StatsResponse)
def category_stats(
    category: str,
    key: str,
    request_body: RecordsRequest,
    request: Request,
    engine: StatsEngine = Depends(get_stats_engine),
):
    """
    Statistics for one bucket of a category view plus that view's extra stats.

    Args:
        category: View or category name ("locations", "Location", "months", ...)
        key: Bucket key ("Court A", "April 2024", "confirmed", ...)
    """
    request_id = get_request_id(request)

    try:
        config = get_category_config(category)
        result = engine.category_stats(request_body.to_records(), key, config, scope=request_body.scope)
    except InvalidConfigurationError as e:
        logging.error(f"Invalid category request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    return StatsResponse(scope=request_body.scope, category=config.name, key=key, stats=result.to_dict())


@router.get("/stats/categories", response_model=List[CategorySchema])
def list_categories():
    """Category views with their grouping dimension and extra-stat labels"""
    return [
        CategorySchema(
            name=config.name,
            category=config.category,
            extra_stats=[stat.label for stat in config.extra_stats],
        )
        for config in CATEGORY_CONFIGS.values()
    ]


@router.delete("/cache", response_model=CacheClearedResponse)
def clear_cache(engine: StatsEngine = Depends(get_stats_engine)):
    engine.clear_cache()
    return CacheClearedResponse()


@router.delete("/cache/{scope}", response_model=CacheClearedResponse)
def clear_cache_for_scope(scope: str, engine: StatsEngine = Depends(get_stats_engine)):
    removed = engine.clear_cache_for_scope(scope)
    return CacheClearedResponse(scope=scope, entries_removed=removed)
